"""
Unit tests for vote aggregation and ranking.
"""

import pytest

from src.core.exceptions import InvalidHyperparameterError
from src.detection.schema import Hit, RankedEntity
from src.detection.votes import VoteAggregator, elbow_cutoff, rank, select_top


def _hits(entity, n):
    return [Hit(entity=entity, c=float(i), t=1.0) for i in range(n)]


def _ranked(*votes):
    return [RankedEntity(entity=(f"N{i:02d}",), votes=v, order=i + 1) for i, v in enumerate(votes)]


def test_rank_orders_by_descending_votes():
    hits = _hits(("N02",), 3) + _hits(("N01",), 1) + _hits(("N03",), 5)

    ranked = rank(hits)

    assert [r.entity for r in ranked] == [("N03",), ("N02",), ("N01",)]
    assert [r.votes for r in ranked] == [5, 3, 1]
    assert [r.order for r in ranked] == [1, 2, 3]


def test_ties_broken_by_entity_key():
    hits = _hits(("N09", "retail"), 2) + _hits(("N01", "retail"), 2) + _hits(("N05", "banking"), 2)

    ranked = rank(hits)

    assert [r.entity for r in ranked] == [("N01", "retail"), ("N05", "banking"), ("N09", "retail")]


def test_rank_independent_of_hit_order():
    hits = _hits(("N02",), 3) + _hits(("N01",), 3) + _hits(("N03",), 1)

    assert rank(hits) == rank(list(reversed(hits)))


def test_rank_empty():
    assert rank([]) == []


def test_elbow_at_largest_drop():
    assert elbow_cutoff(_ranked(30, 28, 27, 9, 8, 2)) == 3


def test_elbow_first_drop_wins_ties():
    assert elbow_cutoff(_ranked(10, 5, 1, 1)) == 1
    assert elbow_cutoff(_ranked(9, 6, 3)) == 1


def test_elbow_flat_and_small_inputs():
    assert elbow_cutoff(_ranked(4, 4, 4)) == 3
    assert elbow_cutoff(_ranked(4)) == 1
    assert elbow_cutoff([]) is None


def test_select_top():
    ranked = _ranked(5, 4, 3, 2)

    assert select_top(ranked, 2) == ranked[:2]
    assert select_top(ranked, 0) == []
    assert select_top(ranked, 10) == ranked


def test_select_top_rejects_negative():
    with pytest.raises(InvalidHyperparameterError):
        select_top(_ranked(1), -1)


def test_aggregator_applies_top_k():
    aggregator = VoteAggregator(top_k=1)
    ranked = aggregator.rank(_hits(("N01",), 2) + _hits(("N02",), 1))

    assert aggregator.select(ranked) == [RankedEntity(entity=("N01",), votes=2, order=1)]
    assert aggregator.elbow(ranked) == 1


def test_aggregator_rejects_negative_top_k():
    with pytest.raises(InvalidHyperparameterError):
        VoteAggregator(top_k=-3)
