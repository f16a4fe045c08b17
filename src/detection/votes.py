"""
Vote aggregation and ranking for ensemble hits.

Each hit is one vote for its entity. Entities are ranked by descending votes
with ties broken by entity key, so repeated runs give the same order.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Iterable, List, Optional

import numpy as np

from src.core.exceptions import InvalidHyperparameterError

from .schema import Hit, RankedEntity


def rank(hits: Iterable[Hit]) -> List[RankedEntity]:
    """
    Tally hits per entity and rank by descending vote count.

    Returns:
        RankedEntity list with order 1..n; empty when there are no hits
    """
    tally = Counter(hit.entity for hit in hits)
    ordered = sorted(tally.items(), key=lambda item: (-item[1], item[0]))
    return [
        RankedEntity(entity=entity, votes=votes, order=position)
        for position, (entity, votes) in enumerate(ordered, start=1)
    ]


def elbow_cutoff(ranked: List[RankedEntity]) -> Optional[int]:
    """
    Suggest a cutoff at the largest drop between consecutive vote counts.

    Returns the number of entities ranked above the drop. The first drop wins
    on ties. With fewer than two entities the whole list is returned; with no
    entities, None.
    """
    if not ranked:
        return None
    if len(ranked) == 1:
        return 1

    votes = np.array([r.votes for r in ranked], dtype=float)
    drops = votes[:-1] - votes[1:]
    if not drops.any():
        return len(ranked)
    return int(np.argmax(drops)) + 1


def select_top(ranked: List[RankedEntity], top_k: int) -> List[RankedEntity]:
    """
    First top_k entries of a ranking.

    Raises:
        InvalidHyperparameterError: If top_k is negative
    """
    if top_k < 0:
        raise InvalidHyperparameterError(f"top_k must be non-negative, got {top_k}")
    return ranked[:top_k]


@dataclass
class VoteAggregator:
    """
    Batch vote aggregation with an analyst-supplied reporting cutoff.

    The elbow is advisory; the reported list always uses top_k.
    """

    top_k: int = 10

    def __post_init__(self) -> None:
        if self.top_k < 0:
            raise InvalidHyperparameterError(f"top_k must be non-negative, got {self.top_k}")

    def rank(self, hits: Iterable[Hit]) -> List[RankedEntity]:
        return rank(hits)

    def elbow(self, ranked: List[RankedEntity]) -> Optional[int]:
        return elbow_cutoff(ranked)

    def select(self, ranked: List[RankedEntity]) -> List[RankedEntity]:
        return select_top(ranked, self.top_k)
