"""
One-sided CUSUM scorer for monthly report counts.

The statistic reacts to the previous period's count (xt lags the raw series by
one month), so a spike in month m can first raise an alarm in month m + 1.

    xt_0 = count_0                 xt_i = count_{i-1}
    st_i = max(0, st_{i-1} + (xt_i - mu - C)),   st_{-1} = mu
    chg_ind_i = st_i >= T
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, List, Sequence, Tuple, Union

from src.core.exceptions import InvalidHyperparameterError, MissingHistoryError
from src.data.schema import EntitySeries

from .schema import CusumState


def validate_hyperparameters(c: float, t: float) -> None:
    """
    Reject negative slack or threshold values.

    Raises:
        InvalidHyperparameterError: If c or t is negative or not a number
    """
    for name, value in (("C", c), ("T", t)):
        # NaN fails every comparison, so test for the valid range instead
        if not value >= 0.0:
            raise InvalidHyperparameterError(f"{name} must be non-negative, got {value}")


SeriesLike = Union[EntitySeries, Sequence[float]]


def counts_of(series: SeriesLike) -> Sequence[float]:
    """Count sequence of an EntitySeries, or the sequence itself."""
    return series.counts if isinstance(series, EntitySeries) else series


def _walk(counts: Sequence[float], mu: float, c: float, t: float) -> Iterator[Tuple[float, float, float, bool]]:
    prev_count = None
    carried = float(mu)
    cum_sum = 0.0

    for count in counts:
        xt = float(count) if prev_count is None else float(prev_count)
        cum_sum += xt
        st = max(0.0, carried + (xt - mu - c))
        yield xt, cum_sum, st, st >= t
        carried = st
        prev_count = count


@dataclass(frozen=True)
class CusumScorer:
    """
    CUSUM scorer for a single (slack, threshold) grid cell.

    The scorer holds no per-entity state; the same instance can score every
    entity in the cell, from any thread.
    """

    c: float
    t: float

    def __post_init__(self) -> None:
        validate_hyperparameters(self.c, self.t)

    def trajectory(self, series: SeriesLike, mu: float) -> List[CusumState]:
        """
        Full CUSUM path for one entity, one state per period.
        """
        counts = counts_of(series)
        return [
            CusumState(index=i, xt=xt, cum_sum=cum_sum, st=st, chg_ind=chg_ind)
            for i, (xt, cum_sum, st, chg_ind) in enumerate(_walk(counts, mu, self.c, self.t))
        ]

    def score(self, series: SeriesLike, mu: float) -> Tuple[bool, bool]:
        """
        Alarm flags at the last two periods.

        Returns:
            (chg_ind at last period, chg_ind at second-to-last period)

        Raises:
            MissingHistoryError: If fewer than two periods are available
        """
        counts = counts_of(series)
        if len(counts) < 2:
            raise MissingHistoryError(
                f"Need at least 2 periods to compare alarm states, got {len(counts)}"
            )

        last = prev = False
        for _, _, _, chg_ind in _walk(counts, mu, self.c, self.t):
            prev, last = last, chg_ind
        return last, prev

    def is_hit(self, series: SeriesLike, mu: float) -> bool:
        """True when the entity enters alarm exactly at its latest period."""
        last, prev = self.score(series, mu)
        return last and not prev


def score(series: SeriesLike, mu: float, c: float, t: float) -> Tuple[bool, bool]:
    """
    Score one entity's series for one (C, T) cell.

    Returns:
        (chg_ind_last, chg_ind_prev)
    """
    return CusumScorer(c=c, t=t).score(series, mu)
