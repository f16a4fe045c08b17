"""
Schema definitions for ensemble CUSUM change detection.

All outputs are deterministic. A hit names the grid cell that produced it so
vote totals can be traced back to individual (slack, threshold) settings.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from src.data.schema import EntityKey


class CusumState(BaseModel):
    """
    CUSUM state for one entity at one period.

    Fields:
    - index: position of the period in the entity's series
    - xt: lagged count fed to the statistic (previous period's count)
    - cum_sum: running total of xt through this period
    - st: cumulative statistic, floored at zero
    - chg_ind: True when st >= threshold
    """

    index: int = Field(ge=0)
    xt: float
    cum_sum: float
    st: float = Field(ge=0.0)
    chg_ind: bool


class Hit(BaseModel):
    """
    Transition into alarm at an entity's most recent period for one grid cell.

    Fields:
    - entity: grouping key
    - c: slack value of the grid cell
    - t: threshold value of the grid cell
    """

    model_config = ConfigDict(frozen=True)

    entity: EntityKey
    c: float = Field(ge=0.0)
    t: float = Field(ge=0.0)


class RankedEntity(BaseModel):
    """
    Vote tally for one entity after ranking.

    Fields:
    - entity: grouping key
    - votes: number of hits across the grid
    - order: 1-based rank (1 = most votes)
    """

    model_config = ConfigDict(frozen=True)

    entity: EntityKey
    votes: int = Field(ge=1)
    order: int = Field(ge=1)


class DetectionReport(BaseModel):
    """
    Result of a full sweep: hits, ranking, and the reported selection.

    Fields:
    - entity_count: entities aggregated from the input
    - eligible_count: entities with enough history to produce hits
    - c_values / t_values: grid axes used for the sweep
    - hits: every hit, in grid-cell order
    - ranked: full ranking of entities with at least one vote
    - elbow: suggested cutoff (entities above the largest vote drop)
    - top_k: cutoff applied to build `selected`
    - selected: first top_k entries of `ranked`
    """

    entity_count: int = Field(ge=0)
    eligible_count: int = Field(ge=0)
    c_values: List[float]
    t_values: List[float]
    hits: List[Hit]
    ranked: List[RankedEntity]
    elbow: Optional[int] = None
    top_k: int = Field(ge=0)
    selected: List[RankedEntity]

    @property
    def cell_count(self) -> int:
        """Number of (C, T) grid cells evaluated."""
        return len(self.c_values) * len(self.t_values)
