"""
Canonical internal schema for transaction-report counts.

This module defines the standardized representation of a single report-count
record and of an entity's monthly series after aggregation. All record sources
are converted to these models before change detection.

Design rationale:
- Minimal fields (only what's needed for change detection)
- Periods are calendar months, stored as the first day of the month
- Entity keys are tuples so neighbourhood and neighbourhood x sector
  groupings share one code path
"""

from datetime import date, datetime
from typing import List, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

EntityKey = Tuple[str, ...]


def normalize_entity(entity: Union[str, Tuple[str, ...], List[str]]) -> EntityKey:
    """
    Normalize a grouping key to a tuple of strings.

    Args:
        entity: Neighbourhood code, or (neighbourhood, sector) pair

    Returns:
        Tuple key (length 1 or 2)

    Raises:
        ValueError: If the key is empty or has more than two fields
    """
    if isinstance(entity, str):
        key = (entity,)
    else:
        key = tuple(str(part) for part in entity)

    if not 1 <= len(key) <= 2:
        raise ValueError(f"Entity key must have one or two fields, got {len(key)}")
    if any(not part for part in key):
        raise ValueError(f"Entity key contains an empty field: {key!r}")
    return key


def normalize_period(value: Union[str, date, datetime]) -> date:
    """
    Normalize a period identifier to the first day of its month.

    Accepts date/datetime objects and "YYYY-MM" or "YYYY-MM-DD" strings.

    Examples:
    - "2023-04" -> date(2023, 4, 1)
    - datetime(2023, 4, 17, 9, 30) -> date(2023, 4, 1)
    """
    if isinstance(value, datetime):
        return date(value.year, value.month, 1)
    if isinstance(value, date):
        return date(value.year, value.month, 1)
    if isinstance(value, str):
        text = value.strip()
        for fmt in ("%Y-%m", "%Y-%m-%d", "%Y/%m", "%Y/%m/%d"):
            try:
                parsed = datetime.strptime(text, fmt)
            except ValueError:
                continue
            return date(parsed.year, parsed.month, 1)
    raise ValueError(f"Unrecognized period: {value!r}")


class ReportRecord(BaseModel):
    """
    One aggregated count of reports filed by an entity in a month.

    Attributes:
        entity: Grouping key, (neighbourhood,) or (neighbourhood, sector)
        period: First day of the reporting month
        count: Number of reports (non-negative)

    Notes:
        - Several records may share (entity, period); aggregation sums them
        - Records are expected to be pre-filtered to one report type
    """

    model_config = ConfigDict(frozen=True)

    entity: EntityKey = Field(
        ...,
        description="Grouping key (one or two fields)"
    )

    period: date = Field(
        ...,
        description="Reporting month (first day of month)"
    )

    count: int = Field(
        ...,
        ge=0,
        description="Number of reports filed in the period"
    )

    @field_validator("entity", mode="before")
    @classmethod
    def _normalize_entity(cls, value):
        return normalize_entity(value)

    @field_validator("period", mode="before")
    @classmethod
    def _normalize_period(cls, value):
        return normalize_period(value)


class EntitySeries(BaseModel):
    """
    Monthly report counts for one entity, in chronological order.

    This is produced by the aggregation step and fed to the CUSUM sweep.

    Attributes:
        entity: Grouping key
        periods: Months with at least one record, ascending
        counts: Summed counts aligned with periods
        mu: Arithmetic mean of counts over the full history

    Notes:
        - Gaps between months are not filled
        - mu is fixed once computed and shared by every grid cell
    """

    model_config = ConfigDict(frozen=True)

    entity: EntityKey
    periods: List[date] = Field(..., min_length=1)
    counts: List[int] = Field(..., min_length=1)
    mu: float = Field(..., ge=0.0)

    @model_validator(mode="after")
    def _check_alignment(self) -> "EntitySeries":
        if len(self.periods) != len(self.counts):
            raise ValueError("periods and counts must have the same length")
        if any(later <= earlier for earlier, later in zip(self.periods, self.periods[1:])):
            raise ValueError("periods must be strictly ascending")
        return self

    @property
    def n_periods(self) -> int:
        """Number of observed months."""
        return len(self.periods)
