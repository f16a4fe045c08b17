"""
Data module: Record schema and monthly aggregation.

Responsible for converting already-filtered report records into per-entity
monthly series suitable for change detection. Pipeline:

    Report records (entity, period, count)
        ↓
    Aggregation (src/data/aggregation.py) → EntitySeries + mean table
        ↓
    Ready for the CUSUM grid sweep (src/detection)
"""

from src.data.aggregation import (
    aggregate,
    aggregate_frame,
    filter_series_by_min_periods,
    get_time_range,
    means_by_entity,
    summarize_series,
)
from src.data.schema import (
    EntityKey,
    EntitySeries,
    ReportRecord,
    normalize_entity,
    normalize_period,
)

__all__ = [
    # Schema
    "EntityKey",
    "EntitySeries",
    "ReportRecord",
    "normalize_entity",
    "normalize_period",

    # Aggregation
    "aggregate",
    "aggregate_frame",
    "filter_series_by_min_periods",
    "get_time_range",
    "means_by_entity",
    "summarize_series",
]
