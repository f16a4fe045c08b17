"""
Monthly aggregation of report-count records.

Collapses raw records into one ordered count series per entity plus the
entity's long-run mean. Produces EntitySeries objects suitable for the
CUSUM grid sweep.

Design:
- Counts sharing (entity, period) are summed
- Each entity's periods are sorted ascending; gaps are left as-is
- The mean is computed once over the full history and never recomputed
- Output mappings are ordered by entity key
"""

import logging
from datetime import date
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

import pandas as pd
from pydantic import ValidationError

from src.core.exceptions import DataValidationError
from src.data.schema import EntityKey, EntitySeries, ReportRecord, normalize_period

logger = logging.getLogger(__name__)

RecordLike = Union[ReportRecord, Mapping[str, Any]]


def _coerce_record(record: RecordLike) -> ReportRecord:
    if isinstance(record, ReportRecord):
        return record
    try:
        return ReportRecord.model_validate(dict(record))
    except (ValidationError, TypeError) as e:
        raise DataValidationError(f"Invalid report record {record!r}: {e}") from e


def _build_series(frame: pd.DataFrame, entities: List[EntityKey]) -> Dict[EntityKey, EntitySeries]:
    """
    Sum counts per (entity_id, period) and split into per-entity series.

    Args:
        frame: DataFrame with integer entity_id, period (date) and count columns
        entities: Entity keys indexed by entity_id

    Returns:
        Dict mapping entity key -> EntitySeries, ordered by key
    """
    totals = (
        frame.groupby(["entity_id", "period"], sort=True)["count"]
        .sum()
        .reset_index()
    )

    series_by_entity: Dict[EntityKey, EntitySeries] = {}
    for entity_id, group in totals.groupby("entity_id", sort=False):
        counts = [int(c) for c in group["count"]]
        series_by_entity[entities[entity_id]] = EntitySeries(
            entity=entities[entity_id],
            periods=list(group["period"]),
            counts=counts,
            mu=float(sum(counts)) / len(counts),
        )

    return dict(sorted(series_by_entity.items()))


def aggregate(records: Iterable[RecordLike]) -> Dict[EntityKey, EntitySeries]:
    """
    Aggregate report records into per-entity monthly series.

    Args:
        records: ReportRecord objects or mappings with entity, period, count

    Returns:
        Dict mapping entity key -> EntitySeries (empty if no records)

    Raises:
        DataValidationError: If a record is malformed
    """
    entity_ids: Dict[EntityKey, int] = {}
    rows: List[Tuple[int, date, int]] = []

    for raw in records:
        record = _coerce_record(raw)
        entity_id = entity_ids.setdefault(record.entity, len(entity_ids))
        rows.append((entity_id, record.period, record.count))

    if not rows:
        logger.info("No report records supplied; nothing to aggregate")
        return {}

    frame = pd.DataFrame(rows, columns=["entity_id", "period", "count"])
    entities = list(entity_ids)
    series_by_entity = _build_series(frame, entities)

    logger.info(
        "Aggregated %d records into %d entity series",
        len(rows),
        len(series_by_entity),
    )
    return series_by_entity


def aggregate_frame(
    df: pd.DataFrame,
    entity_columns: Sequence[str],
    period_column: str = "period",
    count_column: str = "count",
) -> Dict[EntityKey, EntitySeries]:
    """
    Aggregate a tabular extract into per-entity monthly series.

    Args:
        df: DataFrame already filtered to the report type of interest
        entity_columns: One column (neighbourhood) or two (neighbourhood, sector)
        period_column: Column holding the reporting month
        count_column: Column holding non-negative report counts

    Returns:
        Dict mapping entity key -> EntitySeries

    Raises:
        DataValidationError: If columns are missing or counts are invalid
    """
    entity_columns = list(entity_columns)
    if not 1 <= len(entity_columns) <= 2:
        raise DataValidationError("entity_columns must name one or two columns")

    missing = [c for c in [*entity_columns, period_column, count_column] if c not in df.columns]
    if missing:
        raise DataValidationError(f"Missing columns: {missing}")

    if df.empty:
        logger.info("Empty frame supplied; nothing to aggregate")
        return {}

    counts = pd.to_numeric(df[count_column], errors="coerce")
    if counts.isna().any():
        raise DataValidationError(f"Column '{count_column}' contains missing or non-numeric counts")
    if (counts < 0).any():
        raise DataValidationError(f"Column '{count_column}' contains negative counts")
    if (counts != counts.round()).any():
        raise DataValidationError(f"Column '{count_column}' contains non-integer counts")

    if df[entity_columns].isna().any().any():
        raise DataValidationError("Entity columns contain missing values")

    try:
        periods = [normalize_period(ts) for ts in pd.to_datetime(df[period_column])]
    except (ValueError, TypeError) as e:
        raise DataValidationError(f"Column '{period_column}' contains invalid periods: {e}") from e

    keys = [tuple(str(v) for v in row) for row in df[entity_columns].itertuples(index=False, name=None)]
    entity_ids: Dict[EntityKey, int] = {}
    ids = [entity_ids.setdefault(key, len(entity_ids)) for key in keys]

    frame = pd.DataFrame(
        {"entity_id": ids, "period": periods, "count": counts.astype("int64").to_numpy()}
    )
    series_by_entity = _build_series(frame, list(entity_ids))

    logger.info(
        "Aggregated %d rows into %d entity series (grouped by %s)",
        len(df),
        len(series_by_entity),
        ", ".join(entity_columns),
    )
    return series_by_entity


def means_by_entity(series_by_entity: Mapping[EntityKey, EntitySeries]) -> Dict[EntityKey, float]:
    """
    Extract the per-entity mean table used as fixed context for every grid cell.
    """
    return {entity: series.mu for entity, series in series_by_entity.items()}


def filter_series_by_min_periods(
    series_by_entity: Mapping[EntityKey, EntitySeries],
    min_periods: int = 2,
) -> Dict[EntityKey, EntitySeries]:
    """
    Keep only entities with at least min_periods observed months.

    Args:
        series_by_entity: Aggregated series
        min_periods: Minimum history length

    Returns:
        Filtered dict of series
    """
    return {k: v for k, v in series_by_entity.items() if v.n_periods >= min_periods}


def get_time_range(
    series_by_entity: Mapping[EntityKey, EntitySeries]
) -> Tuple[Optional[date], Optional[date]]:
    """
    Get the earliest and latest months across all series.

    Returns:
        Tuple of (first_period, last_period), or (None, None) if empty
    """
    if not series_by_entity:
        return None, None

    first = min(s.periods[0] for s in series_by_entity.values())
    last = max(s.periods[-1] for s in series_by_entity.values())
    return first, last


def summarize_series(series_by_entity: Mapping[EntityKey, EntitySeries]) -> str:
    """
    Create a human-readable summary of aggregated series.

    Example output:
        12 entities, 840 reports
        History length: 1-24 months (3 with fewer than 2 months)
        Time range: 2021-01-01 to 2022-12-01
    """
    if not series_by_entity:
        return "No entity series"

    lengths = [s.n_periods for s in series_by_entity.values()]
    total_reports = sum(sum(s.counts) for s in series_by_entity.values())
    short = sum(1 for n in lengths if n < 2)

    lines = [
        f"{len(series_by_entity)} entities, {total_reports} reports",
        f"History length: {min(lengths)}-{max(lengths)} months ({short} with fewer than 2 months)",
    ]

    first, last = get_time_range(series_by_entity)
    if first and last:
        lines.append(f"Time range: {first.isoformat()} to {last.isoformat()}")

    return "\n".join(lines)
