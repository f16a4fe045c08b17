"""
Ensemble CUSUM change-detection engine.

Consumes report records, aggregates them into monthly series, sweeps the
configured (C, T) grid, and ranks entities by vote count.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Dict, Iterable, Optional

from src.core.config import DetectionConfig, config
from src.data.aggregation import RecordLike, aggregate, filter_series_by_min_periods, means_by_entity
from src.data.schema import EntityKey, EntitySeries

from .grid import GridEnsembleRunner, build_grid
from .schema import DetectionReport
from .votes import VoteAggregator

logger = logging.getLogger(__name__)


@dataclass
class ChangeDetectionEngine:
    """
    Deterministic ensemble change-detection engine.

    Notes:
    - Grid axes are built and validated before any record is touched.
    - Each entity's mean is computed once during aggregation.
    - The reported selection uses the configured top_k; the elbow is advisory.
    """

    settings: Optional[DetectionConfig] = None
    cancel_event: Optional[threading.Event] = None

    def __post_init__(self) -> None:
        if self.settings is None:
            self.settings = config.detection

        c_grid, t_grid = self.settings.c_grid, self.settings.t_grid
        self._runner = GridEnsembleRunner(
            c_values=build_grid(c_grid.start, c_grid.stop, c_grid.step),
            t_values=build_grid(t_grid.start, t_grid.stop, t_grid.step),
            max_workers=self.settings.max_workers,
            min_periods=self.settings.min_periods,
            cancel_event=self.cancel_event,
        )
        self._votes = VoteAggregator(top_k=self.settings.top_k)

    def run(self, records: Iterable[RecordLike]) -> DetectionReport:
        return self.run_series(aggregate(records))

    def run_series(self, series_by_entity: Dict[EntityKey, EntitySeries]) -> DetectionReport:
        eligible = filter_series_by_min_periods(series_by_entity, self.settings.min_periods)

        hits = self._runner.run(series_by_entity, means_by_entity(series_by_entity))
        ranked = self._votes.rank(hits)

        report = DetectionReport(
            entity_count=len(series_by_entity),
            eligible_count=len(eligible),
            c_values=list(self._runner.c_values),
            t_values=list(self._runner.t_values),
            hits=hits,
            ranked=ranked,
            elbow=self._votes.elbow(ranked),
            top_k=self._votes.top_k,
            selected=self._votes.select(ranked),
        )

        logger.info(
            "Ranked %d of %d entities; reporting top %d (elbow suggests %s)",
            len(ranked),
            len(series_by_entity),
            len(report.selected),
            report.elbow,
        )
        return report
