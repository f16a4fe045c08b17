"""
Grid sweep over CUSUM hyperparameters.

Every (slack, threshold) cell is an independent CUSUM run over every entity.
A cell is a pure function of the read-only series and mean tables, so cells
can run on a worker pool and their hit lists are merged in cell order.

Design:
- Grid bounds are validated before any scoring starts
- Entities with too little history are skipped, not reported
- Cancellation is checked between cells; a cancelled sweep raises, never returns partial hits
"""

from __future__ import annotations

import concurrent.futures
import logging
import threading
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from pydantic import ValidationError

from src.core.config import GridAxis
from src.core.exceptions import (
    DataValidationError,
    InvalidHyperparameterError,
    SweepCancelledError,
)
from src.data.schema import EntityKey

from .cusum import CusumScorer, counts_of
from .schema import Hit

logger = logging.getLogger(__name__)

CountsByEntity = Mapping[EntityKey, Sequence[float]]


def build_grid(start: float, stop: float, step: float) -> List[float]:
    """
    Build an ascending, stop-inclusive hyperparameter axis.

    Example:
        build_grid(0.0, 1.0, 0.25) -> [0.0, 0.25, 0.5, 0.75, 1.0]

    Raises:
        InvalidHyperparameterError: If start < 0, step <= 0 or start > stop
    """
    try:
        axis = GridAxis(start=start, stop=stop, step=step)
    except ValidationError as e:
        raise InvalidHyperparameterError(f"Invalid grid bounds ({start}, {stop}, {step}): {e}") from e
    return axis.values()


def _validate_axis(name: str, values: Sequence[float]) -> List[float]:
    values = [float(v) for v in values]
    if not values:
        raise InvalidHyperparameterError(f"{name} grid is empty")
    for earlier, later in zip(values, values[1:]):
        if later <= earlier:
            raise InvalidHyperparameterError(f"{name} grid must be strictly ascending")
    for v in values:
        if not v >= 0.0:
            raise InvalidHyperparameterError(f"{name} values must be non-negative, got {v}")
    return values


def _as_counts(series_by_entity: Mapping[EntityKey, object]) -> Dict[EntityKey, Sequence[float]]:
    return {
        entity: counts_of(series)
        for entity, series in series_by_entity.items()
    }


def score_cell(
    counts_by_entity: CountsByEntity,
    mu_by_entity: Mapping[EntityKey, float],
    c: float,
    t: float,
) -> List[Hit]:
    """
    Run one grid cell over every eligible entity.

    Entities are expected to have at least two periods; callers filter
    short histories beforehand.
    """
    scorer = CusumScorer(c=c, t=t)
    return [
        Hit(entity=entity, c=c, t=t)
        for entity, counts in counts_by_entity.items()
        if scorer.is_hit(counts, mu_by_entity[entity])
    ]


@dataclass
class GridEnsembleRunner:
    """
    Exhaustive CUSUM sweep across the C x T grid.

    Notes:
    - max_workers=1 runs cells sequentially in the calling thread.
    - cancel_event, when set, aborts the sweep before the next cell starts.
    - min_periods entities below this history length never produce hits.
    """

    c_values: Sequence[float]
    t_values: Sequence[float]
    max_workers: int = 1
    min_periods: int = 2
    cancel_event: Optional[threading.Event] = None
    _cells: List[Tuple[float, float]] = field(init=False, repr=False, default_factory=list)

    def __post_init__(self) -> None:
        self.c_values = _validate_axis("C", self.c_values)
        self.t_values = _validate_axis("T", self.t_values)
        if self.max_workers < 1:
            raise InvalidHyperparameterError(f"max_workers must be >= 1, got {self.max_workers}")
        if self.min_periods < 2:
            raise InvalidHyperparameterError(f"min_periods must be >= 2, got {self.min_periods}")
        self._cells = [(c, t) for c in self.c_values for t in self.t_values]

    @property
    def cells(self) -> List[Tuple[float, float]]:
        return list(self._cells)

    def run(
        self,
        series_by_entity: Mapping[EntityKey, object],
        mu_by_entity: Mapping[EntityKey, float],
    ) -> List[Hit]:
        """
        Sweep every cell and return all hits in cell order.

        Args:
            series_by_entity: EntitySeries objects or plain count sequences
            mu_by_entity: Long-run mean per entity, computed once upstream

        Returns:
            Flat list of hits; an entity appears once per qualifying cell

        Raises:
            DataValidationError: If an entity has no mean
            SweepCancelledError: If cancel_event is set mid-sweep
        """
        counts_by_entity = _as_counts(series_by_entity)

        missing = [entity for entity in counts_by_entity if entity not in mu_by_entity]
        if missing:
            raise DataValidationError(f"No mean supplied for entities: {missing[:5]}")

        eligible = {
            entity: counts
            for entity, counts in counts_by_entity.items()
            if len(counts) >= self.min_periods
        }
        skipped = len(counts_by_entity) - len(eligible)
        if skipped:
            logger.debug("Skipping %d entities with fewer than %d periods", skipped, self.min_periods)

        logger.info(
            "Sweeping %d cells (%d C x %d T) over %d entities with %d worker(s)",
            len(self._cells),
            len(self.c_values),
            len(self.t_values),
            len(eligible),
            self.max_workers,
        )

        if not eligible:
            return []

        if self.max_workers == 1:
            cell_hits = self._run_sequential(eligible, mu_by_entity)
        else:
            cell_hits = self._run_pool(eligible, mu_by_entity)

        hits = [hit for per_cell in cell_hits for hit in per_cell]
        logger.info("Sweep complete: %d hits across %d entities", len(hits), len({h.entity for h in hits}))
        return hits

    def _check_cancelled(self, completed: int) -> None:
        if self.cancel_event is not None and self.cancel_event.is_set():
            logger.warning("Sweep cancelled after %d of %d cells", completed, len(self._cells))
            raise SweepCancelledError(f"Sweep cancelled after {completed} of {len(self._cells)} cells")

    def _run_sequential(
        self,
        eligible: CountsByEntity,
        mu_by_entity: Mapping[EntityKey, float],
    ) -> List[List[Hit]]:
        results: List[List[Hit]] = []
        for c, t in self._cells:
            self._check_cancelled(len(results))
            results.append(score_cell(eligible, mu_by_entity, c, t))
        return results

    def _run_cell_unless_cancelled(
        self,
        eligible: CountsByEntity,
        mu_by_entity: Mapping[EntityKey, float],
        c: float,
        t: float,
    ) -> Optional[List[Hit]]:
        if self.cancel_event is not None and self.cancel_event.is_set():
            return None
        return score_cell(eligible, mu_by_entity, c, t)

    def _run_pool(
        self,
        eligible: CountsByEntity,
        mu_by_entity: Mapping[EntityKey, float],
    ) -> List[List[Hit]]:
        with concurrent.futures.ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = [
                executor.submit(self._run_cell_unless_cancelled, eligible, mu_by_entity, c, t)
                for c, t in self._cells
            ]

            results: List[List[Hit]] = []
            for future in futures:
                cell_hits = future.result()
                if cell_hits is None:
                    for pending in futures:
                        pending.cancel()
                    self._check_cancelled(len(results))
                results.append(cell_hits)

        return results


def run_grid(
    series_by_entity: Mapping[EntityKey, object],
    mu_by_entity: Mapping[EntityKey, float],
    c_grid: Sequence[float],
    t_grid: Sequence[float],
    max_workers: int = 1,
    cancel_event: Optional[threading.Event] = None,
) -> List[Hit]:
    """
    Sweep the full (C, T) grid and collect every hit.

    Raises:
        InvalidHyperparameterError: If either grid is empty, unsorted or negative
    """
    runner = GridEnsembleRunner(
        c_values=c_grid,
        t_values=t_grid,
        max_workers=max_workers,
        cancel_event=cancel_event,
    )
    return runner.run(series_by_entity, mu_by_entity)
