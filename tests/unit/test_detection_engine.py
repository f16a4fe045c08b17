"""
Unit tests for the ensemble change-detection engine.
"""

import threading

import pytest

from src.core.config import DetectionConfig, GridAxis
from src.core.exceptions import SweepCancelledError
from src.detection.engine import ChangeDetectionEngine


def test_engine_ranks_flagged_entities(detection_settings, sample_records):
    engine = ChangeDetectionEngine(settings=detection_settings)

    report = engine.run(sample_records)

    assert report.entity_count == 4
    assert report.eligible_count == 3
    assert report.c_values == [0.0, 1.0, 2.0]
    assert report.t_values == [1.0, 4.0, 7.0]
    assert report.cell_count == 9
    assert len(report.hits) == 17
    assert [(r.entity, r.votes, r.order) for r in report.ranked] == [
        (("N01", "retail"), 9, 1),
        (("N02", "retail"), 8, 2),
    ]
    assert report.elbow == 1
    assert report.top_k == 2
    assert report.selected == report.ranked


def test_engine_top_k_truncates(detection_settings, sample_records):
    settings = detection_settings.model_copy(update={"top_k": 1})

    report = ChangeDetectionEngine(settings=settings).run(sample_records)

    assert [r.entity for r in report.selected] == [("N01", "retail")]
    assert len(report.ranked) == 2


def test_engine_empty_input(detection_settings):
    report = ChangeDetectionEngine(settings=detection_settings).run([])

    assert report.entity_count == 0
    assert report.hits == []
    assert report.ranked == []
    assert report.selected == []
    assert report.elbow is None


def test_engine_uses_global_config_by_default():
    engine = ChangeDetectionEngine()

    assert engine.settings.top_k >= 0


def test_engine_cancel_event(detection_settings, sample_records):
    event = threading.Event()
    event.set()
    engine = ChangeDetectionEngine(settings=detection_settings, cancel_event=event)

    with pytest.raises(SweepCancelledError):
        engine.run(sample_records)


def test_engine_worker_pool(detection_settings, sample_records):
    sequential = ChangeDetectionEngine(settings=detection_settings).run(sample_records)
    pooled_settings = detection_settings.model_copy(update={"max_workers": 3})
    pooled = ChangeDetectionEngine(settings=pooled_settings).run(sample_records)

    assert pooled.hits == sequential.hits
    assert pooled.ranked == sequential.ranked


def test_engine_single_value_grid(sample_records):
    settings = DetectionConfig(
        c_grid=GridAxis(start=0.0, stop=0.0, step=1.0),
        t_grid=GridAxis(start=5.0, stop=5.0, step=1.0),
        top_k=5,
    )

    report = ChangeDetectionEngine(settings=settings).run(sample_records)

    assert report.cell_count == 1
    assert {r.entity for r in report.ranked} == {("N01", "retail"), ("N02", "retail")}
