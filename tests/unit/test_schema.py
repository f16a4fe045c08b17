"""
Unit tests for record schema.

Tests the Pydantic models and key/period normalization.
"""

import pytest
from datetime import date, datetime

from pydantic import ValidationError

from src.data.schema import EntitySeries, ReportRecord, normalize_entity, normalize_period


class TestNormalizeEntity:
    """Test entity key normalization."""

    def test_string_becomes_single_field_key(self):
        assert normalize_entity("N01") == ("N01",)

    def test_pair_is_kept(self):
        assert normalize_entity(["N01", "retail"]) == ("N01", "retail")

    def test_rejects_three_fields(self):
        with pytest.raises(ValueError):
            normalize_entity(("a", "b", "c"))

    def test_rejects_empty_field(self):
        with pytest.raises(ValueError):
            normalize_entity(("N01", ""))


class TestNormalizePeriod:
    """Test month normalization."""

    def test_month_string(self):
        assert normalize_period("2023-04") == date(2023, 4, 1)

    def test_full_date_string_truncated_to_month(self):
        assert normalize_period("2023-04-17") == date(2023, 4, 1)

    def test_datetime_truncated_to_month(self):
        assert normalize_period(datetime(2023, 4, 17, 9, 30)) == date(2023, 4, 1)

    def test_invalid_string(self):
        with pytest.raises(ValueError):
            normalize_period("April")


class TestReportRecord:
    """Test ReportRecord model."""

    def test_minimal_valid_record(self):
        record = ReportRecord(entity="N01", period="2023-01", count=4)

        assert record.entity == ("N01",)
        assert record.period == date(2023, 1, 1)
        assert record.count == 4

    def test_negative_count_rejected(self):
        with pytest.raises(ValidationError):
            ReportRecord(entity="N01", period="2023-01", count=-1)

    def test_record_is_immutable(self):
        record = ReportRecord(entity=("N01", "retail"), period="2023-01", count=1)
        with pytest.raises(ValidationError):
            record.count = 2


class TestEntitySeries:
    """Test EntitySeries model."""

    def test_valid_series(self):
        series = EntitySeries(
            entity=("N01",),
            periods=[date(2023, 1, 1), date(2023, 3, 1)],
            counts=[2, 4],
            mu=3.0,
        )
        assert series.n_periods == 2

    def test_misaligned_lengths_rejected(self):
        with pytest.raises(ValidationError):
            EntitySeries(entity=("N01",), periods=[date(2023, 1, 1)], counts=[1, 2], mu=1.5)

    def test_unsorted_periods_rejected(self):
        with pytest.raises(ValidationError):
            EntitySeries(
                entity=("N01",),
                periods=[date(2023, 2, 1), date(2023, 1, 1)],
                counts=[1, 2],
                mu=1.5,
            )

    def test_empty_series_rejected(self):
        with pytest.raises(ValidationError):
            EntitySeries(entity=("N01",), periods=[], counts=[], mu=0.0)
