"""
Pytest configuration and shared fixtures.

Provides test configuration instances and sample report counts for unit and integration tests.
"""

from datetime import date
from typing import Any, Dict, List

import pandas as pd
import pytest

from src.core.config import Config, DetectionConfig, GridAxis


@pytest.fixture
def mock_config(tmp_path):
    """
    Fixture providing test configuration with a small grid.

    Ensures tests run consistently regardless of .env settings.

    Returns:
        Config: Test instance writing logs under a temporary directory
    """
    return Config(
        log_level="WARNING",
        logs_dir=tmp_path / "logs",
        detection=DetectionConfig(
            c_grid=GridAxis(start=0.0, stop=2.0, step=1.0),
            t_grid=GridAxis(start=1.0, stop=7.0, step=3.0),
            top_k=2,
        ),
    )


@pytest.fixture
def detection_settings(mock_config) -> DetectionConfig:
    """Detection settings with C in {0, 1, 2} and T in {1, 4, 7}."""
    return mock_config.detection


def _month(index: int) -> date:
    return date(2022 + index // 12, index % 12 + 1, 1)


@pytest.fixture
def sample_counts() -> Dict[tuple, List[int]]:
    """
    Monthly counts per entity.

    - ("N01", "retail"): spike in the second-to-last month, alarms in the last
    - ("N02", "retail"): smaller spike in the same month
    - ("N03", "banking"): constant, never alarms
    - ("N04", "banking"): single month of history
    """
    return {
        ("N01", "retail"): [5, 5, 5, 5, 40, 5],
        ("N02", "retail"): [5, 5, 5, 5, 15, 5],
        ("N03", "banking"): [7, 7, 7, 7, 7, 7],
        ("N04", "banking"): [3],
    }


@pytest.fixture
def sample_records(sample_counts) -> List[Dict[str, Any]]:
    """
    Fixture providing report records in the shape handed over by ingestion.

    Each monthly count is split across two records to exercise summation.
    """
    records = []
    for entity, counts in sample_counts.items():
        for i, count in enumerate(counts):
            half = count // 2
            records.append({"entity": entity, "period": _month(i), "count": half})
            records.append({"entity": entity, "period": _month(i).strftime("%Y-%m"), "count": count - half})
    return records


@pytest.fixture
def sample_frame(sample_counts) -> pd.DataFrame:
    """
    Fixture providing the same counts as a flat DataFrame.

    Returns:
        pd.DataFrame: columns neighbourhood, sector, period, count
    """
    rows = []
    for (neighbourhood, sector), counts in sample_counts.items():
        for i, count in enumerate(counts):
            rows.append({
                "neighbourhood": neighbourhood,
                "sector": sector,
                "period": _month(i).isoformat(),
                "count": count,
            })
    return pd.DataFrame(rows)


def pytest_configure(config):
    """
    Pytest hook for custom configuration.

    Registers custom markers used throughout tests.
    """
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running (deferred CI)"
    )
