"""
Core module: Configuration, logging, and exception handling.
"""

from .config import Config, DetectionConfig, GridAxis, config
from .exceptions import (
    ChangeDetectionError,
    ConfigurationError,
    DataValidationError,
    InvalidHyperparameterError,
    MissingHistoryError,
    SweepCancelledError,
)

__all__ = [
    "Config",
    "DetectionConfig",
    "GridAxis",
    "config",
    "ChangeDetectionError",
    "ConfigurationError",
    "DataValidationError",
    "InvalidHyperparameterError",
    "MissingHistoryError",
    "SweepCancelledError",
]
