"""
Custom exceptions for the CUSUM change-detection engine.

These exceptions provide clear error semantics across the system.
Use them to distinguish between data issues, hyperparameter problems, and configuration errors.
"""


class ChangeDetectionError(Exception):
    """Base exception for change-detection failures."""
    pass


class InvalidHyperparameterError(ChangeDetectionError):
    """Raised when slack/threshold values or grid bounds are invalid."""
    pass


class MissingHistoryError(ChangeDetectionError):
    """Raised when an entity has too few periods to compare alarm states."""
    pass


class SweepCancelledError(ChangeDetectionError):
    """Raised when a grid sweep is cancelled before all cells complete."""
    pass


class DataValidationError(ChangeDetectionError):
    """Raised when input records fail validation or aggregation."""
    pass


class ConfigurationError(Exception):
    """Raised when configuration is invalid or missing."""
    pass
