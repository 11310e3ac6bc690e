"""Errors raised by the AQI report pipeline."""


class AQIReportError(Exception):
    """Base class for all pipeline errors."""


class DataValidationError(AQIReportError, ValueError):
    """Raised when the raw input cannot be trusted (bad dates, missing columns)."""


class InsufficientDataError(AQIReportError):
    """Raised when a series is too short for the requested order or period."""


class ModelFitError(AQIReportError):
    """Raised when a model fit does not converge or fails numerically."""
