"""
Exception hierarchy for folioscope.

Every error derives from ValueError, so callers that already guard indicator
calls with ``except ValueError`` keep working.
"""


class TechnicalAnalysisError(ValueError):
    """Base class for errors raised by the analysis library."""


class DataIntegrityError(TechnicalAnalysisError):
    """Price data failed the validation gate (empty, missing fields, high < low, negatives)."""


class InvalidParameterError(TechnicalAnalysisError):
    """An indicator parameter is out of range (e.g. fast period >= slow period)."""


class InvalidPeriodError(InvalidParameterError):
    """A window period is <= 0 or longer than the input."""


class InsufficientDataError(TechnicalAnalysisError):
    """The series is too short for the requested indicator."""


class SeriesLengthError(TechnicalAnalysisError):
    """Two series that must be paired have different or zero lengths."""
