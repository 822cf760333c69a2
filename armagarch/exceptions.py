"""
Exception hierarchy for the forecasting engine.

Two families:
- Fatal: bad input or configuration. Raised before any window is evaluated.
- Recoverable: a single estimation failed. Caught by the caller and
  downgraded (candidate excluded, or window set to HOLD).
"""


class ArmaGarchError(Exception):
    """Base class for all engine errors."""


class InvalidInputError(ArmaGarchError, ValueError):
    """Malformed price or return series."""


class ConfigurationError(ArmaGarchError, ValueError):
    """Invalid engine configuration."""


class FitError(ArmaGarchError):
    """A model estimation raised an error or an escalated warning."""

    def __init__(self, message: str, order=None):
        super().__init__(message)
        self.order = order


class ConvergenceError(FitError):
    """Every optimizer in the hybrid chain failed to produce a valid fit."""


class EvaluationError(ArmaGarchError, ValueError):
    """Performance evaluation requested over an empty or inverted range."""
