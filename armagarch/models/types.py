"""
Value types shared by the order search, fitter and forecaster.
"""

from dataclasses import dataclass
from datetime import date
from typing import Any, Optional, Union


@dataclass(frozen=True, order=True)
class ModelOrder:
    """
    ARMA(p, q) order of the conditional mean.

    Differencing is fixed at 0: the input is already a return series.
    """
    p: int
    q: int

    def __post_init__(self):
        if self.p < 0 or self.q < 0:
            raise ValueError(f"orders must be non-negative, got ({self.p}, {self.q})")

    @property
    def arima_order(self) -> tuple:
        """(p, d, q) tuple with d = 0."""
        return (self.p, 0, self.q)

    @property
    def is_white_noise(self) -> bool:
        return self.p == 0 and self.q == 0

    def __str__(self) -> str:
        return f"ARMA({self.p},{self.q})"


@dataclass(frozen=True)
class Fitted:
    """Successful order search: best order and its information criterion."""
    order: ModelOrder
    criterion: float
    model: Any = None

    @property
    def succeeded(self) -> bool:
        return True


@dataclass(frozen=True)
class Failed:
    """No candidate order could be fitted."""
    reason: str = "no_candidate_converged"

    @property
    def succeeded(self) -> bool:
        return False


FitOutcome = Union[Fitted, Failed]


@dataclass(frozen=True)
class Forecast:
    """
    One-step-ahead forecast.

    ``origin`` is the last date of the fitted window; ``date`` is the
    next trading date, the one being forecast.
    """
    date: date
    mean: float
    origin: Optional[date] = None
    sigma: Optional[float] = None


@dataclass(frozen=True)
class NonConvergence:
    """The conditional model for the chosen order failed to converge."""
    order: ModelOrder
    reason: str = ""

    @property
    def succeeded(self) -> bool:
        return False
