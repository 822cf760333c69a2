"""
Trading signal generation.

Mapping:
- Order search failed, or the conditional fit did not converge -> HOLD (0)
- Forecast mean >= 0 -> BUY (+1)   (zero belongs to BUY)
- Forecast mean <  0 -> SELL (-1)
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Iterator, List, Optional, Union
import structlog

import pandas as pd

from armagarch.models.types import Failed, Fitted, Forecast, ModelOrder, NonConvergence

logger = structlog.get_logger(__name__)


class SignalType(Enum):
    """Position direction. Value is the exposure multiplier."""
    BUY = 1
    SELL = -1
    HOLD = 0


@dataclass(frozen=True)
class Signal:
    """
    Trading signal for one window.

    ``as_of`` is the last date of the window the signal was computed
    from; ``target_date`` is the trading date it is meant for.
    """
    as_of: date
    target_date: date
    signal_type: SignalType
    forecast_mean: Optional[float] = None
    order: Optional[ModelOrder] = None
    reason: Optional[str] = None

    @property
    def value(self) -> int:
        return self.signal_type.value

    def to_dict(self) -> dict:
        return {
            "as_of": self.as_of.isoformat(),
            "target_date": self.target_date.isoformat(),
            "signal": self.signal_type.name,
            "value": self.value,
            "forecast_mean": self.forecast_mean,
            "order": str(self.order) if self.order else None,
            "reason": self.reason,
        }


@dataclass
class SignalSeries:
    """Signals in window order, one per window."""
    signals: List[Signal] = field(default_factory=list)

    def append(self, signal: Signal) -> None:
        if self.signals and signal.as_of <= self.signals[-1].as_of:
            raise ValueError(
                f"signal dates must be strictly increasing: {signal.as_of} after {self.signals[-1].as_of}"
            )
        self.signals.append(signal)

    def __len__(self) -> int:
        return len(self.signals)

    def __iter__(self) -> Iterator[Signal]:
        return iter(self.signals)

    def __getitem__(self, item: int) -> Signal:
        return self.signals[item]

    @property
    def values(self) -> List[int]:
        return [s.value for s in self.signals]

    def to_series(self) -> pd.Series:
        """Numeric signal values indexed by window end date."""
        index = pd.DatetimeIndex([pd.Timestamp(s.as_of) for s in self.signals], name="date")
        return pd.Series(self.values, index=index, name="signal", dtype=float)

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame([s.to_dict() for s in self.signals])

    def counts(self) -> dict:
        counts = {t.name: 0 for t in SignalType}
        for s in self.signals:
            counts[s.signal_type.name] += 1
        return counts


class SignalGenerator:
    """Maps a fit outcome and forecast to a discrete signal."""

    def generate(
        self,
        outcome: Union[Fitted, Failed, NonConvergence],
        forecast: Optional[Forecast],
        as_of: date,
        target_date: date,
    ) -> Signal:
        """
        Build the signal for one window.

        Args:
            outcome: Order search result, or NonConvergence from the fitter
            forecast: Forecast, required when ``outcome`` is Fitted
            as_of: Last date of the window
            target_date: Trading date the signal applies to

        Returns:
            Signal
        """
        if isinstance(outcome, Failed):
            return Signal(
                as_of=as_of,
                target_date=target_date,
                signal_type=SignalType.HOLD,
                reason=f"order_search_failed: {outcome.reason}",
            )

        if isinstance(outcome, NonConvergence):
            return Signal(
                as_of=as_of,
                target_date=target_date,
                signal_type=SignalType.HOLD,
                order=outcome.order,
                reason=f"non_convergence: {outcome.reason}",
            )

        if forecast is None:
            raise ValueError("a forecast is required for a fitted outcome")

        signal_type = SignalType.SELL if forecast.mean < 0 else SignalType.BUY

        return Signal(
            as_of=as_of,
            target_date=target_date,
            signal_type=signal_type,
            forecast_mean=forecast.mean,
            order=outcome.order,
        )
