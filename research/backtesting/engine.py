"""
Backtest accumulation.

Turns a signal series into strategy and buy-and-hold return curves.

Rules:
- A signal computed from the window ending on day D is applied to the
  realized return of the next trading day (lag of exactly one period).
- The backtest range starts on the first window's last date; nothing is
  held entering it, so the first strategy and benchmark returns are 0.
- Returns are log returns, so cumulative curves are plain prefix sums.
"""

from dataclasses import dataclass
import structlog

import numpy as np
import pandas as pd

from armagarch.data.returns import validate_return_series
from armagarch.exceptions import InvalidInputError
from armagarch.signals.generator import SignalSeries

logger = structlog.get_logger(__name__)


@dataclass
class BacktestCurves:
    """Per-period returns and cumulative log-return curves."""
    positions: pd.Series          # lagged signal applied on each date
    strategy_returns: pd.Series
    benchmark_returns: pd.Series
    strategy_curve: pd.Series
    benchmark_curve: pd.Series

    @property
    def total_strategy_return(self) -> float:
        """Final cumulative log return of the strategy."""
        return float(self.strategy_curve.iloc[-1]) if len(self.strategy_curve) else 0.0

    @property
    def total_benchmark_return(self) -> float:
        """Final cumulative log return of buy-and-hold."""
        return float(self.benchmark_curve.iloc[-1]) if len(self.benchmark_curve) else 0.0

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame({
            "position": self.positions,
            "strategy_return": self.strategy_returns,
            "benchmark_return": self.benchmark_returns,
            "strategy_curve": self.strategy_curve,
            "benchmark_curve": self.benchmark_curve,
        })


class BacktestAccumulator:
    """
    Lag, apply and accumulate walk-forward signals.

    Stateless: every call works on its own inputs only.
    """

    def __init__(self, lag: int = 1):
        """
        Args:
            lag: Periods between signal generation and application.
                 1 = trade on the day after the forecast origin.
        """
        if lag < 1:
            raise ValueError(f"lag must be >= 1 (no look-ahead), got {lag}")
        self.lag = lag

    def accumulate(
        self,
        signals: SignalSeries,
        returns: pd.Series,
        window_size: int,
    ) -> BacktestCurves:
        """
        Build strategy and benchmark curves.

        Args:
            signals: One signal per window, in window order
            returns: The return series the signals were generated from
            window_size: Window size used to generate the signals

        Returns:
            BacktestCurves over the dates from the first window end onward

        Raises:
            InvalidInputError: If signal dates do not match the window ends
        """
        returns = validate_return_series(returns, window_size)
        realized = returns.iloc[window_size - 1:].astype(float)

        directions = signals.to_series()
        if len(directions) != len(realized) or not directions.index.equals(
            realized.index.normalize()
        ):
            raise InvalidInputError(
                f"signal dates do not line up with window end dates: "
                f"{len(directions)} signals for {len(realized)} window ends"
            )

        positions = directions.shift(self.lag).fillna(0.0)
        positions.index = realized.index
        positions.name = "position"

        strategy = positions * realized
        strategy.iloc[0] = 0.0
        strategy.name = "strategy_return"

        benchmark = realized.copy()
        benchmark.iloc[0] = 0.0
        benchmark.name = "benchmark_return"

        curves = BacktestCurves(
            positions=positions,
            strategy_returns=strategy,
            benchmark_returns=benchmark,
            strategy_curve=cumulative_curve(strategy).rename("strategy_curve"),
            benchmark_curve=cumulative_curve(benchmark).rename("benchmark_curve"),
        )

        logger.info(
            "backtest_accumulated",
            periods=len(realized),
            start=str(realized.index[0].date()),
            end=str(realized.index[-1].date()),
            strategy_total=curves.total_strategy_return,
            benchmark_total=curves.total_benchmark_return,
        )
        return curves


def cumulative_curve(period_returns: pd.Series) -> pd.Series:
    """Prefix sum of per-period log returns."""
    return pd.Series(
        np.cumsum(period_returns.to_numpy(dtype=float)),
        index=period_returns.index,
        name=period_returns.name,
    )
