"""
Risk-adjusted performance over an evaluation sub-range.

    daily_rf          = risk_free_annual / periods_per_year
    daily_sharpe      = (mean - daily_rf) / stddev      (sample stddev)
    annualized_sharpe = daily_sharpe * sqrt(periods_per_year)

Zero variance (or fewer than 2 observations) is not an error: both
Sharpe ratios are reported as 0.0 and the summary is flagged
``degenerate``.
"""

from dataclasses import dataclass
from datetime import date
from typing import Optional
import structlog

import numpy as np
import pandas as pd

from armagarch.exceptions import EvaluationError

logger = structlog.get_logger(__name__)

DEGENERATE_SHARPE = 0.0


@dataclass(frozen=True)
class PerformanceSummary:
    """Return statistics for one series over one date range."""
    mean: float
    stddev: float
    daily_sharpe: float
    annualized_sharpe: float
    n_periods: int
    start: date
    end: date
    degenerate: bool = False
    name: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "n_periods": self.n_periods,
            "mean": self.mean,
            "stddev": self.stddev,
            "daily_sharpe": self.daily_sharpe,
            "annualized_sharpe": self.annualized_sharpe,
            "degenerate": self.degenerate,
        }


class PerformanceEvaluator:
    """Sharpe ratio evaluation for strategy and benchmark returns."""

    def __init__(self, risk_free_annual: float = 0.02, periods_per_year: int = 252):
        """
        Args:
            risk_free_annual: Annual risk-free rate (0.02 = 2% p.a.)
            periods_per_year: Return periods per year (252 trading days)
        """
        if periods_per_year <= 0:
            raise ValueError(f"periods_per_year must be positive, got {periods_per_year}")
        self.risk_free_annual = risk_free_annual
        self.periods_per_year = periods_per_year

    def evaluate(
        self,
        returns: pd.Series,
        start: Optional[date] = None,
        end: Optional[date] = None,
        name: Optional[str] = None,
    ) -> PerformanceSummary:
        """
        Evaluate per-period returns between ``start`` and ``end`` inclusive.

        Args:
            returns: Per-period log returns indexed by date
            start: First date (None = first available)
            end: Last date (None = last available)
            name: Label carried into the summary

        Returns:
            PerformanceSummary

        Raises:
            EvaluationError: If the range is inverted or holds no observations
        """
        if not isinstance(returns.index, pd.DatetimeIndex):
            returns = returns.copy()
            returns.index = pd.DatetimeIndex(pd.to_datetime(returns.index))

        start_ts = pd.Timestamp(start) if start is not None else returns.index.min()
        end_ts = pd.Timestamp(end) if end is not None else returns.index.max()
        if len(returns) == 0:
            raise EvaluationError("cannot evaluate an empty return series")
        if start_ts > end_ts:
            raise EvaluationError(f"evaluation start {start_ts.date()} is after end {end_ts.date()}")

        dates = returns.index.normalize()
        mask = (dates >= start_ts.normalize()) & (dates <= end_ts.normalize())
        window = pd.to_numeric(returns[mask], errors="coerce").dropna()

        if window.empty:
            raise EvaluationError(
                f"no observations between {start_ts.date()} and {end_ts.date()}"
            )

        values = window.to_numpy(dtype=float)
        mean = float(np.mean(values))
        stddev = float(np.std(values, ddof=1)) if len(values) > 1 else float("nan")
        daily_rf = self.risk_free_annual / self.periods_per_year

        degenerate = not np.isfinite(stddev) or stddev == 0.0
        if degenerate:
            daily_sharpe = DEGENERATE_SHARPE
            annualized_sharpe = DEGENERATE_SHARPE
            logger.warning(
                "sharpe_degenerate",
                name=name,
                n_periods=len(values),
                stddev=stddev,
            )
        else:
            daily_sharpe = (mean - daily_rf) / stddev
            annualized_sharpe = daily_sharpe * np.sqrt(self.periods_per_year)

        summary = PerformanceSummary(
            mean=mean,
            stddev=stddev,
            daily_sharpe=float(daily_sharpe),
            annualized_sharpe=float(annualized_sharpe),
            n_periods=len(values),
            start=start_ts.date(),
            end=end_ts.date(),
            degenerate=degenerate,
            name=name,
        )

        logger.info(
            "performance_evaluated",
            name=name,
            start=str(summary.start),
            end=str(summary.end),
            annualized_sharpe=summary.annualized_sharpe,
        )
        return summary

    def evaluate_curve(
        self,
        curve: pd.Series,
        start: Optional[date] = None,
        end: Optional[date] = None,
        name: Optional[str] = None,
    ) -> PerformanceSummary:
        """Evaluate a cumulative log-return curve by differencing it first."""
        return self.evaluate(curve_to_returns(curve), start, end, name)


def curve_to_returns(curve: pd.Series) -> pd.Series:
    """Per-period returns from a cumulative log-return curve (inverse of cumsum)."""
    period = curve.diff()
    if len(period):
        period.iloc[0] = curve.iloc[0]
    return period
