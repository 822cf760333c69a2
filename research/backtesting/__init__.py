"""
Walk-forward backtesting.

Key principles:
- One model fit per rolling window, no state carried between windows
- Signals are applied with a one-period lag (no look-ahead)
- Log returns accumulate additively
"""

from research.backtesting.engine import BacktestAccumulator, BacktestCurves, cumulative_curve
from research.backtesting.performance import PerformanceEvaluator, PerformanceSummary
from research.backtesting.walk_forward import WalkForwardRunner, WindowResult

__all__ = [
    "BacktestAccumulator",
    "BacktestCurves",
    "cumulative_curve",
    "PerformanceEvaluator",
    "PerformanceSummary",
    "WalkForwardRunner",
    "WindowResult",
]
