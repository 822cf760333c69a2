"""
End-to-end pipeline: prices -> returns -> signals -> curves -> Sharpe.
"""

from dataclasses import dataclass
from typing import Callable, Optional
import structlog

import numpy as np
import pandas as pd

from armagarch.config import EngineConfig
from armagarch.data.returns import log_returns_from_prices, validate_return_series
from armagarch.diagnostics.stationarity import StationarityReport, check_stationarity
from armagarch.exceptions import ConfigurationError
from armagarch.signals.generator import SignalSeries
from research.backtesting.engine import BacktestAccumulator, BacktestCurves
from research.backtesting.performance import PerformanceEvaluator, PerformanceSummary
from research.backtesting.walk_forward import WalkForwardRunner

logger = structlog.get_logger(__name__)


@dataclass
class PipelineResult:
    """Everything a run produces."""
    returns: pd.Series
    signals: SignalSeries
    curves: BacktestCurves
    strategy_summary: PerformanceSummary
    benchmark_summary: PerformanceSummary
    stationarity: Optional[StationarityReport] = None
    window_results: Optional[list] = None

    def summaries(self) -> dict:
        return {
            "strategy": self.strategy_summary.to_dict(),
            "benchmark": self.benchmark_summary.to_dict(),
        }


def run_pipeline(
    prices: pd.Series,
    config: Optional[EngineConfig] = None,
    runner: Optional[WalkForwardRunner] = None,
    check_stationary: bool = True,
    on_backtest: Optional[Callable[[SignalSeries, BacktestCurves], None]] = None,
) -> PipelineResult:
    """
    Run the full walk-forward backtest on a price series.

    Args:
        prices: Adjusted close prices indexed by trading date
        config: Engine configuration (defaults used if None)
        runner: Pre-built runner (e.g. with custom components)
        check_stationary: Run the ADF precondition check
        on_backtest: Called with (signals, curves) before performance evaluation

    Returns:
        PipelineResult
    """
    config = (config or EngineConfig()).validate()
    returns = log_returns_from_prices(prices)
    return run_pipeline_on_returns(returns, config, runner, check_stationary, on_backtest)


def run_pipeline_on_returns(
    returns: pd.Series,
    config: Optional[EngineConfig] = None,
    runner: Optional[WalkForwardRunner] = None,
    check_stationary: bool = True,
    on_backtest: Optional[Callable[[SignalSeries, BacktestCurves], None]] = None,
) -> PipelineResult:
    """Same as ``run_pipeline`` starting from log returns."""
    config = (config or EngineConfig()).validate()
    returns = validate_return_series(returns, config.window_size)
    check_evaluation_range(returns.index[config.window_size - 1:], config)

    logger.info("pipeline_starting", observations=len(returns), **config.to_dict())

    stationarity = None
    if check_stationary:
        stationarity = check_stationarity(returns, config.stationarity_significance)

    runner = runner or WalkForwardRunner.from_config(config)
    window_results = runner.evaluate_windows(
        returns, config.window_size, config.max_p, config.max_q
    )
    signals = SignalSeries()
    for result in window_results:
        signals.append(result.signal)

    curves = BacktestAccumulator().accumulate(signals, returns, config.window_size)
    if on_backtest is not None:
        on_backtest(signals, curves)

    evaluator = PerformanceEvaluator(
        risk_free_annual=config.risk_free_annual_rate,
        periods_per_year=config.periods_per_year,
    )
    strategy_summary = evaluator.evaluate(
        curves.strategy_returns, config.eval_start, config.eval_end, name="strategy"
    )
    benchmark_summary = evaluator.evaluate(
        curves.benchmark_returns, config.eval_start, config.eval_end, name="buy_and_hold"
    )

    logger.info(
        "pipeline_complete",
        signals=signals.counts(),
        strategy_sharpe=strategy_summary.annualized_sharpe,
        benchmark_sharpe=benchmark_summary.annualized_sharpe,
    )

    return PipelineResult(
        returns=returns,
        signals=signals,
        curves=curves,
        strategy_summary=strategy_summary,
        benchmark_summary=benchmark_summary,
        stationarity=stationarity,
        window_results=window_results,
    )


def check_evaluation_range(backtest_dates: pd.DatetimeIndex, config: EngineConfig) -> None:
    """
    Fail before any window is fitted if the evaluation range misses the backtest.

    Raises:
        ConfigurationError: If no backtest date lies in [eval_start, eval_end]
    """
    dates = backtest_dates.normalize()
    mask = np.ones(len(dates), dtype=bool)
    if config.eval_start is not None:
        mask &= dates >= pd.Timestamp(config.eval_start)
    if config.eval_end is not None:
        mask &= dates <= pd.Timestamp(config.eval_end)

    if not mask.any():
        raise ConfigurationError(
            f"evaluation range {config.eval_start} .. {config.eval_end} does not overlap "
            f"the backtest dates {dates[0].date()} .. {dates[-1].date()}"
        )
