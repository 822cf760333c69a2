"""
Walk-forward signal generation.

For every rolling window of ``window_size`` returns (start offsets
0, 1, ..., len(returns) - window_size):
- Search the ARMA order by AIC
- Fit ARMA-GARCH(1,1)-SGED with that order
- Forecast the next trading day's mean
- Emit BUY / SELL / HOLD

Windows are independent: each reads a read-only slice of the return
series and produces one signal. With ``n_workers > 1`` disjoint ranges
of window indices run in separate processes (fresh estimator state per
process) and results are written back by window index.
"""

from concurrent.futures import ProcessPoolExecutor, as_completed
from dataclasses import dataclass
from datetime import date
from typing import Optional
import structlog

import numpy as np
import pandas as pd

from armagarch.config import EngineConfig
from armagarch.data.returns import validate_return_series
from armagarch.exceptions import ConfigurationError, FitError
from armagarch.models.arma_garch import ArmaGarchFitter
from armagarch.models.forecaster import Forecaster
from armagarch.models.order_search import OrderSearch
from armagarch.models.types import Failed, ModelOrder, NonConvergence
from armagarch.signals.generator import Signal, SignalGenerator, SignalSeries
from armagarch.utils.calendar import next_trading_date, to_date
from armagarch.utils.logging_setup import logging_settings, setup_logging

logger = structlog.get_logger(__name__)


@dataclass
class WindowResult:
    """Outcome of a single rolling window."""
    window_id: int
    as_of: date
    target_date: date
    signal: Signal
    status: str  # "fitted", "search_failed", "non_convergence"
    order: Optional[ModelOrder] = None
    aic: Optional[float] = None

    def to_dict(self) -> dict:
        return {
            "window_id": self.window_id,
            "as_of": self.as_of.isoformat(),
            "target_date": self.target_date.isoformat(),
            "signal": self.signal.signal_type.name,
            "status": self.status,
            "order": str(self.order) if self.order else None,
            "aic": self.aic,
            "forecast_mean": self.signal.forecast_mean,
        }


@dataclass
class _WindowComponents:
    """Per-window pipeline; pickled once per worker task."""
    order_search: OrderSearch
    fitter: ArmaGarchFitter
    forecaster: Forecaster
    signal_generator: SignalGenerator
    max_p: int
    max_q: int


def evaluate_window(
    window: np.ndarray,
    window_id: int,
    as_of: date,
    target_date: date,
    components: _WindowComponents,
) -> WindowResult:
    """Run order search, fit, forecast and signal mapping for one window."""
    outcome = components.order_search.search(window, components.max_p, components.max_q)

    if isinstance(outcome, Failed):
        signal = components.signal_generator.generate(outcome, None, as_of, target_date)
        logger.warning("window_hold_search_failed", window_id=window_id, as_of=str(as_of))
        return WindowResult(
            window_id=window_id,
            as_of=as_of,
            target_date=target_date,
            signal=signal,
            status="search_failed",
        )

    try:
        model = components.fitter.fit(window, outcome.order)
        forecast = components.forecaster.forecast(
            model, horizon=1, origin=as_of, target_date=target_date
        )
    except FitError as e:
        signal = components.signal_generator.generate(
            NonConvergence(order=outcome.order, reason=str(e)), None, as_of, target_date
        )
        logger.warning(
            "window_hold_non_convergence",
            window_id=window_id,
            as_of=str(as_of),
            order=str(outcome.order),
            error=str(e),
        )
        return WindowResult(
            window_id=window_id,
            as_of=as_of,
            target_date=target_date,
            signal=signal,
            status="non_convergence",
            order=outcome.order,
            aic=outcome.criterion,
        )

    signal = components.signal_generator.generate(outcome, forecast, as_of, target_date)
    logger.info(
        "window_complete",
        window_id=window_id,
        as_of=str(as_of),
        order=str(outcome.order),
        forecast_mean=forecast.mean,
        signal=signal.signal_type.name,
    )
    return WindowResult(
        window_id=window_id,
        as_of=as_of,
        target_date=target_date,
        signal=signal,
        status="fitted",
        order=outcome.order,
        aic=outcome.criterion,
    )


def _evaluate_range(
    values: np.ndarray,
    first_window: int,
    dates: list,
    window_size: int,
    components: _WindowComponents,
) -> list:
    """
    Evaluate a contiguous range of windows.

    ``values`` holds exactly the returns the range needs, starting at
    the first window's first return.
    """
    results = []
    for k, (as_of, target_date) in enumerate(dates):
        window = values[k:k + window_size]
        results.append(
            evaluate_window(window, first_window + k, as_of, target_date, components)
        )
    return results


class WalkForwardRunner:
    """
    Rolling-window ARMA-GARCH signal generator.

    No state survives from one window to the next apart from the
    read-only return series.
    """

    def __init__(
        self,
        window_size: int = 500,
        max_p: int = 4,
        max_q: int = 4,
        n_workers: int = 1,
        order_search: Optional[OrderSearch] = None,
        fitter: Optional[ArmaGarchFitter] = None,
        forecaster: Optional[Forecaster] = None,
        signal_generator: Optional[SignalGenerator] = None,
    ):
        """
        Initialize walk-forward runner.

        Args:
            window_size: Returns per rolling window
            max_p: Maximum AR order searched
            max_q: Maximum MA order searched
            n_workers: Worker processes (1 = run in-process)
            order_search: Order search (defaults to statsmodels ARIMA by AIC)
            fitter: Conditional model fitter (defaults to ARMA-GARCH-SGED)
            forecaster: Forecaster
            signal_generator: Signal generator
        """
        if n_workers < 1:
            raise ConfigurationError(f"n_workers must be >= 1, got {n_workers}")

        self.window_size = window_size
        self.max_p = max_p
        self.max_q = max_q
        self.n_workers = n_workers
        self.order_search = order_search or OrderSearch()
        self.fitter = fitter or ArmaGarchFitter()
        self.forecaster = forecaster or Forecaster()
        self.signal_generator = signal_generator or SignalGenerator()

        logger.info(
            "walk_forward_runner_initialized",
            window_size=window_size,
            max_p=max_p,
            max_q=max_q,
            n_workers=n_workers,
        )

    @classmethod
    def from_config(cls, config: EngineConfig, **components) -> "WalkForwardRunner":
        """Build a runner from an EngineConfig."""
        if "fitter" not in components or components["fitter"] is None:
            components["fitter"] = ArmaGarchFitter(solvers=config.solvers)
        return cls(
            window_size=config.window_size,
            max_p=config.max_p,
            max_q=config.max_q,
            n_workers=config.n_workers,
            **components,
        )

    def run(
        self,
        returns: pd.Series,
        window_size: Optional[int] = None,
        max_p: Optional[int] = None,
        max_q: Optional[int] = None,
    ) -> SignalSeries:
        """
        Generate one signal per rolling window.

        Args:
            returns: Daily log returns indexed by trading date
            window_size: Override the configured window size
            max_p: Override the configured maximum AR order
            max_q: Override the configured maximum MA order

        Returns:
            SignalSeries in window order

        Raises:
            ConfigurationError: Invalid window size or order bounds
            InvalidInputError: Malformed or too-short return series
        """
        results = self.evaluate_windows(returns, window_size, max_p, max_q)

        signals = SignalSeries()
        for result in results:
            signals.append(result.signal)
        return signals

    def evaluate_windows(
        self,
        returns: pd.Series,
        window_size: Optional[int] = None,
        max_p: Optional[int] = None,
        max_q: Optional[int] = None,
    ) -> list:
        """Same as ``run`` but returns per-window WindowResult records."""
        window_size = self.window_size if window_size is None else window_size
        max_p = self.max_p if max_p is None else max_p
        max_q = self.max_q if max_q is None else max_q
        self._validate_settings(window_size, max_p, max_q)

        returns = validate_return_series(returns, window_size)
        values = returns.to_numpy(dtype=float)
        index = returns.index

        n_windows = len(values) - window_size + 1
        dates = [
            (to_date(index[i + window_size - 1]), next_trading_date(index, i + window_size - 1))
            for i in range(n_windows)
        ]

        components = _WindowComponents(
            order_search=self.order_search,
            fitter=self.fitter,
            forecaster=self.forecaster,
            signal_generator=self.signal_generator,
            max_p=max_p,
            max_q=max_q,
        )

        logger.info(
            "walk_forward_starting",
            n_windows=n_windows,
            window_size=window_size,
            first_window_end=str(dates[0][0]),
            last_window_end=str(dates[-1][0]),
        )

        if self.n_workers == 1 or n_windows == 1:
            results = _evaluate_range(values, 0, dates, window_size, components)
        else:
            results = self._evaluate_parallel(values, dates, window_size, components)

        statuses = [r.status for r in results]
        logger.info(
            "walk_forward_complete",
            n_windows=len(results),
            fitted=statuses.count("fitted"),
            search_failed=statuses.count("search_failed"),
            non_convergence=statuses.count("non_convergence"),
        )
        return results

    def _evaluate_parallel(self, values, dates, window_size, components) -> list:
        """Evaluate disjoint window ranges in worker processes."""
        n_windows = len(dates)
        n_chunks = min(n_windows, self.n_workers * 4)
        ranges = [r for r in np.array_split(np.arange(n_windows), n_chunks) if len(r)]

        results: list = [None] * n_windows

        pool_kwargs = {"max_workers": self.n_workers}
        settings = logging_settings()
        if settings is not None:
            pool_kwargs.update(initializer=setup_logging, initargs=settings)

        with ProcessPoolExecutor(**pool_kwargs) as executor:
            futures = {}
            for chunk in ranges:
                first, last = int(chunk[0]), int(chunk[-1])
                future = executor.submit(
                    _evaluate_range,
                    values[first:last + window_size].copy(),
                    first,
                    dates[first:last + 1],
                    window_size,
                    components,
                )
                futures[future] = (first, last)

            for future in as_completed(futures):
                first, last = futures[future]
                for offset, result in enumerate(future.result()):
                    results[first + offset] = result
                logger.debug("window_range_complete", first=first, last=last)

        return results

    @staticmethod
    def _validate_settings(window_size: int, max_p: int, max_q: int) -> None:
        if window_size < 2:
            raise ConfigurationError(f"window_size must be >= 2, got {window_size}")
        if max_p < 0 or max_q < 0:
            raise ConfigurationError(
                f"max_p and max_q must be non-negative, got ({max_p}, {max_q})"
            )
        if max_p == 0 and max_q == 0:
            raise ConfigurationError("max_p and max_q cannot both be 0")
