"""
Tests for signal lagging and curve accumulation.
"""

import pytest
import numpy as np
import pandas as pd
from datetime import timedelta

from armagarch.exceptions import InvalidInputError
from armagarch.signals.generator import Signal, SignalSeries, SignalType
from research.backtesting.engine import BacktestAccumulator, cumulative_curve
from conftest import make_returns


def signals_for(returns, window_size, kinds):
    """Signal series dated on the window ends of ``returns``."""
    series = SignalSeries()
    ends = returns.index[window_size - 1:]
    for end, kind in zip(ends, kinds):
        series.append(Signal(
            as_of=end.date(),
            target_date=(end + timedelta(days=1)).date(),
            signal_type=kind,
        ))
    return series


@pytest.fixture
def three_windows():
    # window_size 3: window ends on r[2], r[3], r[4]
    returns = make_returns([0.0, 0.01, 0.02, -0.03, 0.04])
    signals = signals_for(returns, 3, [SignalType.BUY, SignalType.SELL, SignalType.HOLD])
    return returns, signals


class TestLag:

    def test_signal_applies_to_next_day(self, three_windows):
        returns, signals = three_windows
        curves = BacktestAccumulator().accumulate(signals, returns, 3)

        # day r[2]: nothing held; r[3]: BUY from r[2]; r[4]: SELL from r[3]
        assert list(curves.positions) == [0.0, 1.0, -1.0]
        np.testing.assert_allclose(curves.strategy_returns.to_numpy(), [0.0, -0.03, -0.04])
        np.testing.assert_allclose(curves.strategy_curve.to_numpy(), [0.0, -0.03, -0.07])

    def test_other_lags_give_different_curves(self, three_windows):
        returns, signals = three_windows
        one_day = BacktestAccumulator(lag=1).accumulate(signals, returns, 3)
        two_day = BacktestAccumulator(lag=2).accumulate(signals, returns, 3)

        # applying each signal to its own window-end day
        directions = signals.to_series().to_numpy()
        realized = returns.iloc[2:].to_numpy()
        same_day = np.cumsum(np.r_[0.0, (directions * realized)[1:]])

        assert not np.allclose(one_day.strategy_curve.to_numpy(), two_day.strategy_curve.to_numpy())
        assert not np.allclose(one_day.strategy_curve.to_numpy(), same_day)

    def test_zero_lag_rejected(self):
        with pytest.raises(ValueError):
            BacktestAccumulator(lag=0)


class TestCurves:

    def test_benchmark_starts_at_zero(self, three_windows):
        returns, signals = three_windows
        curves = BacktestAccumulator().accumulate(signals, returns, 3)

        assert curves.benchmark_returns.iloc[0] == 0.0
        np.testing.assert_allclose(curves.benchmark_curve.to_numpy(), [0.0, -0.03, 0.01])
        assert curves.total_benchmark_return == pytest.approx(0.01)

    def test_curves_are_prefix_sums(self):
        rng = np.random.default_rng(3)
        returns = make_returns(rng.normal(0, 0.01, 30))
        pool = [SignalType.BUY, SignalType.SELL, SignalType.HOLD]
        kinds = [pool[i] for i in rng.integers(0, 3, size=26)]
        signals = signals_for(returns, 5, kinds)

        curves = BacktestAccumulator().accumulate(signals, returns, 5)

        assert curves.strategy_curve.iloc[0] == 0.0
        for t in range(1, len(curves.strategy_curve)):
            step = curves.strategy_curve.iloc[t] - curves.strategy_curve.iloc[t - 1]
            assert step == pytest.approx(curves.strategy_returns.iloc[t], abs=1e-12)

    def test_always_long_tracks_benchmark(self):
        returns = make_returns(np.linspace(-0.02, 0.02, 10))
        signals = signals_for(returns, 4, [SignalType.BUY] * 7)

        curves = BacktestAccumulator().accumulate(signals, returns, 4)

        np.testing.assert_allclose(curves.strategy_curve.to_numpy(), curves.benchmark_curve.to_numpy())

    def test_frame_columns(self, three_windows):
        returns, signals = three_windows
        frame = BacktestAccumulator().accumulate(signals, returns, 3).to_frame()
        assert list(frame.columns) == [
            "position", "strategy_return", "benchmark_return", "strategy_curve", "benchmark_curve",
        ]
        assert len(frame) == 3

    def test_cumulative_curve(self):
        period = pd.Series([0.0, 0.5, -0.25], index=pd.bdate_range("2021-01-04", periods=3))
        assert list(cumulative_curve(period)) == [0.0, 0.5, 0.25]


class TestMismatch:

    def test_missing_signal(self, three_windows):
        returns, signals = three_windows
        short = SignalSeries(signals.signals[:2])
        with pytest.raises(InvalidInputError):
            BacktestAccumulator().accumulate(short, returns, 3)

    def test_wrong_dates(self, three_windows):
        returns, signals = three_windows
        with pytest.raises(InvalidInputError):
            BacktestAccumulator().accumulate(signals, returns, 2)
