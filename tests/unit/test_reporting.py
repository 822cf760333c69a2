"""
Tests for CSV/JSON export and charting.
"""

import json
import pandas as pd

from armagarch.signals.generator import Signal, SignalSeries, SignalType
from research.backtesting.engine import BacktestAccumulator
from research.backtesting.performance import PerformanceEvaluator
from research.reporting.export import export_curves, export_signals, export_summaries
from research.reporting.plot import plot_curves
from conftest import make_returns


def build_run():
    returns = make_returns([0.0, 0.01, -0.02, 0.015, 0.005, -0.01], start="2021-01-04")
    signals = SignalSeries()
    kinds = [SignalType.BUY, SignalType.SELL, SignalType.HOLD, SignalType.BUY]
    for i, kind in enumerate(kinds):
        as_of = returns.index[2 + i].date()
        signals.append(Signal(as_of=as_of, target_date=as_of, signal_type=kind, forecast_mean=0.001))
    curves = BacktestAccumulator().accumulate(signals, returns, 3)
    return signals, curves


def test_export_signals(temp_dir):
    signals, _ = build_run()
    path = export_signals(signals, temp_dir / "out" / "signals.csv")

    frame = pd.read_csv(path)
    assert len(frame) == 4
    assert list(frame["signal"]) == ["BUY", "SELL", "HOLD", "BUY"]


def test_export_curves(temp_dir):
    _, curves = build_run()
    path = export_curves(curves, temp_dir / "curves.csv")

    frame = pd.read_csv(path, index_col="date", parse_dates=True)
    assert len(frame) == 4
    assert frame.index[0] == pd.Timestamp("2021-01-06")
    assert frame["strategy_curve"].iloc[0] == 0.0


def test_export_summaries(temp_dir):
    _, curves = build_run()
    summary = PerformanceEvaluator().evaluate(curves.strategy_returns, name="strategy")
    path = export_summaries({"strategy": summary.to_dict()}, temp_dir / "performance.json")

    with open(path) as f:
        loaded = json.load(f)
    assert loaded["strategy"]["name"] == "strategy"
    assert loaded["strategy"]["n_periods"] == 4


def test_plot_curves(temp_dir):
    _, curves = build_run()
    path = plot_curves(curves, temp_dir / "curves.png")

    assert path.exists()
    assert path.stat().st_size > 0
