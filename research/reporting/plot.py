"""Cumulative return chart: strategy vs buy-and-hold."""

from pathlib import Path

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

from research.backtesting.engine import BacktestCurves


def plot_curves(curves: BacktestCurves, path, title: str = "ARMA-GARCH strategy vs Buy & Hold") -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    plt.figure(figsize=(10, 4))
    plt.plot(curves.strategy_curve.index, curves.strategy_curve.values, color="green", label="ARMA-GARCH strategy")
    plt.plot(curves.benchmark_curve.index, curves.benchmark_curve.values, color="red", label="Buy & Hold")
    plt.title(title)
    plt.xlabel("Date")
    plt.ylabel("Cumulative log return")
    plt.legend(loc="lower left")
    plt.tight_layout()
    plt.savefig(path)
    plt.close()
    return path
