"""Tabular export of run outputs (CSV / JSON)."""

import json
from pathlib import Path
import structlog

from armagarch.signals.generator import SignalSeries
from research.backtesting.engine import BacktestCurves

logger = structlog.get_logger(__name__)


def export_signals(signals: SignalSeries, path) -> Path:
    """Write (as_of, target_date, signal, value, ...) rows to CSV."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    signals.to_frame().to_csv(path, index=False)
    logger.info("signals_exported", path=str(path), rows=len(signals))
    return path


def export_curves(curves: BacktestCurves, path) -> Path:
    """Write per-period returns and cumulative curves to CSV, one row per date."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    frame = curves.to_frame()
    frame.index.name = "date"
    frame.to_csv(path, date_format="%Y-%m-%d")
    logger.info("curves_exported", path=str(path), rows=len(frame))
    return path


def export_summaries(summaries: dict, path) -> Path:
    """Write performance summaries (already dict-shaped) to JSON."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(summaries, f, indent=2, default=str)
    logger.info("summaries_exported", path=str(path))
    return path
