#!/usr/bin/env python3
"""
Run the walk-forward ARMA-GARCH backtest.

Usage:
    python scripts/run_forecast_backtest.py --symbol ^GSPC --start 2018-01-01

    # Parallel windows, custom evaluation range, chart
    python scripts/run_forecast_backtest.py --workers 4 --eval-start 2020-03-01 --eval-end 2022-03-01 --plot
"""

import argparse
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import structlog
from dotenv import load_dotenv

from armagarch.config import load_config
from armagarch.data.ingestion.yahoo_client import YahooPriceClient
from armagarch.exceptions import ConfigurationError, EvaluationError, InvalidInputError
from armagarch.utils.logging_setup import setup_logging
from research.backtesting.pipeline import run_pipeline
from research.reporting.export import export_curves, export_signals, export_summaries

logger = structlog.get_logger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Walk-forward ARMA-GARCH backtest")
    parser.add_argument("--config", default="config/settings.yaml")
    parser.add_argument("--symbol", help="Ticker symbol (default from config)")
    parser.add_argument("--start", help="First price date (YYYY-MM-DD)")
    parser.add_argument("--end", help="Last price date (YYYY-MM-DD)")
    parser.add_argument("--eval-start", help="Sharpe evaluation start (YYYY-MM-DD)")
    parser.add_argument("--eval-end", help="Sharpe evaluation end (YYYY-MM-DD)")
    parser.add_argument("--window", type=int, help="Rolling window size")
    parser.add_argument("--max-p", type=int, help="Maximum AR order")
    parser.add_argument("--max-q", type=int, help="Maximum MA order")
    parser.add_argument("--workers", type=int, help="Worker processes")
    parser.add_argument("--output-dir", default="output", help="Directory for CSV/JSON/PNG results")
    parser.add_argument("--plot", action="store_true", help="Save cumulative return chart")
    parser.add_argument("--log-level", default="INFO")
    parser.add_argument("--console-logs", action="store_true", help="Human-readable logs instead of JSON")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)

    load_dotenv()
    setup_logging(args.log_level, json_logs=not args.console_logs)

    try:
        config = load_config(args.config).with_overrides(
            symbol=args.symbol,
            data_start=args.start,
            data_end=args.end,
            eval_start=args.eval_start,
            eval_end=args.eval_end,
            window_size=args.window,
            max_p=args.max_p,
            max_q=args.max_q,
            n_workers=args.workers,
        )
    except ConfigurationError as e:
        logger.error("invalid_configuration", error=str(e))
        return 1

    logger.info("forecast_backtest_starting", **config.to_dict())

    output_dir = Path(args.output_dir)

    def export_backtest(signals, curves):
        export_signals(signals, output_dir / "signals.csv")
        export_curves(curves, output_dir / "curves.csv")

    try:
        prices = YahooPriceClient().get_adjusted_closes(
            config.symbol, config.data_start, config.data_end
        )
        result = run_pipeline(prices, config, on_backtest=export_backtest)
    except (InvalidInputError, ConfigurationError, EvaluationError) as e:
        logger.error("forecast_backtest_failed", error=str(e))
        return 1

    export_summaries(result.summaries(), output_dir / "performance.json")

    if args.plot:
        from research.reporting.plot import plot_curves
        plot_curves(result.curves, output_dir / "curves.png")

    logger.info(
        "forecast_backtest_complete",
        strategy_annualized_sharpe=round(result.strategy_summary.annualized_sharpe, 4),
        buy_hold_annualized_sharpe=round(result.benchmark_summary.annualized_sharpe, 4),
        signals=result.signals.counts(),
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
