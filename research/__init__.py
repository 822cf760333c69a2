"""
Research and backtesting modules.

This layer is for:
- Walk-forward signal generation over rolling windows
- Backtest accumulation against buy-and-hold
- Sharpe ratio evaluation
- Reporting (tables and plots)
"""
