"""
ARMA-GARCH walk-forward forecasting core.

Per rolling window of daily log returns:
- Search ARMA(p, q) orders by AIC
- Fit ARMA-GARCH(1,1) with skewed GED residuals
- Forecast the next day's conditional mean
- Map the forecast to BUY / SELL / HOLD
"""

__version__ = "0.1.0"
