"""
Yahoo Finance price client.

Fetches adjusted closing prices for a single instrument via yfinance
(no API key needed).
"""

from datetime import date
from typing import Optional
import structlog

import yfinance as yf
import pandas as pd

from armagarch.exceptions import InvalidInputError

logger = structlog.get_logger(__name__)


class YahooPriceClient:
    """Adjusted close prices from Yahoo Finance."""

    def __init__(self, interval: str = "1d"):
        self.interval = interval

    def get_adjusted_closes(
        self,
        symbol: str,
        start: date,
        end: Optional[date] = None,
    ) -> pd.Series:
        """
        Get adjusted closing prices.

        Args:
            symbol: Ticker symbol (e.g. "^GSPC")
            start: First date (inclusive)
            end: Last date (exclusive, as yfinance treats it). None = today

        Returns:
            Series of adjusted closes indexed by trading date

        Raises:
            InvalidInputError: If no data is returned
        """
        logger.info("fetching_prices", symbol=symbol, start=str(start), end=str(end))

        ticker = yf.Ticker(symbol)
        df = ticker.history(
            start=start,
            end=end,
            interval=self.interval,
            auto_adjust=False,  # keep "Adj Close" as its own column
            prepost=False,
        )

        if df is None or df.empty:
            raise InvalidInputError(f"no price data returned for {symbol}")

        column = "Adj Close" if "Adj Close" in df.columns else "Close"
        if column == "Close":
            logger.warning("adjusted_close_missing_using_close", symbol=symbol)

        prices = df[column].astype(float).dropna()
        index = pd.DatetimeIndex(prices.index)
        if index.tz is not None:
            index = index.tz_localize(None)
        prices.index = index.normalize()
        prices.name = symbol

        logger.info("prices_fetched", symbol=symbol, count=len(prices))
        return prices
