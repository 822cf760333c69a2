"""
Return series construction and validation.

A return series is a pandas Series of daily log returns indexed by a
strictly increasing DatetimeIndex. The first return is forced to 0
(there is no prior price to compare against).
"""

import structlog

import numpy as np
import pandas as pd

from armagarch.exceptions import InvalidInputError

logger = structlog.get_logger(__name__)


def _ensure_datetime_index(series: pd.Series, name: str) -> pd.Series:
    if not isinstance(series, pd.Series):
        raise InvalidInputError(f"{name} must be a pandas Series, got {type(series).__name__}")
    if isinstance(series.index, pd.DatetimeIndex):
        return series
    try:
        index = pd.DatetimeIndex(pd.to_datetime(series.index))
    except (TypeError, ValueError) as e:
        raise InvalidInputError(f"{name} index must contain dates") from e
    return pd.Series(series.to_numpy(), index=index, name=series.name)


def _check_dates(index: pd.DatetimeIndex, name: str) -> None:
    if index.has_duplicates:
        duplicated = index[index.duplicated()][:3]
        raise InvalidInputError(
            f"{name} has duplicate dates: {[str(d.date()) for d in duplicated]}"
        )
    if not index.is_monotonic_increasing:
        raise InvalidInputError(f"{name} dates must be strictly increasing")


def validate_prices(prices: pd.Series) -> pd.Series:
    """
    Validate an adjusted close price series.

    Raises:
        InvalidInputError: Non-date index, duplicate or unordered dates,
            missing, non-finite or non-positive prices
    """
    prices = _ensure_datetime_index(prices, "prices")
    _check_dates(prices.index, "prices")

    values = pd.to_numeric(prices, errors="coerce").to_numpy(dtype=float)
    if len(values) < 2:
        raise InvalidInputError(f"need at least 2 prices, got {len(values)}")
    if not np.all(np.isfinite(values)):
        raise InvalidInputError("prices contain missing or non-finite values")
    if np.any(values <= 0):
        raise InvalidInputError("prices must be strictly positive")

    return pd.Series(values, index=prices.index, name=prices.name)


def log_returns_from_prices(prices: pd.Series) -> pd.Series:
    """
    Daily log returns from adjusted close prices.

    ``r[t] = ln(p[t]) - ln(p[t-1])`` with ``r[0] = 0``.

    Args:
        prices: Adjusted close prices indexed by trading date

    Returns:
        Log return series, same index and length as ``prices``
    """
    prices = validate_prices(prices)

    returns = np.log(prices).diff()
    returns.iloc[0] = 0.0
    returns.name = "log_return"

    logger.debug(
        "log_returns_computed",
        observations=len(returns),
        first_date=str(returns.index[0].date()),
        last_date=str(returns.index[-1].date()),
    )
    return returns


def validate_return_series(returns: pd.Series, window_size: int) -> pd.Series:
    """
    Check that a return series can drive the walk-forward loop.

    Args:
        returns: Log returns indexed by trading date
        window_size: Rolling window length

    Returns:
        The series with a DatetimeIndex and float values

    Raises:
        InvalidInputError: If dates are unordered or duplicated, values are
            non-finite, or the series is shorter than ``window_size + 1``
    """
    returns = _ensure_datetime_index(returns, "returns")
    _check_dates(returns.index, "returns")

    values = pd.to_numeric(returns, errors="coerce").to_numpy(dtype=float)
    if not np.all(np.isfinite(values)):
        raise InvalidInputError("returns contain missing or non-finite values")

    if len(values) < window_size + 1:
        raise InvalidInputError(
            f"return series has {len(values)} observations, "
            f"need at least window_size + 1 = {window_size + 1}"
        )

    return pd.Series(values, index=returns.index, name=returns.name or "log_return")
