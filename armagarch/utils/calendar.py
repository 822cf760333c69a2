"""
Trading calendar helpers.

Dates come from the return series index, which already skips weekends
and exchange holidays. A calendar offset is only used past the last
observed date.
"""

from datetime import date

import pandas as pd
from pandas.tseries.offsets import BDay


def to_date(value) -> date:
    """Normalize a timestamp-like value to a date."""
    return pd.Timestamp(value).date()


def next_trading_date(index: pd.DatetimeIndex, position: int) -> date:
    """
    Trading date following ``index[position]``.

    Args:
        index: Ordered trading dates
        position: Position of the reference date in the index

    Returns:
        ``index[position + 1]`` if observed, else the next business day
    """
    if position + 1 < len(index):
        return to_date(index[position + 1])
    return to_date(pd.Timestamp(index[position]) + BDay(1))
