"""
One-step-ahead forecaster.

The forecast date is supplied by the caller, which knows the trading
calendar (the return index). Without one, the next business day after
the origin is used.
"""

from datetime import date
from typing import Optional
import structlog

import numpy as np
import pandas as pd
from pandas.tseries.offsets import BDay

from armagarch.exceptions import FitError
from armagarch.models.arma_garch import ArmaGarchModel
from armagarch.models.types import Forecast

logger = structlog.get_logger(__name__)


class Forecaster:
    """Turns a fitted model into a dated conditional-mean forecast."""

    def forecast(
        self,
        model: ArmaGarchModel,
        horizon: int = 1,
        origin: Optional[date] = None,
        target_date: Optional[date] = None,
    ) -> Forecast:
        """
        Forecast the conditional mean ``horizon`` steps past the window.

        Args:
            model: Fitted ARMA-GARCH model
            horizon: Steps ahead; the last step is returned
            origin: Last date of the fitted window
            target_date: Trading date being forecast

        Returns:
            Forecast

        Raises:
            FitError: If the model yields a non-finite forecast
        """
        means = model.forecast_mean(horizon)
        variances = model.forecast_variance(horizon)

        mean = float(means[-1])
        variance = float(variances[-1])
        if not np.isfinite(mean):
            raise FitError(f"non-finite mean forecast from {model.order}", order=model.order)

        if target_date is None and origin is not None:
            target_date = (pd.Timestamp(origin) + BDay(horizon)).date()

        return Forecast(
            date=target_date,
            mean=mean,
            origin=origin,
            sigma=float(np.sqrt(variance)) if np.isfinite(variance) and variance >= 0 else None,
        )
