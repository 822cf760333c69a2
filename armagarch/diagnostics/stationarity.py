"""
Stationarity precondition.

The mean model is fitted with differencing order 0, so the return
series should be stationary. Augmented Dickey-Fuller test:
null hypothesis = unit root (random walk).
"""

from dataclasses import dataclass
import structlog

import numpy as np
import pandas as pd
from statsmodels.tsa.stattools import adfuller

from armagarch.exceptions import InvalidInputError

logger = structlog.get_logger(__name__)


@dataclass
class StationarityReport:
    """ADF test outcome."""
    statistic: float
    p_value: float
    used_lags: int
    n_observations: int
    critical_values: dict
    significance: float

    @property
    def is_stationary(self) -> bool:
        """Unit root rejected at the configured significance."""
        return self.p_value < self.significance

    def to_dict(self) -> dict:
        return {
            "statistic": self.statistic,
            "p_value": self.p_value,
            "used_lags": self.used_lags,
            "n_observations": self.n_observations,
            "critical_values": self.critical_values,
            "significance": self.significance,
            "is_stationary": self.is_stationary,
        }


def check_stationarity(returns: pd.Series, significance: float = 0.05) -> StationarityReport:
    """
    Run the ADF test on a log return series.

    The leading observation is dropped: it is the forced zero return,
    not a real observation.

    Args:
        returns: Log returns indexed by date
        significance: Rejection level for the unit-root null

    Returns:
        StationarityReport
    """
    values = np.asarray(returns, dtype=float)[1:]
    values = values[np.isfinite(values)]

    if len(values) < 10:
        raise InvalidInputError(
            f"need at least 10 returns for the ADF test, got {len(values)}"
        )

    statistic, p_value, used_lags, n_obs, critical_values, _ = adfuller(values, autolag="AIC")

    report = StationarityReport(
        statistic=float(statistic),
        p_value=float(p_value),
        used_lags=int(used_lags),
        n_observations=int(n_obs),
        critical_values={k: float(v) for k, v in critical_values.items()},
        significance=significance,
    )

    if report.is_stationary:
        logger.info("series_stationary", p_value=report.p_value, statistic=report.statistic)
    else:
        logger.warning("series_not_stationary", p_value=report.p_value, statistic=report.statistic)

    return report
