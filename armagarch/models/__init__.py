"""
Conditional mean / variance models.

- OrderSearch: ARMA order selection by AIC (statsmodels)
- ArmaGarchFitter: joint ARMA-GARCH(1,1)-SGED estimation (scipy)
- Forecaster: one-step-ahead conditional mean
"""

from armagarch.models.types import ModelOrder, Fitted, Failed, FitOutcome, Forecast, NonConvergence
from armagarch.models.order_search import (
    ArimaCandidateFitter,
    CandidateFit,
    OrderSearch,
    candidate_orders,
)
from armagarch.models.arma_garch import ArmaGarchFitter, ArmaGarchModel, ArmaGarchParams
from armagarch.models.forecaster import Forecaster

__all__ = [
    "ModelOrder",
    "Fitted",
    "Failed",
    "FitOutcome",
    "Forecast",
    "NonConvergence",
    "ArimaCandidateFitter",
    "CandidateFit",
    "OrderSearch",
    "candidate_orders",
    "ArmaGarchFitter",
    "ArmaGarchModel",
    "ArmaGarchParams",
    "Forecaster",
]
