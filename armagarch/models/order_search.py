"""
Conditional-mean order search.

Exhaustive search over ARMA(p, q), 0 <= p <= max_p, 0 <= q <= max_q,
excluding (0, 0), by Akaike Information Criterion.

Rules:
- A candidate whose estimation raises an error or a warning is
  ineligible (not "worse", excluded).
- Enumeration is p ascending (outer), q ascending (inner). Comparison is
  strict <, so on equal AIC the first order enumerated is kept.
- If no candidate succeeds the outcome is Failed.
"""

from dataclasses import dataclass
from typing import Any, Iterator, Optional, Protocol
import structlog

import numpy as np
from statsmodels.tsa.arima.model import ARIMA

from armagarch.exceptions import FitError
from armagarch.models.estimation import guarded
from armagarch.models.types import Failed, FitOutcome, Fitted, ModelOrder

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CandidateFit:
    """A successfully estimated candidate."""
    order: ModelOrder
    aic: float
    result: Any = None


class CandidateFitter(Protocol):
    """Fits one candidate order, raising FitError on failure."""

    def fit(self, window: np.ndarray, order: ModelOrder) -> CandidateFit:
        ...


class ArimaCandidateFitter:
    """
    ARIMA(p, 0, q) with constant, estimated by statsmodels.

    The window is passed as a bare float array so no date-frequency
    inference happens inside statsmodels.
    """

    def __init__(self, trend: str = "c"):
        self.trend = trend

    def fit(self, window: np.ndarray, order: ModelOrder) -> CandidateFit:
        result = guarded(self._estimate, window, order, order=order)

        aic = float(result.aic)
        if not np.isfinite(aic):
            raise FitError(f"non-finite AIC for {order}", order=order)

        return CandidateFit(order=order, aic=aic, result=result)

    def _estimate(self, window: np.ndarray, order: ModelOrder):
        model = ARIMA(window, order=order.arima_order, trend=self.trend)
        return model.fit()


def candidate_orders(max_p: int, max_q: int) -> Iterator[ModelOrder]:
    """Orders in search sequence: p outer, q inner, (0, 0) skipped."""
    for p in range(max_p + 1):
        for q in range(max_q + 1):
            order = ModelOrder(p, q)
            if order.is_white_noise:
                continue
            yield order


class OrderSearch:
    """
    AIC-minimizing ARMA order search.

    Stateless between calls: nothing from one window's search is
    visible to the next.
    """

    def __init__(self, candidate_fitter: Optional[CandidateFitter] = None):
        self.candidate_fitter = candidate_fitter or ArimaCandidateFitter()

    def search(self, window, max_p: int = 4, max_q: int = 4) -> FitOutcome:
        """
        Find the ARMA order with the lowest AIC.

        Args:
            window: Return window (any float sequence; not modified)
            max_p: Maximum AR order
            max_q: Maximum MA order

        Returns:
            Fitted(order, criterion, model) or Failed
        """
        if max_p < 0 or max_q < 0:
            raise ValueError(f"max_p and max_q must be non-negative, got ({max_p}, {max_q})")

        values = np.array(window, dtype=float, copy=True)

        best: Optional[CandidateFit] = None
        attempted = 0
        failed = 0

        for order in candidate_orders(max_p, max_q):
            attempted += 1
            try:
                candidate = self.candidate_fitter.fit(values, order)
            except FitError as e:
                failed += 1
                logger.debug("candidate_fit_failed", order=str(order), error=str(e))
                continue

            logger.debug("candidate_fit", order=str(order), aic=candidate.aic)

            if best is None or candidate.aic < best.aic:
                best = candidate

        if best is None:
            logger.warning("order_search_failed", attempted=attempted)
            return Failed(reason=f"all {attempted} candidate orders failed")

        logger.debug(
            "order_search_complete",
            order=str(best.order),
            aic=best.aic,
            attempted=attempted,
            failed=failed,
        )
        return Fitted(order=best.order, criterion=best.aic, model=best.result)
