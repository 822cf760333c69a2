"""
Pytest configuration and fixtures.

Shared fixtures and deterministic stand-ins for the numerical
estimators. The stand-ins live here (module ``conftest``) so worker
processes can unpickle them.
"""

import pytest
from pathlib import Path
import tempfile
import shutil

import numpy as np
import pandas as pd

from armagarch.exceptions import ConvergenceError, FitError
from armagarch.models.order_search import CandidateFit
from armagarch.models.types import Fitted, Failed, ModelOrder


class TableCandidateFitter:
    """Candidate fitter returning AIC values from a lookup table.

    Orders missing from the table (or mapped to None) fail.
    """

    def __init__(self, aics):
        self.aics = dict(aics)
        self.calls = []

    def fit(self, window, order):
        self.calls.append((order.p, order.q))
        aic = self.aics.get((order.p, order.q))
        if aic is None:
            raise FitError(f"scripted failure for {order}", order=order)
        return CandidateFit(order=order, aic=aic, result={"order": (order.p, order.q)})


class FixedOrderSearch:
    """Order search that always picks the same order, or always fails."""

    def __init__(self, order=(1, 0), fail=False):
        self.order = ModelOrder(*order)
        self.fail = fail

    def search(self, window, max_p=4, max_q=4):
        if self.fail:
            return Failed(reason="scripted")
        return Fitted(order=self.order, criterion=-100.0)


class EchoModel:
    """Fitted-model stand-in whose mean forecast is a fixed number."""

    def __init__(self, order, mean):
        self.order = order
        self.mean = mean

    def forecast_mean(self, horizon=1):
        return np.full(horizon, self.mean)

    def forecast_variance(self, horizon=1):
        return np.full(horizon, 1e-4)


class EchoFitter:
    """Forecasts the last return of the window.

    Windows whose last return exceeds ``fail_above`` do not converge.
    """

    def __init__(self, fail_above=None):
        self.fail_above = fail_above

    def fit(self, window, order):
        last = float(np.asarray(window, dtype=float)[-1])
        if self.fail_above is not None and last > self.fail_above:
            raise ConvergenceError("scripted non-convergence", order=order)
        return EchoModel(order, last)


@pytest.fixture
def temp_dir():
    """Create temporary directory for tests."""
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    shutil.rmtree(temp_path)


def make_returns(values, start="2020-01-01"):
    """Return series on a business-day calendar."""
    dates = pd.bdate_range(start=start, periods=len(values))
    return pd.Series(np.asarray(values, dtype=float), index=dates, name="log_return")


@pytest.fixture
def returns_factory():
    return make_returns


@pytest.fixture
def sample_prices():
    """Business-day price series driven by seeded normal log returns."""
    rng = np.random.default_rng(42)
    dates = pd.bdate_range(start="2019-01-01", periods=120)
    log_returns = rng.normal(0.0003, 0.01, len(dates))
    prices = 100 * np.exp(np.cumsum(log_returns))
    return pd.Series(prices, index=dates, name="TEST")


@pytest.fixture
def ar1_returns():
    """505 returns from a zero-mean AR(1) with phi = 0.7."""
    rng = np.random.default_rng(7)
    n, burn = 505, 200
    shocks = rng.normal(0.0, 0.01, n + burn)
    values = np.zeros(n + burn)
    for t in range(1, n + burn):
        values[t] = 0.7 * values[t - 1] + shocks[t]
    return make_returns(values[burn:])
