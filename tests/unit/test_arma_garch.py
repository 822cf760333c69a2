"""
Tests for the ARMA-GARCH-SGED fitter and forecaster.
"""

import warnings

import pytest
import numpy as np
from datetime import date
from scipy.optimize import OptimizeResult

import armagarch.models.arma_garch as arma_garch
from armagarch.exceptions import ConvergenceError, FitError
from armagarch.models.arma_garch import (
    ArmaGarchFitter,
    ArmaGarchModel,
    ArmaGarchParams,
    arma_residuals,
    garch_variance,
)
from armagarch.models.forecaster import Forecaster
from armagarch.models.types import ModelOrder


def simulate_arma_garch(n=500, seed=11, phi=0.3, mu=0.0005, omega=2e-6, alpha=0.08, beta=0.9):
    """ARMA(1,0)-GARCH(1,1) path with normal innovations."""
    rng = np.random.default_rng(seed)
    burn = 300
    y = np.zeros(n + burn)
    e = np.zeros(n + burn)
    s2 = np.full(n + burn, omega / (1 - alpha - beta))
    for t in range(1, n + burn):
        s2[t] = omega + alpha * e[t - 1] ** 2 + beta * s2[t - 1]
        e[t] = np.sqrt(s2[t]) * rng.standard_normal()
        y[t] = mu + phi * (y[t - 1] - mu) + e[t]
    return y[burn:]


def hand_built_model(order, params, values, scale=1.0):
    resid = arma_residuals(values, params.mu, params.ar, params.ma)
    variances = garch_variance(resid, params.omega, params.alpha, params.beta)
    return ArmaGarchModel(
        order=order,
        params=params,
        scale=scale,
        values=values,
        residuals=resid,
        variances=variances,
        loglikelihood=0.0,
        solver="test",
        iterations=0,
    )


class TestRecursions:

    def test_residuals_match_explicit_loop(self):
        rng = np.random.default_rng(0)
        y = rng.normal(size=30)
        mu, ar, ma = 0.1, (0.4, -0.2), (0.3,)

        resid = arma_residuals(y, mu, ar, ma)

        expected = np.zeros_like(y)
        x = y - mu
        for t in range(len(y)):
            value = x[t]
            for i, phi in enumerate(ar, start=1):
                if t - i >= 0:
                    value -= phi * x[t - i]
            for j, theta in enumerate(ma, start=1):
                if t - j >= 0:
                    value -= theta * expected[t - j]
            expected[t] = value
        np.testing.assert_allclose(resid, expected, atol=1e-12)

    def test_variance_matches_explicit_loop(self):
        rng = np.random.default_rng(1)
        e = rng.normal(size=40)
        omega, alpha, beta = 0.1, 0.1, 0.8

        s2 = garch_variance(e, omega, alpha, beta)

        expected = np.zeros_like(e)
        expected[0] = np.mean(e ** 2)
        for t in range(1, len(e)):
            expected[t] = omega + alpha * e[t - 1] ** 2 + beta * expected[t - 1]
        np.testing.assert_allclose(s2, expected, rtol=1e-12)


class TestForecast:

    def test_one_step_mean_formula(self):
        values = np.array([0.2, -0.1, 0.4, 0.3])
        params = ArmaGarchParams(
            mu=0.05, ar=(0.5,), ma=(0.2,), omega=0.1, alpha=0.1, beta=0.8, skew=1.0, shape=2.0
        )
        model = hand_built_model(ModelOrder(1, 1), params, values, scale=2.0)

        mean = model.forecast_mean(1)[0]

        expected_scaled = 0.05 + 0.5 * (0.3 - 0.05) + 0.2 * model.residuals[-1]
        assert mean == pytest.approx(expected_scaled * 2.0)

    def test_variance_forecast_formula(self):
        values = np.array([0.2, -0.1, 0.4, 0.3])
        params = ArmaGarchParams(
            mu=0.0, ar=(), ma=(0.1,), omega=0.1, alpha=0.1, beta=0.8, skew=1.0, shape=2.0
        )
        model = hand_built_model(ModelOrder(0, 1), params, values)

        variances = model.forecast_variance(2)

        first = 0.1 + 0.1 * model.residuals[-1] ** 2 + 0.8 * model.variances[-1]
        assert variances[0] == pytest.approx(first)
        assert variances[1] == pytest.approx(0.1 + 0.9 * first)

    def test_forecaster_dates(self):
        values = np.array([0.1, 0.2, 0.3])
        params = ArmaGarchParams(
            mu=0.0, ar=(0.5,), ma=(), omega=0.1, alpha=0.1, beta=0.8, skew=1.0, shape=2.0
        )
        model = hand_built_model(ModelOrder(1, 0), params, values)

        explicit = Forecaster().forecast(model, origin=date(2021, 1, 8), target_date=date(2021, 1, 12))
        derived = Forecaster().forecast(model, origin=date(2021, 1, 8))

        assert explicit.date == date(2021, 1, 12)
        assert derived.date == date(2021, 1, 11)  # Friday -> Monday
        assert explicit.mean == pytest.approx(0.15)
        assert explicit.sigma is not None

    def test_invalid_horizon(self):
        params = ArmaGarchParams(
            mu=0.0, ar=(0.5,), ma=(), omega=0.1, alpha=0.1, beta=0.8, skew=1.0, shape=2.0
        )
        model = hand_built_model(ModelOrder(1, 0), params, np.array([0.1, 0.2]))
        with pytest.raises(ValueError):
            model.forecast_mean(0)

    def test_summary_reports_fit_statistics(self):
        values = np.array([0.2, -0.1, 0.4, 0.3])
        params = ArmaGarchParams(
            mu=0.0, ar=(0.5,), ma=(0.2,), omega=0.1, alpha=0.1, beta=0.8, skew=1.0, shape=2.0
        )
        model = hand_built_model(ModelOrder(1, 1), params, values)

        summary = model.summary()

        # mu, one AR, one MA, omega, alpha, beta, skew, shape
        assert model.n_params == 8
        assert summary["nobs"] == 4
        assert summary["aic"] == pytest.approx(16.0)
        assert summary["ar"] == [0.5]
        assert summary["solver"] == "test"


class TestFitterFailures:

    def test_zero_variance_window_fails(self):
        with pytest.raises(FitError):
            ArmaGarchFitter().fit(np.zeros(200), ModelOrder(1, 0))

    def test_non_finite_window_fails(self):
        window = np.full(200, 0.01)
        window[5] = np.nan
        with pytest.raises(FitError):
            ArmaGarchFitter().fit(window, ModelOrder(1, 0))

    def test_unknown_solver_rejected(self):
        with pytest.raises(ValueError):
            ArmaGarchFitter(solvers=("newton",))

    def test_optimizer_warning_counts_as_non_convergence(self, monkeypatch):
        def warning_minimize(fun, x0, **kwargs):
            warnings.warn("scripted optimizer warning", RuntimeWarning)
            return OptimizeResult(x=np.asarray(x0), fun=fun(x0), success=True, nit=0, message="ok")

        monkeypatch.setattr(arma_garch, "minimize", warning_minimize)

        with pytest.raises(ConvergenceError):
            ArmaGarchFitter().fit(simulate_arma_garch(200), ModelOrder(1, 0))

    def test_optimizer_error_counts_as_non_convergence(self, monkeypatch):
        def failing_minimize(*args, **kwargs):
            raise np.linalg.LinAlgError("singular matrix")

        monkeypatch.setattr(arma_garch, "minimize", failing_minimize)

        with pytest.raises(ConvergenceError):
            ArmaGarchFitter().fit(simulate_arma_garch(200), ModelOrder(1, 0))

    def test_falls_back_to_next_solver(self, monkeypatch):
        used = []

        def flaky_minimize(fun, x0, method=None, **kwargs):
            used.append(method)
            if method == "SLSQP":
                raise RuntimeError("scripted solver crash")
            return OptimizeResult(x=np.asarray(x0), fun=fun(x0), success=True, nit=0, message="ok")

        monkeypatch.setattr(arma_garch, "minimize", flaky_minimize)

        model = ArmaGarchFitter(solvers=("SLSQP", "Nelder-Mead")).fit(
            simulate_arma_garch(300), ModelOrder(1, 0)
        )

        assert used == ["SLSQP", "Nelder-Mead"]
        assert model.solver == "Nelder-Mead"

    def test_converged_fit_logs_plain_float_summary(self, monkeypatch):
        def scripted_minimize(fun, x0, **kwargs):
            return OptimizeResult(x=np.asarray(x0), fun=fun(x0), success=True, nit=3, message="ok")

        logged = []

        class RecordingLogger:
            def debug(self, event, **kwargs):
                logged.append((event, kwargs))

        monkeypatch.setattr(arma_garch, "minimize", scripted_minimize)
        monkeypatch.setattr(arma_garch, "logger", RecordingLogger())

        model = ArmaGarchFitter(solvers=("L-BFGS-B",)).fit(simulate_arma_garch(300), ModelOrder(1, 0))

        event, fields = logged[-1]
        assert event == "garch_fit_converged"
        assert fields == model.summary()
        assert fields["order"] == "ARMA(1,0)"
        assert fields["nobs"] == 300
        assert type(fields["loglikelihood"]) is float
        assert type(fields["aic"]) is float
        assert fields["aic"] == pytest.approx(2.0 * model.n_params - 2.0 * model.loglikelihood)


@pytest.mark.slow
class TestFitterEstimation:

    def test_fit_recovers_structure(self):
        window = simulate_arma_garch(500)
        original = window.copy()

        model = ArmaGarchFitter().fit(window, ModelOrder(1, 0))

        np.testing.assert_array_equal(window, original)
        assert model.params.ar[0] == pytest.approx(0.3, abs=0.15)
        assert model.params.persistence < 1.0
        assert np.isfinite(model.loglikelihood)
        assert np.isfinite(model.forecast_mean(1)[0])

    def test_fit_is_deterministic(self):
        window = simulate_arma_garch(500, seed=5)

        first = ArmaGarchFitter().fit(window, ModelOrder(1, 1))
        second = ArmaGarchFitter().fit(window, ModelOrder(1, 1))

        assert first.forecast_mean(1)[0] == second.forecast_mean(1)[0]
        assert first.solver == second.solver
