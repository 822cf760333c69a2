"""
Joint ARMA(p, q) mean + GARCH(1, 1) variance fitter with SGED residuals.

Model:
    y_t = mu + sum_i phi_i (y_{t-i} - mu) + sum_j theta_j e_{t-j} + e_t
    e_t = sigma_t z_t,  z_t ~ SGED(xi, nu)
    sigma2_t = omega + alpha e_{t-1}^2 + beta sigma2_{t-1}

Estimation is conditional maximum likelihood driven through scipy
optimizers in a "hybrid" chain: solvers are tried in order and the first
one that converges to an admissible parameter vector wins.

Policy: an estimation error and an estimation warning are the same
thing, non-convergence. Either one raises ConvergenceError / FitError
so the caller can downgrade the window to HOLD instead of trading on
an unreliable fit.
"""

from dataclasses import dataclass
from typing import Sequence
import structlog

import numpy as np
from scipy.optimize import minimize
from scipy.signal import lfilter

from armagarch.config import DEFAULT_SOLVERS
from armagarch.exceptions import ConvergenceError, FitError
from armagarch.models.distributions import SHAPE_BOUNDS, SKEW_BOUNDS, sged_logpdf
from armagarch.models.estimation import warnings_as_errors
from armagarch.models.types import ModelOrder

logger = structlog.get_logger(__name__)

PENALTY = 1e10
ARMA_BOUND = 2.0
MU_BOUND = 5.0
OMEGA_BOUNDS = (1e-8, 10.0)
PERSISTENCE_LIMIT = 1.0 - 1e-6

SOLVER_OPTIONS = {
    "SLSQP": {"maxiter": 500, "ftol": 1e-9},
    "L-BFGS-B": {"maxiter": 1000},
    "Nelder-Mead": {"maxiter": 10000, "xatol": 1e-6, "fatol": 1e-8},
    "Powell": {"maxiter": 3000},
}


@dataclass(frozen=True)
class ArmaGarchParams:
    """Estimated parameters, in the units of the scaled window."""
    mu: float
    ar: tuple
    ma: tuple
    omega: float
    alpha: float
    beta: float
    skew: float
    shape: float

    @property
    def persistence(self) -> float:
        return self.alpha + self.beta

    @classmethod
    def from_vector(cls, theta: np.ndarray, order: ModelOrder) -> "ArmaGarchParams":
        p, q = order.p, order.q
        omega, alpha, beta, skew, shape = theta[1 + p + q:]
        return cls(
            mu=float(theta[0]),
            ar=tuple(float(v) for v in theta[1:1 + p]),
            ma=tuple(float(v) for v in theta[1 + p:1 + p + q]),
            omega=float(omega),
            alpha=float(alpha),
            beta=float(beta),
            skew=float(skew),
            shape=float(shape),
        )

    def to_dict(self) -> dict:
        return {
            "mu": self.mu,
            "ar": list(self.ar),
            "ma": list(self.ma),
            "omega": self.omega,
            "alpha": self.alpha,
            "beta": self.beta,
            "skew": self.skew,
            "shape": self.shape,
        }


def arma_residuals(y: np.ndarray, mu: float, ar: Sequence[float], ma: Sequence[float]) -> np.ndarray:
    """ARMA innovations with zero pre-sample deviations and innovations."""
    ar_poly = np.r_[1.0, -np.asarray(ar, dtype=float)]
    ma_poly = np.r_[1.0, np.asarray(ma, dtype=float)]
    return lfilter(ar_poly, ma_poly, y - mu)


def garch_variance(resid: np.ndarray, omega: float, alpha: float, beta: float) -> np.ndarray:
    """GARCH(1,1) conditional variance, started at the mean squared residual."""
    e2 = resid ** 2
    drive = np.empty_like(e2)
    drive[0] = np.mean(e2)
    drive[1:] = omega + alpha * e2[:-1]
    return lfilter([1.0], [1.0, -beta], drive)


def _polynomial_is_stable(coefs: Sequence[float], sign: float) -> bool:
    """True if all roots of 1 + sign * sum(c_k z^k) lie outside the unit circle."""
    if len(coefs) == 0 or not np.any(coefs):
        return True
    poly = np.r_[1.0, sign * np.asarray(coefs, dtype=float)]
    roots = np.roots(poly[::-1])
    return bool(np.all(np.abs(roots) > 1.0 + 1e-8))


class ArmaGarchModel:
    """
    Fitted ARMA-GARCH handle.

    Holds everything a one-step forecast needs: parameters, the scaled
    window, its residuals and conditional variances.
    """

    def __init__(
        self,
        order: ModelOrder,
        params: ArmaGarchParams,
        scale: float,
        values: np.ndarray,
        residuals: np.ndarray,
        variances: np.ndarray,
        loglikelihood: float,
        solver: str,
        iterations: int,
    ):
        self.order = order
        self.params = params
        self.scale = scale
        self.values = values
        self.residuals = residuals
        self.variances = variances
        self.loglikelihood = loglikelihood
        self.solver = solver
        self.iterations = iterations

    @property
    def n_params(self) -> int:
        return 1 + self.order.p + self.order.q + 5

    @property
    def nobs(self) -> int:
        return len(self.values)

    @property
    def aic(self) -> float:
        return 2.0 * self.n_params - 2.0 * self.loglikelihood

    def forecast_mean(self, horizon: int = 1) -> np.ndarray:
        """
        Conditional mean forecasts for steps 1..horizon, original units.

        Future innovations are set to their expectation (0).
        """
        if horizon < 1:
            raise ValueError(f"horizon must be >= 1, got {horizon}")

        p, q = self.order.p, self.order.q
        mu = self.params.mu
        deviations = list(self.values - mu)
        innovations = list(self.residuals)

        out = []
        for _ in range(horizon):
            ar_part = sum(
                self.params.ar[i] * deviations[-1 - i] for i in range(p)
            )
            ma_part = sum(
                self.params.ma[j] * innovations[-1 - j] for j in range(q)
            )
            step = ar_part + ma_part
            out.append(mu + step)
            deviations.append(step)
            innovations.append(0.0)

        return np.asarray(out) * self.scale

    def forecast_variance(self, horizon: int = 1) -> np.ndarray:
        """Conditional variance forecasts for steps 1..horizon, original units."""
        if horizon < 1:
            raise ValueError(f"horizon must be >= 1, got {horizon}")

        prm = self.params
        nxt = prm.omega + prm.alpha * self.residuals[-1] ** 2 + prm.beta * self.variances[-1]
        out = [nxt]
        for _ in range(horizon - 1):
            nxt = prm.omega + prm.persistence * nxt
            out.append(nxt)

        return np.asarray(out) * self.scale ** 2

    def summary(self) -> dict:
        return {
            "order": str(self.order),
            "solver": self.solver,
            "iterations": self.iterations,
            "nobs": self.nobs,
            "loglikelihood": self.loglikelihood,
            "aic": self.aic,
            "scale": self.scale,
            **self.params.to_dict(),
        }


class ArmaGarchFitter:
    """
    ARMA(p, q)-GARCH(1, 1)-SGED fitter with a hybrid solver chain.

    Every call builds fresh optimizer state; nothing is cached on the
    instance, so one fitter can serve any number of windows.
    """

    def __init__(self, solvers: Sequence[str] = DEFAULT_SOLVERS):
        unknown = [s for s in solvers if s not in SOLVER_OPTIONS]
        if unknown:
            raise ValueError(f"unsupported solvers: {unknown}")
        if not solvers:
            raise ValueError("at least one solver is required")
        self.solvers = tuple(solvers)

    def fit(self, window, order: ModelOrder) -> ArmaGarchModel:
        """
        Fit the joint model to a return window.

        Args:
            window: Return window (not modified)
            order: ARMA order of the mean

        Returns:
            ArmaGarchModel

        Raises:
            FitError: Degenerate window
            ConvergenceError: No solver produced an admissible fit
        """
        raw = np.array(window, dtype=float, copy=True)
        if raw.ndim != 1 or len(raw) < 2:
            raise FitError("window must be a 1-D sequence of at least 2 values", order=order)
        if not np.all(np.isfinite(raw)):
            raise FitError("window contains non-finite values", order=order)

        scale = float(np.std(raw))
        if not np.isfinite(scale) or scale <= 0.0:
            raise FitError("window has zero variance", order=order)

        y = raw / scale
        burn_in = max(order.p, order.q)
        if len(y) - burn_in < 1 + order.p + order.q + 5:
            raise FitError(f"window too short for {order}", order=order)

        start = self._starting_values(y, order)
        bounds = self._bounds(order)
        objective = _Objective(y, order, burn_in)

        errors = []
        for solver in self.solvers:
            try:
                theta, iterations = self._run_solver(solver, objective, start, bounds, order)
            except ConvergenceError as e:
                errors.append(f"{solver}: {e}")
                logger.debug("solver_failed", order=str(order), solver=solver, error=str(e))
                continue
            except Exception as e:
                errors.append(f"{solver}: {type(e).__name__}: {e}")
                logger.debug("solver_failed", order=str(order), solver=solver, error=str(e))
                continue

            params = ArmaGarchParams.from_vector(theta, order)
            resid = arma_residuals(y, params.mu, params.ar, params.ma)
            variances = garch_variance(resid, params.omega, params.alpha, params.beta)
            scaled_ll = -objective(theta)
            loglikelihood = scaled_ll - (len(y) - burn_in) * np.log(scale)

            model = ArmaGarchModel(
                order=order,
                params=params,
                scale=scale,
                values=y,
                residuals=resid,
                variances=variances,
                loglikelihood=float(loglikelihood),
                solver=solver,
                iterations=iterations,
            )
            logger.debug("garch_fit_converged", **model.summary())
            return model

        raise ConvergenceError(
            f"{order} did not converge with any solver: " + "; ".join(errors),
            order=order,
        )

    def _starting_values(self, y: np.ndarray, order: ModelOrder) -> np.ndarray:
        mu0 = float(np.clip(np.mean(y), -MU_BOUND + 1e-3, MU_BOUND - 1e-3))
        return np.r_[
            mu0,
            np.zeros(order.p),
            np.zeros(order.q),
            0.05,   # omega (unit-variance window)
            0.05,   # alpha
            0.90,   # beta
            1.0,    # skew: symmetric
            2.0,    # shape: normal
        ]

    def _bounds(self, order: ModelOrder) -> list:
        return (
            [(-MU_BOUND, MU_BOUND)]
            + [(-ARMA_BOUND, ARMA_BOUND)] * (order.p + order.q)
            + [OMEGA_BOUNDS, (0.0, 1.0), (0.0, 1.0), SKEW_BOUNDS, SHAPE_BOUNDS]
        )

    def _run_solver(self, solver, objective, start, bounds, order):
        """Run one solver with warnings escalated; validate its answer."""
        kwargs = {"method": solver, "bounds": bounds, "options": dict(SOLVER_OPTIONS[solver])}
        if solver == "SLSQP":
            kwargs["constraints"] = [{"type": "ineq", "fun": _PersistenceMargin(order)}]

        with warnings_as_errors():
            result = minimize(objective, start.copy(), **kwargs)

        if not result.success:
            raise ConvergenceError(str(result.message), order=order)

        theta = np.asarray(result.x, dtype=float)
        if not np.all(np.isfinite(theta)) or not np.isfinite(result.fun) or result.fun >= PENALTY:
            raise ConvergenceError("non-finite optimum", order=order)

        params = ArmaGarchParams.from_vector(theta, order)
        if params.omega <= 0.0 or params.alpha < 0.0 or params.beta < 0.0:
            raise ConvergenceError("variance parameters outside admissible region", order=order)
        if params.persistence >= 1.0:
            raise ConvergenceError(f"non-stationary variance (alpha + beta = {params.persistence:.4f})", order=order)
        if not _polynomial_is_stable(params.ar, -1.0):
            raise ConvergenceError("non-stationary AR polynomial", order=order)
        if not _polynomial_is_stable(params.ma, 1.0):
            raise ConvergenceError("non-invertible MA polynomial", order=order)

        return theta, int(getattr(result, "nit", 0) or 0)


class _PersistenceMargin:
    """SLSQP inequality: alpha + beta strictly below 1."""

    def __init__(self, order: ModelOrder):
        self.offset = 1 + order.p + order.q

    def __call__(self, theta: np.ndarray) -> float:
        return PERSISTENCE_LIMIT - (theta[self.offset + 1] + theta[self.offset + 2])


class _Objective:
    """Negative conditional log-likelihood of the scaled window."""

    def __init__(self, y: np.ndarray, order: ModelOrder, burn_in: int):
        self.y = y
        self.order = order
        self.burn_in = burn_in

    def __call__(self, theta: np.ndarray) -> float:
        p, q = self.order.p, self.order.q
        mu = theta[0]
        ar = theta[1:1 + p]
        ma = theta[1 + p:1 + p + q]
        omega, alpha, beta, skew, shape = theta[1 + p + q:]

        if omega <= 0.0 or alpha < 0.0 or beta < 0.0 or alpha + beta >= 1.0:
            return PENALTY
        if skew <= 0.0 or shape <= 0.0:
            return PENALTY

        with np.errstate(all="ignore"):
            resid = arma_residuals(self.y, mu, ar, ma)
            variances = garch_variance(resid, omega, alpha, beta)
            if not np.all(np.isfinite(variances)) or np.any(variances <= 0.0):
                return PENALTY

            e = resid[self.burn_in:]
            s2 = variances[self.burn_in:]
            z = e / np.sqrt(s2)
            ll = np.sum(sged_logpdf(z, skew, shape) - 0.5 * np.log(s2))

        if not np.isfinite(ll):
            return PENALTY
        return float(-ll)
