"""
Engine configuration.

Configuration is read from a YAML file (``engine:`` section) with
``${ENV_VAR}`` expansion. Missing files fall back to defaults.
"""

import os
import re
from dataclasses import dataclass, field, fields, replace
from datetime import date
from pathlib import Path
from typing import Optional
import structlog
import yaml

import pandas as pd

from armagarch.exceptions import ConfigurationError

logger = structlog.get_logger(__name__)

DEFAULT_SOLVERS = ("SLSQP", "L-BFGS-B", "Nelder-Mead", "Powell")


@dataclass(frozen=True)
class EngineConfig:
    """All options recognized by the walk-forward engine."""
    # Walk-forward
    window_size: int = 500
    max_p: int = 4
    max_q: int = 4
    n_workers: int = 1

    # Conditional variance model
    variance_order: tuple = (1, 1)
    solvers: tuple = DEFAULT_SOLVERS

    # Evaluation
    risk_free_annual_rate: float = 0.02
    periods_per_year: int = 252
    eval_start: Optional[date] = None
    eval_end: Optional[date] = None

    # Data
    symbol: str = "^GSPC"
    data_start: Optional[date] = field(default_factory=lambda: date(2018, 1, 1))
    data_end: Optional[date] = None
    stationarity_significance: float = 0.05

    def validate(self) -> "EngineConfig":
        """
        Check option ranges.

        Raises:
            ConfigurationError: On any invalid option
        """
        if self.window_size < 2:
            raise ConfigurationError(f"window_size must be >= 2, got {self.window_size}")
        if self.max_p < 0 or self.max_q < 0:
            raise ConfigurationError(
                f"max_p and max_q must be non-negative, got ({self.max_p}, {self.max_q})"
            )
        if self.max_p == 0 and self.max_q == 0:
            raise ConfigurationError("max_p and max_q cannot both be 0 (empty order search space)")
        if self.n_workers < 1:
            raise ConfigurationError(f"n_workers must be >= 1, got {self.n_workers}")
        if self.periods_per_year <= 0:
            raise ConfigurationError(f"periods_per_year must be positive, got {self.periods_per_year}")
        if tuple(self.variance_order) != (1, 1):
            raise ConfigurationError(
                f"only GARCH(1,1) variance is supported, got {tuple(self.variance_order)}"
            )
        if not self.solvers:
            raise ConfigurationError("at least one solver is required")
        if not 0.0 < self.stationarity_significance < 1.0:
            raise ConfigurationError(
                f"stationarity_significance must be in (0, 1), got {self.stationarity_significance}"
            )
        if self.eval_start and self.eval_end and self.eval_start > self.eval_end:
            raise ConfigurationError(
                f"eval_start {self.eval_start} is after eval_end {self.eval_end}"
            )
        return self

    def with_overrides(self, **overrides) -> "EngineConfig":
        """Return a copy with non-None overrides applied and validated."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **_coerce(changes)).validate()

    def to_dict(self) -> dict:
        """Convert to dictionary for logging."""
        return {
            f.name: (
                getattr(self, f.name).isoformat()
                if isinstance(getattr(self, f.name), date)
                else getattr(self, f.name)
            )
            for f in fields(self)
        }


def _expand_env_vars(value):
    """Expand ${VAR} references in string config values."""
    if isinstance(value, str) and "${" in value:
        def replace_env(match):
            env_var = match.group(1)
            return os.environ.get(env_var, match.group(0))
        return re.sub(r'\$\{([^}]+)\}', replace_env, value)
    return value


def _parse_date(value) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    try:
        return pd.Timestamp(value).date()
    except (ValueError, TypeError) as e:
        raise ConfigurationError(f"invalid date value: {value!r}") from e


_DATE_FIELDS = ("eval_start", "eval_end", "data_start", "data_end")
_INT_FIELDS = ("window_size", "max_p", "max_q", "n_workers", "periods_per_year")
_FLOAT_FIELDS = ("risk_free_annual_rate", "stationarity_significance")


def _coerce(raw: dict) -> dict:
    """Coerce raw (YAML / CLI / env) values to field types."""
    known = {f.name for f in fields(EngineConfig)}
    unknown = set(raw) - known
    if unknown:
        raise ConfigurationError(f"unknown configuration keys: {sorted(unknown)}")

    values = {}
    for key, value in raw.items():
        value = _expand_env_vars(value)
        try:
            if key in _DATE_FIELDS:
                value = _parse_date(value)
            elif key in _INT_FIELDS:
                value = int(value)
            elif key in _FLOAT_FIELDS:
                value = float(value)
            elif key in ("variance_order", "solvers"):
                value = tuple(value)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"invalid value for {key}: {value!r}") from e
        values[key] = value
    return values


def load_config(path: Optional[str] = None) -> EngineConfig:
    """
    Load engine configuration from a YAML file.

    Args:
        path: Path to YAML file. None or a missing file yields defaults.

    Returns:
        Validated EngineConfig
    """
    if path is None:
        return EngineConfig().validate()

    config_path = Path(path)
    if not config_path.exists():
        logger.warning("config_not_found_using_defaults", path=str(path))
        return EngineConfig().validate()

    with open(config_path) as f:
        document = yaml.safe_load(f) or {}

    if not isinstance(document, dict):
        raise ConfigurationError(f"config file {path} must contain a mapping")

    raw = document.get("engine", {}) or {}
    config = EngineConfig(**_coerce(raw)).validate()

    logger.info("config_loaded", path=str(path))
    return config
