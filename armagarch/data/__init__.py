"""Price and return series handling."""

from armagarch.data.returns import (
    log_returns_from_prices,
    validate_prices,
    validate_return_series,
)

__all__ = ["log_returns_from_prices", "validate_prices", "validate_return_series"]
