"""Utility functions and helpers."""

from armagarch.utils.calendar import next_trading_date, to_date
from armagarch.utils.logging_setup import logging_settings, setup_logging

__all__ = ["next_trading_date", "to_date", "logging_settings", "setup_logging"]
