"""Trading signal types and generation."""

from armagarch.signals.generator import Signal, SignalGenerator, SignalSeries, SignalType

__all__ = ["Signal", "SignalGenerator", "SignalSeries", "SignalType"]
