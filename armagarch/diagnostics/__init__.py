"""Input diagnostics."""

from armagarch.diagnostics.stationarity import StationarityReport, check_stationarity

__all__ = ["StationarityReport", "check_stationarity"]
