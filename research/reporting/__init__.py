"""Run output export and charts."""

from research.reporting.export import export_curves, export_signals, export_summaries

__all__ = ["export_curves", "export_signals", "export_summaries"]
