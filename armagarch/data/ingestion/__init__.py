"""Market data ingestion."""

from armagarch.data.ingestion.yahoo_client import YahooPriceClient

__all__ = ["YahooPriceClient"]
