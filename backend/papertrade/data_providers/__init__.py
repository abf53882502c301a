"""
Market data providers used as price lookups by the ledger.
"""
from papertrade.data_providers.finnhub import FinnhubQuoteProvider

__all__ = ["FinnhubQuoteProvider"]
