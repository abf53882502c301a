"""
PaperTrading Ledger - Test Configuration
Shared fixtures and test configuration.
"""
import os
import sys
from decimal import Decimal
from typing import Dict
import pytest
from unittest.mock import AsyncMock, MagicMock

# Add backend to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Set test environment
os.environ["APP_ENV"] = "testing"
os.environ["LEDGER_BACKEND"] = "memory"
os.environ["LOG_TO_FILE"] = "false"
os.environ["FINNHUB_API_KEY"] = ""

from papertrade.core.trading import TradeService
from papertrade.db.backends import JsonFileBackend, MemoryBackend
from papertrade.db.ledger_store import LedgerStore
from papertrade.utils.exceptions import QuoteUnavailableError


# =========================
# Ledger Fixtures
# =========================

@pytest.fixture
def memory_backend() -> MemoryBackend:
    """Empty in-memory ledger backend."""
    return MemoryBackend()


@pytest.fixture
def store(memory_backend) -> LedgerStore:
    """Ledger store over an empty in-memory backend."""
    return LedgerStore(memory_backend)


@pytest.fixture
def file_store(tmp_path) -> LedgerStore:
    """Ledger store persisting to a JSON file in a temp dir."""
    return LedgerStore(JsonFileBackend(tmp_path / "portfolio.json"))


@pytest.fixture
def service(store) -> TradeService:
    """Trade service bound to the in-memory store."""
    return TradeService(store)


# =========================
# Market Data Fixtures
# =========================

@pytest.fixture
def sample_prices() -> Dict[str, Decimal]:
    """Live prices by symbol."""
    return {
        "AAPL": Decimal("160.00"),
        "MSFT": Decimal("400.00"),
        "TSLA": Decimal("255.00"),
    }


@pytest.fixture
def price_lookup(sample_prices):
    """Async price lookup failing for symbols without a price."""
    async def lookup(symbol: str) -> Decimal:
        if symbol not in sample_prices:
            raise QuoteUnavailableError(symbol, "no quote")
        return sample_prices[symbol]
    return lookup


# =========================
# Redis Mocks
# =========================

@pytest.fixture
def mock_redis_client():
    """Mock RedisClient with an in-memory record and lock."""
    records = {}

    async def get_record(key):
        return records.get(key)

    async def set_record(key, value):
        records[key] = value

    lock = MagicMock()
    lock.acquire = AsyncMock(return_value=True)
    lock.release = AsyncMock(return_value=None)

    client = MagicMock()
    client.records = records
    client.get_record = AsyncMock(side_effect=get_record)
    client.set_record = AsyncMock(side_effect=set_record)
    client.lock = MagicMock(return_value=lock)
    client.close = AsyncMock()
    client.lock_object = lock
    return client
