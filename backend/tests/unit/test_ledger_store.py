"""
Unit Tests - Ledger Store
Tests for loading, atomic transactions, reset and persistence backends.
"""
import asyncio
import json
from decimal import Decimal

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from papertrade.db.backends import JsonFileBackend, MemoryBackend, RedisLedgerBackend
from papertrade.db.ledger_store import LedgerStore, create_ledger_store
from papertrade.db.models import Ledger, StockPosition
from papertrade.config import Settings
from papertrade.utils.exceptions import InsufficientFundsError, StoreIOError


class YieldingBackend(MemoryBackend):
    """Memory backend that yields to the event loop on every I/O call."""

    async def read(self):
        await asyncio.sleep(0)
        record = await super().read()
        await asyncio.sleep(0)
        return record

    async def write(self, record):
        await asyncio.sleep(0)
        await super().write(record)


def buy(symbol: str, shares: int, price: str):
    """Mutation buying ``shares`` of ``symbol`` if affordable."""
    def fn(ledger: Ledger) -> Ledger:
        position = StockPosition(symbol=symbol, shares=shares, entry_price=Decimal(price))
        if position.cost_basis > ledger.balance:
            raise InsufficientFundsError(required=position.cost_basis, available=ledger.balance)
        return ledger.evolve(
            balance=ledger.balance - position.cost_basis,
            open_positions=ledger.open_positions + (position,),
        )
    return fn


class TestLoad:
    """Tests for LedgerStore.load."""

    @pytest.mark.asyncio
    async def test_first_run_creates_ledger(self, store, memory_backend):
        """A missing record is initialized and persisted."""
        ledger = await store.load()

        assert ledger.balance == Decimal("1000000")
        assert ledger.open_positions == ()
        assert memory_backend._record is not None
        assert json.loads(memory_backend._record)["balance"] == 1000000.0

    @pytest.mark.asyncio
    async def test_load_returns_persisted_state(self, store):
        """load reads what the last transaction wrote."""
        await store.transact(buy("AAPL", 10, "100"))

        ledger = await store.load()

        assert ledger.balance == Decimal("999000")
        assert ledger.open_positions[0].symbol == "AAPL"

    @pytest.mark.asyncio
    async def test_custom_starting_balance(self):
        """Starting balance is configurable."""
        store = LedgerStore(MemoryBackend(), starting_balance=Decimal("50000"))
        assert (await store.load()).balance == Decimal("50000")

    @pytest.mark.asyncio
    async def test_concurrent_first_loads_agree(self):
        """Concurrent first loads initialize the ledger once."""
        store = LedgerStore(YieldingBackend())

        ledgers = await asyncio.gather(*(store.load() for _ in range(5)))

        assert len({ledger.created_at for ledger in ledgers}) == 1

    @pytest.mark.asyncio
    async def test_corrupt_record(self):
        """A corrupt record fails the load."""
        store = LedgerStore(MemoryBackend("garbage"))
        with pytest.raises(StoreIOError):
            await store.load()


class TestTransact:
    """Tests for LedgerStore.transact."""

    @pytest.mark.asyncio
    async def test_successful_transaction_persists(self, store, memory_backend):
        """The returned ledger is the persisted one."""
        ledger = await store.transact(buy("AAPL", 100, "150"))

        assert ledger.balance == Decimal("985000")
        assert Ledger.from_record(memory_backend._record) == ledger

    @pytest.mark.asyncio
    async def test_failed_transaction_writes_nothing(self, store, memory_backend):
        """A rejected transaction leaves the record byte-for-byte unchanged."""
        await store.load()
        before = memory_backend._record

        with pytest.raises(InsufficientFundsError):
            await store.transact(buy("NVDA", 1000, "2000"))

        assert memory_backend._record == before

    @pytest.mark.asyncio
    async def test_concurrent_transactions_stay_solvent(self):
        """Concurrent buys never overdraw the balance."""
        store = LedgerStore(YieldingBackend())

        results = await asyncio.gather(
            *(store.transact(buy("X", 1000, "150")) for _ in range(10)),
            return_exceptions=True,
        )

        succeeded = [r for r in results if isinstance(r, Ledger)]
        rejected = [r for r in results if isinstance(r, InsufficientFundsError)]
        assert len(succeeded) == 6
        assert len(rejected) == 4

        ledger = await store.load()
        assert ledger.balance == Decimal("100000")
        assert len(ledger.open_positions) == 6
        assert ledger.balance >= 0

    @pytest.mark.asyncio
    async def test_read_failure_is_fatal(self):
        """Storage errors propagate from transact."""
        class BrokenBackend(MemoryBackend):
            async def read(self):
                raise StoreIOError("disk gone")

        store = LedgerStore(BrokenBackend())
        with pytest.raises(StoreIOError):
            await store.transact(buy("AAPL", 1, "1"))


class TestReset:
    """Tests for LedgerStore.reset."""

    @pytest.mark.asyncio
    async def test_reset_clears_everything(self, store):
        """Reset restores the starting balance and empties history."""
        await store.transact(buy("AAPL", 100, "150"))

        ledger = await store.reset()

        assert ledger.balance == Decimal("1000000")
        assert ledger.open_positions == ()
        assert ledger.closed_trades == ()
        assert ledger.total_realized_pl == Decimal("0")
        assert (await store.load()) == ledger


class TestJsonFileBackend:
    """Tests for the JSON file backend."""

    @pytest.mark.asyncio
    async def test_missing_file_reads_none(self, tmp_path):
        """A missing file means first run."""
        backend = JsonFileBackend(tmp_path / "missing.json")
        assert await backend.read() is None

    @pytest.mark.asyncio
    async def test_write_replaces_file(self, tmp_path):
        """Writes land in the target and leave no temp file behind."""
        path = tmp_path / "nested" / "portfolio.json"
        backend = JsonFileBackend(path)

        await backend.write('{"balance": 1}')
        await backend.write('{"balance": 2}')

        assert path.read_text() == '{"balance": 2}'
        assert not (tmp_path / "nested" / "portfolio.json.tmp").exists()

    @pytest.mark.asyncio
    async def test_store_round_trip(self, file_store, tmp_path):
        """A file-backed store survives being reopened."""
        await file_store.transact(buy("AAPL", 100, "150"))

        reopened = LedgerStore(JsonFileBackend(tmp_path / "portfolio.json"))
        ledger = await reopened.load()

        assert ledger.balance == Decimal("985000")
        assert ledger.open_positions[0].cost_basis == Decimal("15000")

    @pytest.mark.asyncio
    async def test_unreadable_path(self, tmp_path):
        """OS errors surface as StoreIOError."""
        backend = JsonFileBackend(tmp_path)  # a directory, not a file
        with pytest.raises(StoreIOError):
            await backend.read()


class TestRedisLedgerBackend:
    """Tests for the Redis backend."""

    @pytest.mark.asyncio
    async def test_transact_uses_lock_and_record(self, mock_redis_client):
        """Transactions run inside the Redis lock."""
        backend = RedisLedgerBackend(mock_redis_client, "ledger:test")
        store = LedgerStore(backend)

        ledger = await store.transact(buy("AAPL", 100, "150"))

        assert ledger.balance == Decimal("985000")
        mock_redis_client.lock.assert_called_with("ledger:test")
        mock_redis_client.lock_object.acquire.assert_awaited()
        mock_redis_client.lock_object.release.assert_awaited()
        stored = json.loads(mock_redis_client.records["ledger:test"])
        assert stored["balance"] == 985000.0

    @pytest.mark.asyncio
    async def test_lock_released_on_rejection(self, mock_redis_client):
        """The lock is released when a transaction is rejected."""
        store = LedgerStore(RedisLedgerBackend(mock_redis_client, "ledger:test"))

        with pytest.raises(InsufficientFundsError):
            await store.transact(buy("NVDA", 1000, "2000"))

        mock_redis_client.lock_object.release.assert_awaited()
        mock_redis_client.set_record.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_redis_errors_become_store_errors(self, mock_redis_client):
        """Redis failures surface as StoreIOError."""
        mock_redis_client.get_record.side_effect = RedisConnectionError("down")
        backend = RedisLedgerBackend(mock_redis_client, "ledger:test")

        with pytest.raises(StoreIOError):
            await backend.read()

    @pytest.mark.asyncio
    async def test_close(self, mock_redis_client):
        """Closing the store closes the Redis client."""
        store = LedgerStore(RedisLedgerBackend(mock_redis_client, "ledger:test"))
        await store.close()
        mock_redis_client.close.assert_awaited_once()


class TestCreateLedgerStore:
    """Tests for building a store from settings."""

    @pytest.mark.asyncio
    async def test_memory_backend(self):
        store = await create_ledger_store(Settings(LEDGER_BACKEND="memory"))
        assert isinstance(store.backend, MemoryBackend)

    @pytest.mark.asyncio
    async def test_file_backend(self, tmp_path):
        path = tmp_path / "ledger.json"
        store = await create_ledger_store(
            Settings(LEDGER_BACKEND="file", LEDGER_FILE=str(path), STARTING_BALANCE=Decimal("250000"))
        )
        assert isinstance(store.backend, JsonFileBackend)
        assert store.backend.path == path
        assert (await store.load()).balance == Decimal("250000")
