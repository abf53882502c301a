"""
PaperTrading Ledger - Ledger Persistence Backends

Each backend stores the ledger as one serialized record and
replaces it whole on every write, so a reader never sees a
partially written ledger.
"""
import asyncio
import os
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional

from redis.exceptions import RedisError
from loguru import logger

from papertrade.db.redis_client import RedisClient
from papertrade.utils.exceptions import StoreIOError


class LedgerBackend(ABC):
    """Durable home for the serialized ledger record."""

    name: str = "base"

    @abstractmethod
    async def read(self) -> Optional[str]:
        """Return the stored record, or None if there is none yet."""
        pass

    @abstractmethod
    async def write(self, record: str) -> None:
        """Replace the stored record."""
        pass

    @asynccontextmanager
    async def exclusive(self) -> AsyncIterator[None]:
        """Writer section shared with other processes using the same record."""
        yield

    async def close(self) -> None:
        """Release backend resources."""
        pass


class MemoryBackend(LedgerBackend):
    """Keeps the record in process memory."""

    name = "memory"

    def __init__(self, record: Optional[str] = None):
        self._record = record

    async def read(self) -> Optional[str]:
        return self._record

    async def write(self, record: str) -> None:
        self._record = record


class JsonFileBackend(LedgerBackend):
    """
    JSON file backend.

    Writes go to a sibling ``.tmp`` file which then replaces the
    target, so the visible file is always a complete record.
    """

    name = "file"

    def __init__(self, path: str | Path):
        self.path = Path(path)

    async def read(self) -> Optional[str]:
        return await asyncio.to_thread(self._read_sync)

    async def write(self, record: str) -> None:
        await asyncio.to_thread(self._write_sync, record)

    def _read_sync(self) -> Optional[str]:
        try:
            return self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StoreIOError(f"Failed to read ledger file {self.path}: {e}") from e

    def _write_sync(self, record: str) -> None:
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(record, encoding="utf-8")
            os.replace(tmp, self.path)
        except OSError as e:
            raise StoreIOError(f"Failed to write ledger file {self.path}: {e}") from e


class RedisLedgerBackend(LedgerBackend):
    """Stores the record as a single Redis string."""

    name = "redis"

    def __init__(self, client: RedisClient, key: str):
        self.client = client
        self.key = key

    async def read(self) -> Optional[str]:
        try:
            return await self.client.get_record(self.key)
        except RedisError as e:
            raise StoreIOError(f"Failed to read ledger from Redis: {e}") from e

    async def write(self, record: str) -> None:
        try:
            await self.client.set_record(self.key, record)
        except RedisError as e:
            raise StoreIOError(f"Failed to write ledger to Redis: {e}") from e

    @asynccontextmanager
    async def exclusive(self) -> AsyncIterator[None]:
        try:
            lock = self.client.lock(self.key)
            await lock.acquire()
        except RedisError as e:
            raise StoreIOError(f"Failed to acquire ledger lock: {e}") from e
        try:
            yield
        finally:
            try:
                await lock.release()
            except RedisError as e:
                logger.error(f"Failed to release ledger lock {self.key}: {e}")

    async def close(self) -> None:
        await self.client.close()
