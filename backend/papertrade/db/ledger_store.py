"""
PaperTrading Ledger - Ledger Store

Owns the persisted ledger and is the only place it is written.

Every mutation goes through ``transact``: read the current record,
apply a pure function to it, persist the result. Transactions on the
same store are serialized, so no two of them ever validate against
the same stale balance.
"""
import asyncio
from decimal import Decimal
from typing import Callable

from loguru import logger

from papertrade.config import Settings, settings
from papertrade.db.backends import (
    JsonFileBackend,
    LedgerBackend,
    MemoryBackend,
    RedisLedgerBackend,
)
from papertrade.db.redis_client import RedisClient
from papertrade.db.models.ledger import Ledger, STARTING_BALANCE
from papertrade.utils.exceptions import LedgerError


LedgerMutation = Callable[[Ledger], Ledger]


class LedgerStore:
    """
    Ledger Store

    Responsible for:
    - Loading the ledger (creating it on first run)
    - Applying mutations atomically
    - Resetting the account
    """

    def __init__(
        self,
        backend: LedgerBackend,
        starting_balance: Decimal = STARTING_BALANCE,
    ):
        self.backend = backend
        self.starting_balance = Decimal(starting_balance)
        self._write_lock = asyncio.Lock()

    async def load(self) -> Ledger:
        """
        Get the current ledger.

        A missing record means first run: a fresh ledger is created
        and persisted under the write lock.
        """
        raw = await self.backend.read()
        if raw is not None:
            return Ledger.from_record(raw)

        async with self._write_lock, self.backend.exclusive():
            # Another writer may have initialized it while we waited
            raw = await self.backend.read()
            if raw is not None:
                return Ledger.from_record(raw)
            ledger = Ledger.fresh(self.starting_balance)
            await self.backend.write(ledger.to_record())
            logger.info(f"Initialized new ledger with balance {ledger.balance:,.2f} ({self.backend.name})")
            return ledger

    async def transact(self, fn: LedgerMutation) -> Ledger:
        """
        Apply ``fn`` to the current ledger and persist the result.

        Args:
            fn: Pure function from the current ledger to the new one.
                It raises a LedgerError to reject the transaction.

        Returns:
            The persisted ledger

        Raises:
            LedgerError: ``fn`` rejected the change; nothing was written
            StoreIOError: the record could not be read or written
        """
        async with self._write_lock, self.backend.exclusive():
            raw = await self.backend.read()
            current = Ledger.from_record(raw) if raw is not None else Ledger.fresh(self.starting_balance)

            try:
                updated = fn(current)
            except LedgerError as e:
                logger.debug(f"Transaction rejected: {e.code} - {e.message}")
                raise

            await self.backend.write(updated.to_record())
            return updated

    async def reset(self) -> Ledger:
        """Replace the ledger with a fresh one."""
        async with self._write_lock, self.backend.exclusive():
            ledger = Ledger.fresh(self.starting_balance)
            await self.backend.write(ledger.to_record())
        logger.info(f"Ledger reset to {ledger.balance:,.2f}")
        return ledger

    async def close(self) -> None:
        await self.backend.close()


async def create_ledger_store(config: Settings = settings) -> LedgerStore:
    """Build a LedgerStore for the configured backend."""
    if config.LEDGER_BACKEND == "redis":
        client = RedisClient(config.redis_url)
        await client.initialize()
        backend: LedgerBackend = RedisLedgerBackend(client, config.LEDGER_REDIS_KEY)
    elif config.LEDGER_BACKEND == "memory":
        backend = MemoryBackend()
    else:
        backend = JsonFileBackend(config.LEDGER_FILE)

    logger.info(f"Ledger store using {backend.name} backend")
    return LedgerStore(backend, starting_balance=config.STARTING_BALANCE)
