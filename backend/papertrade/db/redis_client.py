"""
PaperTrading Ledger - Redis Client
"""
import redis.asyncio as redis
from redis.asyncio.lock import Lock
from loguru import logger

from papertrade.config import settings


class RedisClient:
    """Async Redis client wrapper."""

    def __init__(self, url: str | None = None):
        self._url = url or settings.redis_url
        self._client: redis.Redis | None = None

    async def initialize(self):
        """Initialize Redis connection."""
        try:
            self._client = redis.from_url(
                self._url,
                encoding="utf-8",
                decode_responses=True,
            )
            # Test connection
            await self._client.ping()
            logger.info(f"Redis connected: {self._url.split('@')[-1]}")
        except Exception as e:
            logger.error(f"Redis connection failed: {e}")
            raise

    async def close(self):
        """Close Redis connection."""
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.info("Redis connection closed")

    @property
    def client(self) -> redis.Redis:
        """Get Redis client instance."""
        if not self._client:
            raise RuntimeError("Redis client not initialized. Call initialize() first.")
        return self._client

    # =========================
    # Ledger Record Methods
    # =========================
    async def get_record(self, key: str) -> str | None:
        """Get the serialized record stored under ``key``."""
        return await self.client.get(key)

    async def set_record(self, key: str, value: str) -> None:
        """Replace the serialized record stored under ``key``."""
        await self.client.set(key, value)

    def lock(self, key: str) -> Lock:
        """Cross-process writer lock for ``key``."""
        return self.client.lock(f"{key}:lock")
