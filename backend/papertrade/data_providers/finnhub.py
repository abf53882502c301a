"""
Finnhub Quote Provider

Supplies live prices for the portfolio view and for trades placed
without an explicit price.

API Documentation: https://finnhub.io/docs/api
Free tier: 60 API calls/minute, real-time US stock quotes
"""
import asyncio
from decimal import Decimal, InvalidOperation
from typing import Optional

import aiohttp
from loguru import logger

from papertrade.utils.exceptions import QuoteUnavailableError


FINNHUB_BASE_URL = "https://finnhub.io/api/v1"


class FinnhubQuoteProvider:
    """
    Finnhub price lookup.

    Usage:
        provider = FinnhubQuoteProvider("your_api_key")
        await provider.initialize()

        price = await provider.get_price("AAPL")
    """

    name = "finnhub"

    def __init__(
        self,
        api_key: str,
        base_url: str = FINNHUB_BASE_URL,
        timeout_seconds: float = 10.0,
    ):
        self.api_key = api_key
        self.base_url = base_url
        self.timeout_seconds = timeout_seconds
        self._session: Optional[aiohttp.ClientSession] = None

    async def initialize(self) -> None:
        """Initialize HTTP session."""
        if self._session is None:
            timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)
            self._session = aiohttp.ClientSession(timeout=timeout)
            logger.info("Finnhub quote provider initialized")

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session:
            await self._session.close()
            self._session = None
            logger.info("Finnhub quote provider closed")

    async def get_price(self, symbol: str) -> Decimal:
        """
        Get the latest trade price for ``symbol``.

        Raises:
            QuoteUnavailableError: no price could be obtained
        """
        symbol = symbol.upper()
        if not self.api_key:
            raise QuoteUnavailableError(symbol, "Finnhub API key not configured")
        if self._session is None:
            await self.initialize()

        url = f"{self.base_url}/quote"
        params = {"symbol": symbol, "token": self.api_key}

        try:
            async with self._session.get(url, params=params) as response:
                if response.status == 200:
                    data = await response.json()
                elif response.status == 401:
                    raise QuoteUnavailableError(symbol, "Finnhub authentication failed")
                elif response.status == 429:
                    raise QuoteUnavailableError(symbol, "Finnhub rate limit exceeded")
                else:
                    error_text = await response.text()
                    raise QuoteUnavailableError(symbol, f"Finnhub API error {response.status}: {error_text}")
        except aiohttp.ClientError as e:
            raise QuoteUnavailableError(symbol, f"Connection error: {e}") from e
        except asyncio.TimeoutError as e:
            raise QuoteUnavailableError(symbol, f"Timed out after {self.timeout_seconds}s") from e
        except ValueError as e:
            raise QuoteUnavailableError(symbol, f"Malformed response: {e}") from e

        # "c" is the current price; Finnhub returns 0 for unknown symbols
        current = data.get("c") if isinstance(data, dict) else None
        if not current:
            raise QuoteUnavailableError(symbol, "No data found")

        try:
            price = Decimal(str(current))
        except InvalidOperation as e:
            raise QuoteUnavailableError(symbol, f"Invalid price {current!r}") from e
        if not price.is_finite() or price <= 0:
            raise QuoteUnavailableError(symbol, f"Invalid price {current}")
        return price

    async def __call__(self, symbol: str) -> Decimal:
        return await self.get_price(symbol)
