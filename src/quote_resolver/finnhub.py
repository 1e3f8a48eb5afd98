"""Finnhub quote provider with API key rotation"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, List, Optional, Tuple

import aiohttp

from allocator_config import QuoteConfig, get_config
from .base_provider import QuoteProvider
from .exceptions import QuoteNotFoundError, QuoteProviderError, QuoteRateLimitError
from .models import Quote


class FinnhubQuoteProvider(QuoteProvider):
    """Fetch quotes from Finnhub, moving to the next API key when one is rate limited"""

    def __init__(self, config: Optional[QuoteConfig] = None, logger: Optional[logging.Logger] = None):
        self.config = config or get_config().quotes
        self.logger = logger or logging.getLogger(__name__)
        self.base_url = self.config.base_url.rstrip('/')
        self.api_keys: List[str] = list(self.config.api_keys)

        if not self.api_keys:
            raise ValueError("A valid API key is required")

    async def fetch_quote(self, symbol: str) -> Quote:
        status, data = await self.fetch_raw(symbol)

        if status == 429:
            raise QuoteRateLimitError(f"Rate limited on all {len(self.api_keys)} API keys")

        if status != 200:
            raise QuoteProviderError(f"HTTP error! status: {status}")

        return self.parse_quote(symbol, data)

    async def fetch_raw(self, symbol: str) -> Tuple[int, Any]:
        """
        Request a quote, trying each API key in turn.

        A key is skipped when it is rate limited (HTTP 429) or the request
        fails, unless it is the last one. Any other response is returned as-is.

        Returns:
            Tuple of (HTTP status, decoded JSON body)

        Raises:
            QuoteProviderError: If the request with the last key fails
        """
        timeout = aiohttp.ClientTimeout(total=self.config.request_timeout_seconds)

        async with aiohttp.ClientSession(timeout=timeout) as session:
            for index, api_key in enumerate(self.api_keys):
                is_last = index == len(self.api_keys) - 1

                try:
                    status, data = await self._request(session, symbol, api_key)
                except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
                    if is_last:
                        self.logger.error(f"Quote request for {symbol} failed: {e}")
                        raise QuoteProviderError(f"Failed to fetch price data: {e}") from e
                    self.logger.warning(f"Quote request for {symbol} failed with key #{index + 1}, trying next key: {e}")
                    continue

                if status == 429 and not is_last:
                    self.logger.warning(f"Rate limited on key #{index + 1} for {symbol}, trying next key")
                    continue

                return status, data

        raise QuoteProviderError("All API keys exhausted")

    async def _request(self, session: aiohttp.ClientSession, symbol: str, api_key: str) -> Tuple[int, Any]:
        url = f"{self.base_url}/quote"
        self.logger.debug(f"Requesting quote for {symbol} from {url}")

        async with session.get(url, params={'symbol': symbol, 'token': api_key}) as response:
            data = await response.json(content_type=None)
            return response.status, data

    @staticmethod
    def parse_quote(symbol: str, data: Any) -> Quote:
        """Build a Quote from a Finnhub /quote payload (current price in 'c')"""
        if not isinstance(data, dict):
            raise QuoteProviderError(f"Unexpected quote response for {symbol}")

        if data.get('error'):
            raise QuoteProviderError(f"API Error: {data['error']}")

        price = data.get('c')
        if price is None:
            raise QuoteNotFoundError(f"No price data found for symbol: {symbol}")

        try:
            price = float(price)
        except (TypeError, ValueError) as e:
            raise QuoteProviderError(f"Invalid price for {symbol}: {price!r}") from e

        # Finnhub answers unknown symbols with an all-zero quote
        if price <= 0:
            raise QuoteNotFoundError(f"No price data found for symbol: {symbol}")

        return Quote(
            symbol=symbol,
            price=price,
            timestamp=datetime.now(timezone.utc).isoformat()
        )
