"""Quote resolver with TTL cache, single-flight requests and a request throttle"""

import asyncio
import logging
import time
from datetime import datetime
from typing import Dict, Iterable, Optional

from allocator_config import QuoteConfig, get_config
from .base_provider import QuoteProvider
from .exceptions import QuoteError
from .models import CachedQuote, Quote


class QuoteResolver:
    """
    Resolve symbols to prices through a QuoteProvider.

    Each resolver owns its cache, so callers that need isolation create their
    own instance. Concurrent lookups of the same symbol share one provider
    call, and provider calls are spaced at least min_request_interval_seconds
    apart.
    """

    def __init__(self, provider: QuoteProvider, config: Optional[QuoteConfig] = None,
                 logger: Optional[logging.Logger] = None):
        self.provider = provider
        self.config = config or get_config().quotes
        self.logger = logger or logging.getLogger(__name__)

        # Price cache: symbol -> CachedQuote
        self._cache: Dict[str, CachedQuote] = {}
        self._in_flight: Dict[str, asyncio.Future] = {}

        self._throttle_lock: Optional[asyncio.Lock] = None
        self._throttle_loop: Optional[asyncio.AbstractEventLoop] = None
        self._last_request_at: Optional[float] = None

    async def fetch_price(self, symbol: str) -> Optional[Quote]:
        """
        Get the price for a symbol.

        Returns:
            The Quote, or None when the provider could not price the symbol
        """
        cached = self.get_cached(symbol)
        if cached:
            return cached

        task = self._in_flight.get(symbol)
        if task is None:
            task = asyncio.ensure_future(self._fetch_and_cache(symbol))
            self._in_flight[symbol] = task
            task.add_done_callback(lambda _, key=symbol: self._in_flight.pop(key, None))
        else:
            self.logger.debug(f"Joining in-flight request for {symbol}")

        try:
            return await asyncio.shield(task)
        except QuoteError as e:
            self.logger.error(f"Failed to fetch price for {symbol}: {e}")
            return None

    async def fetch_multiple_prices(self, symbols: Iterable[str]) -> Dict[str, Optional[Quote]]:
        """Resolve several symbols concurrently, keyed by symbol"""
        unique_symbols = list(dict.fromkeys(symbols))
        quotes = await asyncio.gather(*(self.fetch_price(symbol) for symbol in unique_symbols))

        results = dict(zip(unique_symbols, quotes))
        failed = [symbol for symbol, quote in results.items() if quote is None]
        if failed:
            self.logger.warning(f"Unable to price {len(failed)} of {len(unique_symbols)} symbols: {', '.join(failed)}")
        return results

    def get_cached(self, symbol: str) -> Optional[Quote]:
        """Return the cached quote if it is still within the TTL"""
        cached_entry = self._cache.get(symbol)
        if not cached_entry:
            return None

        age_seconds = (datetime.now() - cached_entry.cached_at).total_seconds()
        if age_seconds <= self.config.cache_ttl_seconds:
            self.logger.debug(f"Using cached price for {symbol} (age: {age_seconds:.1f}s)")
            return cached_entry.quote

        del self._cache[symbol]
        return None

    def clear_cache(self):
        self._cache.clear()

    async def _fetch_and_cache(self, symbol: str) -> Quote:
        await self._wait_for_request_slot()
        quote = await self.provider.fetch_quote(symbol)
        self._cache[symbol] = CachedQuote(quote=quote, cached_at=datetime.now())
        self.logger.info(f"Retrieved price: {symbol} -> ${quote.price:,.2f}")
        return quote

    async def _wait_for_request_slot(self):
        """Sleep until the minimum interval since the previous provider call has passed"""
        async with self._get_throttle_lock():
            interval = self.config.min_request_interval_seconds
            if self._last_request_at is not None and interval > 0:
                wait_seconds = interval - (time.monotonic() - self._last_request_at)
                if wait_seconds > 0:
                    await asyncio.sleep(wait_seconds)
            self._last_request_at = time.monotonic()

    def _get_throttle_lock(self) -> asyncio.Lock:
        # asyncio locks belong to one event loop
        loop = asyncio.get_running_loop()
        if self._throttle_lock is None or self._throttle_loop is not loop:
            self._throttle_lock = asyncio.Lock()
            self._throttle_loop = loop
        return self._throttle_lock
