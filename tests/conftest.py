"""Pytest configuration and fixtures for all tests.

Every test starts without a loaded configuration and without the environment
variables that override it, so results never depend on the developer's shell.
"""

import asyncio
import os
from pathlib import Path
from typing import Dict, Iterable, List

import pytest

from allocation_engine import Asset
from allocator_config import QuoteConfig, StorageConfig, reset_config
from quote_resolver import Quote, QuoteNotFoundError, QuoteProvider

CONFIG_ENV_VARS = [
    "FINNHUB_API_KEYS",
    "ALLOWED_ORIGINS",
    "LOG_LEVEL",
    "PORTFOLIO_DATA_PATH",
    "CONFIG_PATH",
]


@pytest.fixture(autouse=True)
def isolate_config():
    """Clear config env vars and the config singleton around each test."""
    saved_values = {}
    for var in CONFIG_ENV_VARS:
        if var in os.environ:
            saved_values[var] = os.environ.pop(var)
    reset_config()

    yield

    reset_config()
    for var in CONFIG_ENV_VARS:
        os.environ.pop(var, None)
    os.environ.update(saved_values)


@pytest.fixture
def quote_config() -> QuoteConfig:
    return QuoteConfig(api_keys=["key-1", "key-2"], min_request_interval_seconds=0)


@pytest.fixture
def storage_config(tmp_path: Path) -> StorageConfig:
    return StorageConfig(data_path=tmp_path / "data" / "portfolios.json", max_portfolios=3)


@pytest.fixture
def scenario_assets() -> List[Asset]:
    """Mixed portfolio with one empty position."""
    return [
        Asset(symbol="QQQ", current_value=1708.80, target_percentage=0.50),
        Asset(symbol="NVDA", current_value=533.22, target_percentage=0.20),
        Asset(symbol="SMH", current_value=585.20, target_percentage=0.10),
        Asset(symbol="VEU", current_value=0, target_percentage=0.10),
        Asset(symbol="BTC", current_value=197.00, target_percentage=0.10),
    ]


class FakeQuoteProvider(QuoteProvider):
    """In-memory provider recording every call."""

    def __init__(self, prices: Dict[str, float], delay: float = 0.0):
        self.prices = prices
        self.delay = delay
        self.calls: List[str] = []
        self.call_times: List[float] = []

    async def fetch_quote(self, symbol: str) -> Quote:
        self.calls.append(symbol)
        self.call_times.append(asyncio.get_running_loop().time())
        if self.delay:
            await asyncio.sleep(self.delay)
        if symbol not in self.prices:
            raise QuoteNotFoundError(f"No price data found for symbol: {symbol}")
        return Quote(symbol=symbol, price=self.prices[symbol], timestamp="2026-01-05T15:30:00+00:00")

    def calls_for(self, symbols: Iterable[str]) -> int:
        wanted = set(symbols)
        return sum(1 for call in self.calls if call in wanted)


@pytest.fixture
def fake_provider() -> FakeQuoteProvider:
    return FakeQuoteProvider({"AAPL": 200.0, "VOO": 500.0, "QQQ": 400.0, "NVDA": 125.0,
                              "BINANCE:ETHUSDT": 2500.0})
