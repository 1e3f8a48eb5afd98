"""Editable portfolio state feeding the allocation engine"""

import logging
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from pydantic import BaseModel, Field

from allocation_engine import (
    AllocationCalculator,
    AllocationResult,
    Asset,
    ValidationResult,
    calculate_total_percentage,
    round_half_up,
    validate_portfolio,
    MAX_ASSETS,
    MAX_NEW_MONEY,
    MIN_ASSETS,
    MONEY_MULTIPLIER,
    SHARE_MULTIPLIER,
)
from portfolio_store import (
    PortfolioStorageService,
    SavedPortfolio,
    SaveResult,
    decode_portfolio_from_url,
    encode_portfolio_to_url,
)
from quote_resolver import (
    Quote,
    QuoteResolver,
    is_ambiguous_symbol,
    is_valid_symbol,
    normalize_symbol,
    resolve_symbol,
)
from quote_resolver.symbols import AssetType, Exchange
from .exceptions import AmbiguousSymbolError, PortfolioLimitError

DEFAULT_ASSETS = [
    Asset(symbol='VOO', current_value=600, target_percentage=0.50),
    Asset(symbol='QQQ', current_value=300, target_percentage=0.30),
    Asset(symbol='NVDA', current_value=100, target_percentage=0.20),
]
DEFAULT_NEW_MONEY = 1000.0


def round_money(value: float) -> float:
    return round_half_up(value * MONEY_MULTIPLIER) / MONEY_MULTIPLIER


def round_shares(value: float) -> float:
    return round_half_up(value * SHARE_MULTIPLIER) / SHARE_MULTIPLIER


class SessionResult(BaseModel):
    """Allocations for the current state plus any validation errors"""
    allocations: List[AllocationResult] = Field(default_factory=list)
    validation_errors: List[str] = Field(default_factory=list)


class PortfolioSession:
    """
    Holds the assets being edited and recomputes allocations on demand.

    Every field has its own setter so derived values stay consistent: editing
    the value, the share count or the price keeps the other two in step.
    Prices are looked up through the optional QuoteResolver.
    """

    def __init__(self, assets: Optional[Sequence[Asset]] = None, new_money: float = DEFAULT_NEW_MONEY,
                 enable_selling: bool = False, resolver: Optional[QuoteResolver] = None,
                 calculator: Optional[AllocationCalculator] = None, logger: Optional[logging.Logger] = None):
        source = DEFAULT_ASSETS if assets is None else assets
        self.assets: List[Asset] = [asset.model_copy() for asset in source]
        self.new_money = new_money
        self.enable_selling = enable_selling
        self.resolver = resolver
        self.calculator = calculator or AllocationCalculator()
        self.logger = logger or logging.getLogger(__name__)

        self.price_error: Optional[str] = None
        self.last_price_update: Optional[str] = None

    @classmethod
    def from_share_url(cls, url: str, resolver: Optional[QuoteResolver] = None) -> 'PortfolioSession':
        """Start from a share link, or from the defaults when the link is unusable"""
        shared = decode_portfolio_from_url(url)
        if shared is None:
            return cls(resolver=resolver)
        return cls(shared.assets, shared.new_money, shared.enable_selling, resolver=resolver)

    @classmethod
    def from_saved(cls, portfolio: SavedPortfolio, resolver: Optional[QuoteResolver] = None) -> 'PortfolioSession':
        return cls(portfolio.assets, portfolio.new_money, portfolio.enable_selling, resolver=resolver)

    # Totals

    @property
    def current_total(self) -> float:
        return sum(asset.current_value for asset in self.assets)

    @property
    def new_total(self) -> float:
        return self.current_total + self.new_money

    @property
    def total_percentage(self) -> float:
        return calculate_total_percentage(self.assets)

    # Calculation

    def validate(self) -> ValidationResult:
        return validate_portfolio(self.assets, self.enable_selling)

    def calculate(self) -> SessionResult:
        """
        Validate and, when valid, run the engine.

        Buy-only mode needs new money to distribute. With selling enabled a
        zero amount is still a meaningful rebalance.
        """
        validation = self.validate()

        has_money = self.new_money > 0 or (self.enable_selling and self.new_money == 0)
        if not validation.is_valid or not has_money:
            return SessionResult(validation_errors=validation.errors)

        allocations = self.calculator.calculate_allocations(self.assets, self.new_money, self.enable_selling)
        return SessionResult(allocations=allocations, validation_errors=validation.errors)

    # Portfolio-level setters

    def set_new_money(self, amount: float):
        if amount < 0 or amount > MAX_NEW_MONEY:
            raise ValueError(f"New money must be between 0 and {MAX_NEW_MONEY:,}")
        self.new_money = amount

    def set_enable_selling(self, enabled: bool):
        self.enable_selling = enabled

    # Asset setters

    async def add_asset(self, symbol: str, target_percentage: float, no_sell: bool = False,
                        asset_type: Optional[AssetType] = None, exchange: Exchange = 'binance') -> Asset:
        """
        Append an asset with a zero current value, priced when possible.

        Raises:
            PortfolioLimitError: If the portfolio already has MAX_ASSETS assets
            AmbiguousSymbolError: If the ticker needs an asset_type choice
            ValueError: If the symbol format is invalid
        """
        if len(self.assets) >= MAX_ASSETS:
            raise PortfolioLimitError(f"Portfolio cannot contain more than {MAX_ASSETS} assets")

        final_symbol = self._resolve_input_symbol(symbol, asset_type, exchange)
        asset = Asset(symbol=final_symbol, current_value=0, target_percentage=target_percentage, no_sell=no_sell)

        if final_symbol:
            quote = await self._fetch_quote(final_symbol)
            if quote:
                self._apply_quote(asset, quote)

        self.assets.append(asset)
        self.logger.info(f"Added asset {final_symbol or '<blank>'} at {target_percentage * 100:.1f}% target")
        return asset

    async def set_symbol(self, index: int, symbol: str, asset_type: Optional[AssetType] = None,
                         exchange: Exchange = 'binance'):
        """Change a symbol and refetch its price when it actually changed"""
        final_symbol = self._resolve_input_symbol(symbol, asset_type, exchange)
        asset = self.assets[index]
        old_symbol = asset.symbol
        asset.symbol = final_symbol

        if not final_symbol:
            self._clear_price(asset)
            return

        if old_symbol == final_symbol:
            return

        quote = await self._fetch_quote(final_symbol)
        if quote:
            self._apply_quote(asset, quote)
            if asset.current_value > 0:
                asset.shares = round_shares(asset.current_value / quote.price)
        else:
            self._clear_price(asset)
            if self.resolver is not None:
                self.price_error = f"Unable to fetch price for {final_symbol}. Enter price manually."

    def set_current_value(self, index: int, value: float):
        asset = self.assets[index]
        asset.current_value = value
        if asset.current_price and asset.current_price > 0:
            asset.shares = round_shares(value / asset.current_price)

    def set_shares(self, index: int, shares: float):
        asset = self.assets[index]
        asset.shares = shares
        if asset.current_price and asset.current_price > 0:
            asset.current_value = round_money(shares * asset.current_price)

    def set_current_price(self, index: int, price: float):
        asset = self.assets[index]
        asset.current_price = price
        asset.price_source = 'manual'
        if price > 0:
            if asset.shares and asset.shares > 0:
                asset.current_value = round_money(asset.shares * price)
            elif asset.current_value > 0:
                asset.shares = round_shares(asset.current_value / price)

    def set_target_percentage(self, index: int, target_percentage: float):
        self.assets[index].target_percentage = target_percentage

    def set_no_sell(self, index: int, no_sell: bool):
        self.assets[index].no_sell = no_sell

    def remove_asset(self, index: int) -> bool:
        """Remove an asset unless the portfolio is already at MIN_ASSETS"""
        if len(self.assets) <= MIN_ASSETS:
            return False
        removed = self.assets.pop(index)
        self.logger.info(f"Removed asset {removed.symbol}")
        return True

    # Prices

    async def refresh_prices(self) -> List[str]:
        """
        Refetch prices for every asset with a symbol.

        Values follow the share count when one is known, otherwise the share
        count is derived from the value.

        Returns:
            Symbols that could not be priced
        """
        symbols = [asset.symbol for asset in self.assets if asset.symbol.strip()]
        if not symbols or self.resolver is None:
            return []

        self.price_error = None
        quotes = await self.resolver.fetch_multiple_prices(symbols)

        for asset in self.assets:
            quote = quotes.get(asset.symbol)
            if not quote:
                continue
            self._apply_quote(asset, quote)
            if asset.shares and asset.shares > 0:
                asset.current_value = round_money(asset.shares * quote.price)
            elif asset.current_value > 0:
                asset.shares = round_shares(asset.current_value / quote.price)

        failed = list(dict.fromkeys(symbol for symbol in symbols if not quotes.get(symbol)))
        if failed:
            self.price_error = f"Unable to fetch prices for: {', '.join(failed)}. Enter prices manually."
            self.logger.warning(self.price_error)

        self.last_price_update = datetime.now(timezone.utc).isoformat()
        return failed

    # Sharing and persistence

    def share_url(self, base_url: Optional[str] = None) -> str:
        if base_url:
            return encode_portfolio_to_url(self.assets, self.new_money, self.enable_selling, base_url=base_url)
        return encode_portfolio_to_url(self.assets, self.new_money, self.enable_selling)

    def save_to(self, storage: PortfolioStorageService, name: str,
                portfolio_id: Optional[str] = None) -> SaveResult:
        return storage.save_portfolio(name, self.assets, self.new_money, self.enable_selling, portfolio_id)

    # Helpers

    def _resolve_input_symbol(self, symbol: str, asset_type: Optional[AssetType], exchange: Exchange) -> str:
        normalized = normalize_symbol(symbol)
        if not normalized:
            return ''

        if asset_type is None and is_ambiguous_symbol(normalized):
            raise AmbiguousSymbolError(normalized)

        final_symbol = resolve_symbol(normalized, asset_type, exchange)
        if not is_valid_symbol(final_symbol):
            raise ValueError(f"Invalid symbol format: {symbol}")
        return final_symbol

    async def _fetch_quote(self, symbol: str) -> Optional[Quote]:
        if self.resolver is None:
            return None
        quote = await self.resolver.fetch_price(symbol)
        if quote:
            self.last_price_update = datetime.now(timezone.utc).isoformat()
        return quote

    @staticmethod
    def _apply_quote(asset: Asset, quote: Quote):
        asset.current_price = quote.price
        asset.last_updated = quote.timestamp
        asset.price_source = 'api'

    @staticmethod
    def _clear_price(asset: Asset):
        asset.current_price = None
        asset.last_updated = None
        asset.price_source = None
        asset.shares = None
