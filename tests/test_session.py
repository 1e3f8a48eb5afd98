"""Tests for the editable portfolio session."""

import asyncio

import pytest

from allocation_engine import Asset
from portfolio_session import AmbiguousSymbolError, PortfolioLimitError, PortfolioSession
from portfolio_store import PortfolioStorageService, encode_portfolio_to_url
from quote_resolver import QuoteResolver


@pytest.fixture
def resolver(fake_provider, quote_config) -> QuoteResolver:
    return QuoteResolver(fake_provider, quote_config)


def two_assets(**overrides):
    first = dict(symbol="VOO", current_value=500, target_percentage=0.5)
    first.update(overrides)
    return [Asset(**first), Asset(symbol="QQQ", current_value=500, target_percentage=0.5)]


class TestDefaults:
    """A new session starts from the sample portfolio."""

    def test_default_portfolio(self):
        session = PortfolioSession()

        assert [a.symbol for a in session.assets] == ["VOO", "QQQ", "NVDA"]
        assert session.new_money == 1000
        assert session.current_total == 1000
        assert session.new_total == 2000
        assert session.total_percentage == pytest.approx(100.0)

    def test_sessions_do_not_share_assets(self):
        first = PortfolioSession()
        first.set_current_value(0, 1)
        assert PortfolioSession().assets[0].current_value == 600


class TestCalculate:
    """Validation gates the engine."""

    def test_default_allocations(self):
        result = PortfolioSession().calculate()

        assert result.validation_errors == []
        assert [r.amount_to_add for r in result.allocations] == [400.0, 300.0, 300.0]

    def test_invalid_portfolio_returns_errors_only(self):
        session = PortfolioSession()
        session.set_target_percentage(0, 0.4)

        result = session.calculate()
        assert result.allocations == []
        assert result.validation_errors == ["Target percentages must sum to 100% (currently 90.0%)"]

    def test_buy_only_needs_new_money(self):
        session = PortfolioSession(two_assets(), new_money=0)
        result = session.calculate()

        assert result.allocations == []
        assert result.validation_errors == []

    def test_selling_rebalances_without_new_money(self):
        session = PortfolioSession(two_assets(current_value=900), new_money=0)
        session.set_enable_selling(True)

        amounts = [r.amount_to_add for r in session.calculate().allocations]
        assert amounts == pytest.approx([-200.0, 200.0])

    def test_no_sell_lock(self):
        session = PortfolioSession(two_assets(current_value=900), new_money=0, enable_selling=True)
        session.set_no_sell(0, True)

        amounts = [r.amount_to_add for r in session.calculate().allocations]
        assert amounts == [0.0, 0.0]

    def test_new_money_bounds(self):
        session = PortfolioSession()
        session.set_new_money(1_000_000)
        assert session.new_money == 1_000_000

        with pytest.raises(ValueError):
            session.set_new_money(-1)
        with pytest.raises(ValueError):
            session.set_new_money(1_000_000.01)


class TestValueSharesPrice:
    """Value, share count and price stay consistent."""

    def test_value_updates_shares(self):
        session = PortfolioSession(two_assets(current_price=250.0))
        session.set_current_value(0, 1000)
        assert session.assets[0].shares == 4.0

    def test_value_without_price_leaves_shares(self):
        session = PortfolioSession(two_assets())
        session.set_current_value(0, 1000)
        assert session.assets[0].shares is None

    def test_shares_update_value(self):
        session = PortfolioSession(two_assets(current_price=333.333))
        session.set_shares(0, 3)
        assert session.assets[0].current_value == 1000.0

    def test_manual_price_with_shares_updates_value(self):
        session = PortfolioSession(two_assets(shares=2.0))
        session.set_current_price(0, 300)

        asset = session.assets[0]
        assert asset.current_value == 600.0
        assert asset.price_source == "manual"

    def test_manual_price_without_shares_derives_shares(self):
        session = PortfolioSession(two_assets())
        session.set_current_price(0, 3)
        assert session.assets[0].shares == 166.6667


class TestEditingAssets:
    """Adding, removing and renaming assets."""

    def test_remove_asset_keeps_minimum(self):
        session = PortfolioSession()
        assert session.remove_asset(2) is True
        assert session.remove_asset(0) is False
        assert len(session.assets) == 2

    def test_add_asset_with_price(self, resolver):
        session = PortfolioSession(two_assets(), resolver=resolver)
        asset = asyncio.run(session.add_asset("aapl", 0.1))

        assert asset.symbol == "AAPL"
        assert asset.current_value == 0
        assert asset.current_price == 200.0
        assert asset.price_source == "api"
        assert session.last_price_update is not None
        assert len(session.assets) == 3

    def test_add_asset_without_resolver(self):
        session = PortfolioSession(two_assets())
        asset = asyncio.run(session.add_asset("AAPL", 0.1))
        assert asset.current_price is None

    def test_add_crypto_alias(self, resolver):
        session = PortfolioSession(two_assets(), resolver=resolver)
        asset = asyncio.run(session.add_asset("eth", 0.1, asset_type="crypto"))

        assert asset.symbol == "BINANCE:ETHUSDT"
        assert asset.current_price == 2500.0

    def test_ambiguous_symbol_needs_choice(self):
        session = PortfolioSession(two_assets())
        with pytest.raises(AmbiguousSymbolError) as exc_info:
            asyncio.run(session.add_asset("btc", 0.1))
        assert exc_info.value.symbol == "BTC"

        asset = asyncio.run(session.add_asset("btc", 0.1, asset_type="stock"))
        assert asset.symbol == "BTC"

    def test_invalid_symbol(self):
        session = PortfolioSession(two_assets())
        with pytest.raises(ValueError, match="Invalid symbol format"):
            asyncio.run(session.add_asset("bad symbol", 0.1))

    def test_asset_limit(self):
        assets = [Asset(symbol=f"S{i}", current_value=0, target_percentage=0.05) for i in range(20)]
        session = PortfolioSession(assets)
        with pytest.raises(PortfolioLimitError):
            asyncio.run(session.add_asset("AAPL", 0.1))

    def test_set_symbol_fetches_price_and_shares(self, resolver):
        session = PortfolioSession(two_assets(), resolver=resolver)
        asyncio.run(session.set_symbol(0, "nvda"))

        asset = session.assets[0]
        assert asset.symbol == "NVDA"
        assert asset.current_price == 125.0
        assert asset.shares == 4.0

    def test_set_symbol_unpriced_clears_price(self, resolver):
        session = PortfolioSession(two_assets(current_price=10.0, shares=50.0), resolver=resolver)
        asyncio.run(session.set_symbol(0, "MISSING"))

        asset = session.assets[0]
        assert asset.current_price is None
        assert asset.shares is None
        assert session.price_error == "Unable to fetch price for MISSING. Enter price manually."

    def test_same_symbol_keeps_price(self, resolver, fake_provider):
        session = PortfolioSession(two_assets(current_price=10.0), resolver=resolver)
        asyncio.run(session.set_symbol(0, " voo "))

        assert session.assets[0].current_price == 10.0
        assert fake_provider.calls == []

    def test_blank_symbol_clears_price(self):
        session = PortfolioSession(two_assets(current_price=10.0))
        asyncio.run(session.set_symbol(0, "  "))

        assert session.assets[0].symbol == ""
        assert session.assets[0].current_price is None


class TestRefreshPrices:
    """Bulk repricing."""

    def test_refresh_updates_values_from_shares(self, resolver):
        session = PortfolioSession(two_assets(shares=2.0), resolver=resolver)
        failed = asyncio.run(session.refresh_prices())

        assert failed == []
        assert session.assets[0].current_value == 1000.0
        assert session.assets[1].shares == 1.25
        assert session.price_error is None

    def test_refresh_reports_failures(self, resolver):
        assets = [
            Asset(symbol="VOO", current_value=500, target_percentage=0.5),
            Asset(symbol="MISSING", current_value=500, target_percentage=0.5),
        ]
        session = PortfolioSession(assets, resolver=resolver)
        failed = asyncio.run(session.refresh_prices())

        assert failed == ["MISSING"]
        assert session.price_error == "Unable to fetch prices for: MISSING. Enter prices manually."

    def test_refresh_without_resolver(self):
        assert asyncio.run(PortfolioSession().refresh_prices()) == []


class TestSharingAndSaving:
    """Share links and saved portfolios."""

    def test_share_link_round_trip(self):
        session = PortfolioSession(two_assets(no_sell=True), new_money=250, enable_selling=True)
        restored = PortfolioSession.from_share_url(session.share_url("https://example.com/"))

        assert restored.assets == session.assets
        assert restored.new_money == 250
        assert restored.enable_selling is True

    def test_bad_share_link_falls_back_to_defaults(self):
        restored = PortfolioSession.from_share_url("https://example.com/?p=garbage")
        assert [a.symbol for a in restored.assets] == ["VOO", "QQQ", "NVDA"]

    def test_default_share_base_url(self):
        session = PortfolioSession()
        assert session.share_url() == encode_portfolio_to_url(session.assets, session.new_money)
        assert session.share_url().startswith("https://allogator.vercel.app/?p=")

    def test_save_and_restore(self, storage_config):
        storage = PortfolioStorageService(storage_config)
        session = PortfolioSession(two_assets(), new_money=300)

        result = session.save_to(storage, "Core")
        restored = PortfolioSession.from_saved(storage.load_portfolio(result.id))

        assert restored.assets == session.assets
        assert restored.new_money == 300
