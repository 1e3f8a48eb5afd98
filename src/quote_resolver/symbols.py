"""Symbol normalization, crypto alias resolution and display names"""

import re
from dataclasses import dataclass
from typing import Dict, Literal, Optional

Exchange = Literal['binance', 'coinbase']
AssetType = Literal['stock', 'crypto']

VALID_SYMBOL_REGEX = re.compile(r'^[A-Z0-9\-\.:]{1,30}$')
BLOCKED_PATTERNS = ('SCRIPT', 'EVAL', 'FUNCTION', 'JAVASCRIPT', 'VBSCRIPT')


@dataclass(frozen=True)
class CryptoAlias:
    """Exchange pairs a crypto ticker resolves to"""
    name: str
    binance: Optional[str] = None
    coinbase: Optional[str] = None


# (ticker, name, listed on Coinbase)
_CRYPTO_LISTINGS = [
    ('BTC', 'Bitcoin', True),
    ('ETH', 'Ethereum', True),
    ('XRP', 'XRP', True),
    ('USDT', 'Tether', False),
    ('BNB', 'BNB', False),
    ('SOL', 'Solana', True),
    ('USDC', 'USDC', True),
    ('DOGE', 'Dogecoin', True),
    ('TRX', 'TRON', False),
    ('ADA', 'Cardano', True),
    ('HYPE', 'Hyperliquid', False),
    ('SUI', 'Sui', True),
    ('XLM', 'Stellar', True),
    ('LINK', 'Chainlink', True),
    ('HBAR', 'Hedera', True),
    ('BCH', 'Bitcoin Cash', True),
    ('AVAX', 'Avalanche', True),
    ('LTC', 'Litecoin', True),
    ('LEO', 'UNUS SED LEO', False),
    ('TON', 'Toncoin', False),
    ('SHIB', 'Shiba Inu', True),
    ('USDE', 'Ethena USDe', False),
    ('UNI', 'Uniswap', True),
    ('DOT', 'Polkadot', True),
    ('XMR', 'Monero', False),
    ('DAI', 'Dai', True),
    ('BGB', 'Bitget Token', False),
    ('PEPE', 'Pepe', False),
    ('CRO', 'Cronos', False),
    ('AAVE', 'Aave', True),
    ('ENA', 'Ethena', False),
    ('TAO', 'Bittensor', False),
    ('NEAR', 'NEAR Protocol', True),
    ('ETC', 'Ethereum Classic', True),
    ('PI', 'Pi', False),
    ('ONDO', 'Ondo', False),
    ('ICP', 'Internet Computer', True),
    ('OKB', 'OKB', False),
    ('MNT', 'Mantle', False),
    ('APT', 'Aptos', True),
    ('KAS', 'Kaspa', False),
    ('BONK', 'Bonk', True),
    ('PENGU', 'Pudgy Penguins', False),
    ('POL', 'POL (prev. MATIC)', True),
    ('ALGO', 'Algorand', True),
    ('ARB', 'Arbitrum', True),
    ('USD1', 'World Liberty Financial USD', False),
    ('GT', 'GateToken', False),
    ('VET', 'VeChain', False),
    ('RENDER', 'Render', True),
    ('SPX', 'SPX6900', False),
    ('WLD', 'Worldcoin', True),
    ('SEI', 'Sei', True),
    ('TRUMP', 'OFFICIAL TRUMP', False),
    ('SKY', 'Sky', False),
    ('ATOM', 'Cosmos', True),
    ('FIL', 'Filecoin', True),
    ('FLR', 'Flare', False),
    ('IP', 'Story', False),
    ('FET', 'Artificial Superintelligence Alliance', True),
    ('JUP', 'Jupiter', True),
    ('INJ', 'Injective', True),
    ('QNT', 'Quant', True),
    ('XDC', 'XDC Network', False),
    ('KCS', 'KuCoin Token', False),
    ('TIA', 'Celestia', True),
    ('FDUSD', 'First Digital USD', False),
    ('CRV', 'Curve DAO Token', True),
    ('CFX', 'Conflux', False),
    ('OP', 'Optimism', True),
    ('FORM', 'Four', False),
    ('STX', 'Stacks', True),
    ('FARTCOIN', 'Fartcoin', False),
    ('FLOKI', 'FLOKI', False),
    ('IMX', 'Immutable', True),
    ('ENS', 'Ethereum Name Service', True),
    ('WIF', 'dogwifhat', False),
    ('GRT', 'The Graph', True),
    ('CAKE', 'PancakeSwap', False),
    ('KAIA', 'Kaia', False),
    ('LDO', 'Lido DAO', True),
    ('VIRTUAL', 'Virtuals Protocol', False),
    ('PAXG', 'PAX Gold', False),
    ('PYUSD', 'PayPal USD', False),
    ('XTZ', 'Tezos', True),
    ('S', 'Sonic', False),
    ('THETA', 'Theta Network', False),
    ('A', 'Vaulta', False),
    ('PUMP', 'Pump.fun', False),
    ('RAY', 'Raydium', True),
    ('NEXO', 'Nexo', False),
    ('JASMY', 'JasmyCoin', True),
    ('IOTA', 'IOTA', False),
    ('XAUT', 'Tether Gold', False),
    ('GALA', 'Gala', True),
    ('SAND', 'The Sandbox', True),
    ('PYTH', 'Pyth Network', True),
    ('PENDLE', 'Pendle', False),
    ('AERO', 'Aerodrome Finance', False),
    ('JTO', 'Jito', True),
]

CRYPTO_ALIASES: Dict[str, CryptoAlias] = {
    ticker: CryptoAlias(
        name=name,
        binance=f"BINANCE:{ticker}USDT",
        coinbase=f"COINBASE:{ticker}-USD" if on_coinbase else None,
    )
    for ticker, name, on_coinbase in _CRYPTO_LISTINGS
}

# Tickers that are both a listed stock/ETF and a crypto alias
AMBIGUOUS_SYMBOLS = frozenset({
    'BTC', 'ETH',
    'A', 'S', 'IP', 'GT', 'LEO', 'LINK', 'SKY', 'FORM', 'PI',
})


def normalize_symbol(symbol: str) -> str:
    return symbol.strip().upper()


def is_valid_symbol(symbol: str) -> bool:
    """Check a normalized symbol against the allowed format and blocked words"""
    if not VALID_SYMBOL_REGEX.match(symbol):
        return False
    return not any(pattern in symbol for pattern in BLOCKED_PATTERNS)


def get_crypto_symbol(alias: str, exchange: Exchange = 'binance') -> Optional[str]:
    """Map a crypto ticker to its exchange pair, falling back to Binance"""
    crypto = CRYPTO_ALIASES.get(alias.upper())
    if not crypto:
        return None

    if exchange == 'coinbase' and crypto.coinbase:
        return crypto.coinbase

    return crypto.binance


def is_crypto_alias(symbol: str) -> bool:
    return symbol.upper() in CRYPTO_ALIASES


def is_ambiguous_symbol(symbol: str) -> bool:
    return symbol.upper() in AMBIGUOUS_SYMBOLS


def resolve_symbol(symbol: str, asset_type: Optional[AssetType] = None,
                   exchange: Exchange = 'binance') -> str:
    """
    Turn user input into the symbol used for quotes.

    Crypto tickers become exchange pairs (BTC -> BINANCE:BTCUSDT) unless the
    caller chose 'stock'. Ambiguous tickers are left to the caller to
    disambiguate before calling this.
    """
    normalized = normalize_symbol(symbol)

    if asset_type == 'stock':
        return normalized

    if asset_type == 'crypto' or is_crypto_alias(normalized):
        return get_crypto_symbol(normalized, exchange) or normalized

    return normalized


def get_display_name(symbol: str) -> str:
    """Short name for an exchange pair, e.g. BINANCE:BTCUSDT -> BTC"""
    if ':' in symbol:
        parts = symbol.split(':')
        if len(parts) == 2:
            exchange, pair = parts

            if exchange == 'BINANCE' and pair.endswith('USDT'):
                return pair[:-len('USDT')]

            if exchange == 'COINBASE' and pair.endswith('-USD'):
                return pair[:-len('-USD')]

            return pair

    return symbol
