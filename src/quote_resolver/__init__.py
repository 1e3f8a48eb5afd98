from .base_provider import QuoteProvider
from .finnhub import FinnhubQuoteProvider
from .resolver import QuoteResolver
from .models import Quote, CachedQuote
from .exceptions import (
    QuoteError,
    QuoteNotFoundError,
    QuoteRateLimitError,
    QuoteProviderError,
)
from .symbols import (
    CRYPTO_ALIASES,
    AMBIGUOUS_SYMBOLS,
    normalize_symbol,
    is_valid_symbol,
    get_crypto_symbol,
    is_crypto_alias,
    is_ambiguous_symbol,
    resolve_symbol,
    get_display_name,
)

__version__ = "1.0.0"

__all__ = [
    "QuoteProvider",
    "FinnhubQuoteProvider",
    "QuoteResolver",
    "Quote",
    "CachedQuote",
    "QuoteError",
    "QuoteNotFoundError",
    "QuoteRateLimitError",
    "QuoteProviderError",
    "CRYPTO_ALIASES",
    "AMBIGUOUS_SYMBOLS",
    "normalize_symbol",
    "is_valid_symbol",
    "get_crypto_symbol",
    "is_crypto_alias",
    "is_ambiguous_symbol",
    "resolve_symbol",
    "get_display_name",
    "__version__",
]
