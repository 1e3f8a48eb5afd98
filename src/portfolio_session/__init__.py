from .session import (
    PortfolioSession,
    SessionResult,
    DEFAULT_ASSETS,
    DEFAULT_NEW_MONEY,
    round_money,
    round_shares,
)
from .exceptions import AmbiguousSymbolError, PortfolioLimitError

__all__ = [
    "PortfolioSession",
    "SessionResult",
    "DEFAULT_ASSETS",
    "DEFAULT_NEW_MONEY",
    "round_money",
    "round_shares",
    "AmbiguousSymbolError",
    "PortfolioLimitError",
]
