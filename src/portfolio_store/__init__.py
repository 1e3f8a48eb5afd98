from .storage import PortfolioStorageService, generate_id
from .sharing import (
    encode_portfolio,
    encode_portfolio_to_url,
    decode_portfolio_from_url,
)
from .models import (
    SavedPortfolio,
    PortfolioStorage,
    SaveResult,
    ImportResult,
    SharedPortfolio,
)

__all__ = [
    "PortfolioStorageService",
    "generate_id",
    "encode_portfolio",
    "encode_portfolio_to_url",
    "decode_portfolio_from_url",
    "SavedPortfolio",
    "PortfolioStorage",
    "SaveResult",
    "ImportResult",
    "SharedPortfolio",
]
