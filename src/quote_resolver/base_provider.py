from abc import ABC, abstractmethod
from .models import Quote

class QuoteProvider(ABC):
    """Abstract base class for price sources"""

    @abstractmethod
    async def fetch_quote(self, symbol: str) -> Quote:
        """Fetch the current price for a symbol, raising QuoteError on failure"""
        pass
