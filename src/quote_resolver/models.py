from datetime import datetime
from pydantic import BaseModel


class Quote(BaseModel):
    """Resolved price for a symbol"""
    symbol: str
    price: float
    timestamp: str  # ISO-8601


class CachedQuote(BaseModel):
    """Cached quote with timestamp for TTL validation"""
    quote: Quote
    cached_at: datetime
