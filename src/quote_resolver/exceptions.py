class QuoteError(Exception):
    """Base class for quote lookup failures"""
    pass

class QuoteNotFoundError(QuoteError):
    """Raised when the provider has no price for a symbol"""
    pass

class QuoteRateLimitError(QuoteError):
    """Raised when every API key is rate limited"""
    pass

class QuoteProviderError(QuoteError):
    """Raised when the provider returns an error or cannot be reached"""
    pass
