class AmbiguousSymbolError(Exception):
    """Raised when a ticker could be a stock or a crypto and no choice was given"""

    def __init__(self, symbol: str):
        self.symbol = symbol
        super().__init__(f"Symbol {symbol} is both a stock and a crypto ticker; choose asset_type='stock' or 'crypto'")

class PortfolioLimitError(Exception):
    """Raised when an edit would take the portfolio outside its size limits"""
    pass
