"""
Quote Service - HTTP proxy in front of the Finnhub quote API

Keeps API keys server side, rotates through them when one is rate limited and
restricts browser access to the configured origins.
"""
import logging
import os
from typing import Optional

from fastapi import Depends, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from allocator_config import AppConfig, configure_logging, get_config, load_config
from quote_resolver import (
    FinnhubQuoteProvider,
    QuoteProviderError,
    normalize_symbol,
)
from quote_resolver.symbols import BLOCKED_PATTERNS, VALID_SYMBOL_REGEX

logger = logging.getLogger(__name__)

VERSION = os.getenv('SERVICE_VERSION', '1.0.0')

SECURITY_HEADERS = {
    'X-Content-Type-Options': 'nosniff',
    'X-Frame-Options': 'DENY',
    'X-XSS-Protection': '1; mode=block',
    'Strict-Transport-Security': 'max-age=31536000; includeSubDomains',
    'Referrer-Policy': 'strict-origin-when-cross-origin',
    'Permissions-Policy': 'geolocation=(), microphone=(), camera=()',
}


def _ensure_config() -> AppConfig:
    try:
        return get_config()
    except RuntimeError:
        return load_config(os.getenv('CONFIG_PATH'))


def get_quote_provider(request: Request) -> Optional[FinnhubQuoteProvider]:
    """Provider built from the app's configured API keys, or None when there are none"""
    quotes_config = request.app.state.quote_config
    if not quotes_config.api_keys:
        return None
    return FinnhubQuoteProvider(quotes_config)


def create_app(config: Optional[AppConfig] = None) -> FastAPI:
    config = config or _ensure_config()
    service_config = config.quote_service

    app = FastAPI(
        title="Portfolio Allocator Quote Service",
        description="Price lookup proxy for the portfolio allocator",
        version=VERSION
    )
    app.state.quote_config = config.quotes

    app.add_middleware(
        CORSMiddleware,
        allow_origins=service_config.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    @app.middleware("http")
    async def add_security_headers(request: Request, call_next):
        response = await call_next(request)
        response.headers.update(SECURITY_HEADERS)
        return response

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {"status": "healthy", "version": VERSION}

    @app.get("/api/quote")
    async def get_quote(symbol: Optional[str] = Query(default=None),
                        provider: Optional[FinnhubQuoteProvider] = Depends(get_quote_provider)):
        """Proxy a Finnhub quote, returning the upstream status and body"""
        if not symbol:
            return JSONResponse(status_code=400, content={"error": "Symbol parameter is required"})

        sanitized_symbol = normalize_symbol(symbol)

        if not VALID_SYMBOL_REGEX.match(sanitized_symbol):
            return JSONResponse(status_code=400, content={"error": "Invalid symbol format"})

        if any(pattern in sanitized_symbol for pattern in BLOCKED_PATTERNS):
            return JSONResponse(status_code=400, content={"error": "Invalid symbol"})

        if provider is None:
            logger.error("No quote API keys configured")
            return JSONResponse(status_code=500, content={"error": "Server configuration error"})

        try:
            status, data = await provider.fetch_raw(sanitized_symbol)
        except QuoteProviderError as e:
            logger.error(f"Quote lookup failed for {sanitized_symbol}: {e}")
            return JSONResponse(
                status_code=500,
                content={"error": "Failed to fetch price data", "details": str(e)}
            )

        headers = {}
        if 200 <= status < 300:
            headers['Cache-Control'] = f"s-maxage={service_config.cache_max_age_seconds}, stale-while-revalidate"

        return JSONResponse(status_code=status, content=data, headers=headers)

    @app.options("/api/quote")
    async def quote_options():
        return Response(status_code=200)

    @app.api_route("/api/quote", methods=["POST", "PUT", "PATCH", "DELETE"])
    async def quote_method_not_allowed():
        return JSONResponse(status_code=405, content={"error": "Method not allowed"})

    return app


app = create_app()


def run():
    """Run the service with uvicorn"""
    import uvicorn

    config = _ensure_config()
    configure_logging(config.logging)
    logger.info(f"Starting quote service v{VERSION} on {config.quote_service.host}:{config.quote_service.port}")
    uvicorn.run(app, host=config.quote_service.host, port=config.quote_service.port)


if __name__ == "__main__":
    run()
