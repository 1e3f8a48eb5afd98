"""Pydantic models for application configuration with validation."""

from pathlib import Path
from typing import List, Literal
from pydantic import BaseModel, Field, field_validator


DEFAULT_ALLOWED_ORIGINS = [
    "https://allogator.vercel.app",
    "https://portfolio-rebalancer.vercel.app",
    "http://localhost:5173",
    "http://localhost:4173",
]


class QuoteConfig(BaseModel):
    """Quote provider and resolver settings."""

    base_url: str = Field(
        default="https://finnhub.io/api/v1",
        description="Base URL of the Finnhub quote API"
    )
    api_keys: List[str] = Field(
        default_factory=list,
        description="Finnhub API keys, tried in order when one is rate limited"
    )
    cache_ttl_seconds: int = Field(
        default=300,
        ge=0,
        le=3600,
        description="How long a resolved quote is reused before refetching"
    )
    min_request_interval_seconds: float = Field(
        default=0.1,
        ge=0.0,
        le=5.0,
        description="Minimum spacing between provider calls"
    )
    request_timeout_seconds: float = Field(
        default=10.0,
        ge=1.0,
        le=60.0,
        description="Timeout for a single quote HTTP request"
    )

    @field_validator("api_keys")
    @classmethod
    def strip_blank_keys(cls, v: List[str]) -> List[str]:
        """Drop blank entries left over from comma-separated lists."""
        return [key.strip() for key in v if key and key.strip()]


class QuoteServiceConfig(BaseModel):
    """HTTP quote proxy settings."""

    allowed_origins: List[str] = Field(
        default_factory=lambda: list(DEFAULT_ALLOWED_ORIGINS),
        description="Origins allowed by CORS"
    )
    cache_max_age_seconds: int = Field(
        default=60,
        ge=0,
        le=3600,
        description="s-maxage sent with successful quote responses"
    )
    host: str = Field(
        default="0.0.0.0",
        description="Bind address for the quote service"
    )
    port: int = Field(
        default=8000,
        ge=1,
        le=65535,
        description="Bind port for the quote service"
    )


class StorageConfig(BaseModel):
    """Saved portfolio persistence settings."""

    data_path: Path = Field(
        default=Path.home() / ".portfolio-allocator" / "portfolios.json",
        description="JSON file holding saved portfolios"
    )
    max_portfolios: int = Field(
        default=3,
        ge=1,
        le=50,
        description="Maximum number of saved portfolios"
    )


class SharingConfig(BaseModel):
    """Share link settings."""

    base_url: str = Field(
        default="https://allogator.vercel.app/",
        description="Page URL that share links point to"
    )


class LoggingConfig(BaseModel):
    """Logging settings."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Root log level"
    )
    format: Literal["text", "json"] = Field(
        default="text",
        description="Log line format"
    )

    @field_validator("level", mode="before")
    @classmethod
    def upper_level(cls, v):
        """Accept lower-case level names."""
        return v.upper() if isinstance(v, str) else v


class AppConfig(BaseModel):
    """Root application configuration."""

    quotes: QuoteConfig = Field(
        default_factory=QuoteConfig,
        description="Quote provider settings"
    )
    quote_service: QuoteServiceConfig = Field(
        default_factory=QuoteServiceConfig,
        description="Quote proxy service settings"
    )
    storage: StorageConfig = Field(
        default_factory=StorageConfig,
        description="Saved portfolio storage settings"
    )
    sharing: SharingConfig = Field(
        default_factory=SharingConfig,
        description="Share link settings"
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig,
        description="Logging settings"
    )
