"""Application configuration management for the portfolio allocator."""

from .models import (
    AppConfig,
    QuoteConfig,
    QuoteServiceConfig,
    StorageConfig,
    SharingConfig,
    LoggingConfig,
)
from .loader import load_config, get_config, reset_config
from .log_setup import StructuredFormatter, configure_logging

__all__ = [
    "AppConfig",
    "QuoteConfig",
    "QuoteServiceConfig",
    "StorageConfig",
    "SharingConfig",
    "LoggingConfig",
    "load_config",
    "get_config",
    "reset_config",
    "StructuredFormatter",
    "configure_logging",
]
