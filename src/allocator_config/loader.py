"""Configuration loader with validation and singleton access."""

import logging
import os
import yaml
from pathlib import Path
from typing import Optional

from .models import AppConfig

logger = logging.getLogger(__name__)

# Global config singleton
_config: Optional[AppConfig] = None


def load_config(config_path: Optional[str | Path] = None) -> AppConfig:
    """
    Load and validate configuration from YAML file.

    Environment variables override file values: FINNHUB_API_KEYS
    (comma-separated), ALLOWED_ORIGINS (comma-separated), LOG_LEVEL and
    PORTFOLIO_DATA_PATH.

    Args:
        config_path: Path to config.yaml file. When None, defaults plus
            environment overrides are used.

    Returns:
        Validated AppConfig instance

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config validation fails
        yaml.YAMLError: If YAML parsing fails
    """
    global _config

    raw_config = {}

    if config_path is not None:
        config_path = Path(config_path)

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        logger.info(f"Loading configuration from: {config_path}")

        with open(config_path, 'r') as f:
            raw_config = yaml.safe_load(f)

        if raw_config is None:
            raw_config = {}

        if not isinstance(raw_config, dict):
            raise ValueError(f"Invalid configuration: top level of {config_path} must be a mapping")

    _apply_env_overrides(raw_config)

    try:
        _config = AppConfig(**raw_config)
    except Exception as e:
        logger.error(f"Configuration validation failed: {e}")
        raise ValueError(f"Invalid configuration: {e}") from e

    # Log loaded configuration for audit trail
    logger.info("Configuration loaded successfully:")
    logger.info(f"  Quote API: {_config.quotes.base_url} ({len(_config.quotes.api_keys)} keys)")
    logger.info(f"  Quote cache TTL: {_config.quotes.cache_ttl_seconds}s")
    logger.info(f"  Quote request interval: {_config.quotes.min_request_interval_seconds}s")
    logger.info(f"  Allowed origins: {', '.join(_config.quote_service.allowed_origins)}")
    logger.info(f"  Portfolio storage: {_config.storage.data_path}")
    logger.info(f"  Max saved portfolios: {_config.storage.max_portfolios}")
    logger.info(f"  Log level: {_config.logging.level}")

    return _config


def _apply_env_overrides(raw_config: dict) -> None:
    """Merge environment variable overrides into the raw config mapping."""
    api_keys = os.getenv('FINNHUB_API_KEYS')
    if api_keys:
        raw_config.setdefault('quotes', {})['api_keys'] = api_keys.split(',')

    allowed_origins = os.getenv('ALLOWED_ORIGINS')
    if allowed_origins:
        origins = [origin.strip() for origin in allowed_origins.split(',') if origin.strip()]
        raw_config.setdefault('quote_service', {})['allowed_origins'] = origins

    log_level = os.getenv('LOG_LEVEL')
    if log_level:
        raw_config.setdefault('logging', {})['level'] = log_level

    data_path = os.getenv('PORTFOLIO_DATA_PATH')
    if data_path:
        raw_config.setdefault('storage', {})['data_path'] = data_path


def get_config() -> AppConfig:
    """
    Get the current loaded configuration.

    Returns:
        Current AppConfig instance

    Raises:
        RuntimeError: If config hasn't been loaded yet
    """
    if _config is None:
        raise RuntimeError(
            "Configuration not loaded. Call load_config() first."
        )
    return _config


def reset_config() -> None:
    """Forget the loaded configuration."""
    global _config
    _config = None
