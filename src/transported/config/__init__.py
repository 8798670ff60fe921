"""Configuration package for TransportEd."""

from transported.config.app_config import (
    AnalyticsConfig,
    AppConfig,
    AuthConfig,
    CatalogConfig,
    DatabaseConfig,
    ScoringConfig,
    clear_config_cache,
    configure_logging,
    load_app_config,
)

__all__ = [
    "AnalyticsConfig",
    "AppConfig",
    "AuthConfig",
    "CatalogConfig",
    "DatabaseConfig",
    "ScoringConfig",
    "clear_config_cache",
    "configure_logging",
    "load_app_config",
]
