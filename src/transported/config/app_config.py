"""Application configuration loader.

Loads centralized configuration from data/config/app_config_v1.yaml
(overridable with TRANSPORTED_CONFIG) with built-in defaults.

Usage:
    from transported.config.app_config import load_app_config

    config = load_app_config()
    categories = config.catalog.categories
"""

from __future__ import annotations

import logging
import os
import secrets
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog
import yaml

logger = structlog.get_logger(__name__)

# Config file path (relative to project root)
CONFIG_FILE = Path("data/config/app_config_v1.yaml")

ENV_CONFIG_FILE = "TRANSPORTED_CONFIG"
ENV_SECRET_KEY = "TRANSPORTED_SECRET_KEY"
ENV_DB_PATH = "TRANSPORTED_DB_PATH"

DEFAULT_CATEGORIES = ["Momentum Transfer", "Heat Transfer", "Mass Transfer"]


@dataclass
class DatabaseConfig:
    """SQLite database location."""

    path: str = "db/transported.db"


@dataclass
class AuthConfig:
    """Token signing and account policy."""

    secret_key: str = ""
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24
    auto_confirm_email: bool = True
    password_min_length: int = 6
    # Set when no secret was configured and a per-process key was generated
    secret_key_generated: bool = False


@dataclass
class CatalogConfig:
    """Module catalog settings."""

    categories: list[str] = field(default_factory=lambda: list(DEFAULT_CATEGORIES))
    default_category: str = "Heat Transfer"


@dataclass
class AnalyticsConfig:
    """Windows used by dashboards and admin analytics."""

    active_window_days: int = 7
    dashboard_attempt_window: int = 10
    dashboard_recent_attempts: int = 5
    results_chart_size: int = 10


@dataclass
class ScoringConfig:
    """Score band thresholds (percent)."""

    excellent: float = 80.0
    good: float = 60.0


@dataclass
class AppConfig:
    """Application-wide configuration."""

    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    auth: AuthConfig = field(default_factory=AuthConfig)
    catalog: CatalogConfig = field(default_factory=CatalogConfig)
    analytics: AnalyticsConfig = field(default_factory=AnalyticsConfig)
    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    log_level: str = "INFO"


# Module-level cache
_cached_config: AppConfig | None = None


def _get_defaults() -> dict[str, Any]:
    """Get default configuration values."""
    return {
        "database": {"path": "db/transported.db"},
        "auth": {
            "algorithm": "HS256",
            "access_token_expire_minutes": 60 * 24,
            "auto_confirm_email": True,
            "password_min_length": 6,
        },
        "catalog": {
            "categories": list(DEFAULT_CATEGORIES),
            "default_category": "Heat Transfer",
        },
        "analytics": {
            "active_window_days": 7,
            "dashboard_attempt_window": 10,
            "dashboard_recent_attempts": 5,
            "results_chart_size": 10,
        },
        "scoring": {"excellent": 80.0, "good": 60.0},
        "log_level": "INFO",
    }


def _parse_config(data: dict[str, Any]) -> AppConfig:
    """Parse configuration dictionary into AppConfig object."""
    defaults = _get_defaults()

    db_data = {**defaults["database"], **(data.get("database") or {})}
    auth_data = {**defaults["auth"], **(data.get("auth") or {})}
    catalog_data = {**defaults["catalog"], **(data.get("catalog") or {})}
    analytics_data = {**defaults["analytics"], **(data.get("analytics") or {})}
    scoring_data = {**defaults["scoring"], **(data.get("scoring") or {})}

    categories = [str(c) for c in catalog_data["categories"]] or list(DEFAULT_CATEGORIES)
    default_category = catalog_data["default_category"]
    if default_category not in categories:
        logger.warning(
            "config.default_category_unknown",
            default_category=default_category,
            categories=categories,
        )
        default_category = categories[0]

    return AppConfig(
        database=DatabaseConfig(path=str(db_data["path"])),
        auth=AuthConfig(
            secret_key=str(auth_data.get("secret_key") or ""),
            algorithm=auth_data["algorithm"],
            access_token_expire_minutes=int(auth_data["access_token_expire_minutes"]),
            auto_confirm_email=bool(auth_data["auto_confirm_email"]),
            password_min_length=int(auth_data["password_min_length"]),
        ),
        catalog=CatalogConfig(categories=categories, default_category=default_category),
        analytics=AnalyticsConfig(
            active_window_days=int(analytics_data["active_window_days"]),
            dashboard_attempt_window=int(analytics_data["dashboard_attempt_window"]),
            dashboard_recent_attempts=int(analytics_data["dashboard_recent_attempts"]),
            results_chart_size=int(analytics_data["results_chart_size"]),
        ),
        scoring=ScoringConfig(
            excellent=float(scoring_data["excellent"]),
            good=float(scoring_data["good"]),
        ),
        log_level=str(data.get("log_level") or defaults["log_level"]).upper(),
    )


def _apply_env_overrides(config: AppConfig) -> AppConfig:
    """Apply environment variable overrides."""
    if secret := os.environ.get(ENV_SECRET_KEY):
        config.auth.secret_key = secret
    if db_path := os.environ.get(ENV_DB_PATH):
        config.database.path = db_path

    if not config.auth.secret_key:
        # Tokens will not survive a restart
        logger.warning("config.ephemeral_secret_key")
        config.auth.secret_key = secrets.token_urlsafe(32)
        config.auth.secret_key_generated = True

    return config


def load_app_config(force_reload: bool = False) -> AppConfig:
    """Load application config.

    Args:
        force_reload: If True, ignore cached config and reload from file.

    Returns:
        AppConfig object with all settings.
    """
    global _cached_config

    if _cached_config is not None and not force_reload:
        return _cached_config

    config_file = Path(os.environ.get(ENV_CONFIG_FILE) or CONFIG_FILE)
    data: dict[str, Any]

    if config_file.exists():
        logger.debug("loading_app_config", source=str(config_file))
        data = yaml.safe_load(config_file.read_text(encoding="utf-8")) or {}
    else:
        logger.info("using_default_config")
        data = _get_defaults()

    _cached_config = _apply_env_overrides(_parse_config(data))
    return _cached_config


def clear_config_cache() -> None:
    """Clear the configuration cache.

    Useful for testing or when config is modified at runtime.
    """
    global _cached_config
    _cached_config = None


def configure_logging(level: str | None = None) -> None:
    """Configure structlog filtering level."""
    level_name = (level or load_app_config().log_level).upper()
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level_name, logging.INFO)
        ),
    )
