"""
Centralized configuration for the Ads Analytics Dashboard.

This module provides a single source of truth for all configuration values.
Configuration is loaded from environment variables with sensible defaults.

Usage:
    from core.config import config

    base_url = config.backend.base_url
    spend = row.run_rate * config.rules.spend_multiplier
"""

import os
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from dotenv import load_dotenv

# Load environment variables
load_dotenv()


@dataclass(frozen=True)
class BackendConfig:
    """Ads backend (row source) configuration."""

    base_url: str = field(
        default_factory=lambda: os.getenv("ADS_BACKEND_URL", "http://localhost:4000")
    )
    fetch_limit: int = field(
        default_factory=lambda: int(os.getenv("ADS_FETCH_LIMIT", "1000"))
    )
    max_limit: int = 5000
    request_timeout: int = 30


@dataclass(frozen=True)
class BusinessRules:
    """
    Business constants applied to raw rows.

    Spend and budget are not reported by the backend; they are derived
    from the run rate by fixed multipliers. ROAS values every conversion
    at `conversion_value`.
    """

    spend_multiplier: float = 10.0
    budget_multiplier: float = 20.0
    conversion_value: float = 10.0
    active_run_rate_threshold: float = 55.0


@dataclass(frozen=True)
class PlatformConfig:
    """Campaign name -> platform classification configuration."""

    # First matching keyword wins, so order matters
    rules: Tuple[Tuple[str, str], ...] = (
        ("google", "Google"),
        ("meta", "Meta"),
        ("facebook", "Facebook"),
        ("tiktok", "TikTok"),
        ("youtube", "YouTube"),
        ("twitter", "Twitter"),
    )

    display_names: Dict[str, str] = field(default_factory=lambda: {
        "Google": "Google Ads",
        "Meta": "Meta",
        "Facebook": "Facebook",
        "TikTok": "TikTok",
        "YouTube": "YouTube",
        "Twitter": "Twitter",
        "Other": "Other",
    })

    # Colors for charts
    colors: Dict[str, str] = field(default_factory=lambda: {
        "Google": "#2563eb",
        "Meta": "#7C3AED",
        "Facebook": "#1877F2",
        "TikTok": "#111827",
        "YouTube": "#dc2626",
        "Twitter": "#0EA5E9",
        "Other": "#999999",
    })

    def get_display_name(self, tag: str) -> str:
        """Get human-readable platform name."""
        return self.display_names.get(tag, tag)

    def get_color(self, tag: str, default: str = "#999999") -> str:
        """Get chart color for a platform tag."""
        return self.colors.get(tag, default)


@dataclass(frozen=True)
class DashboardConfig:
    """Dashboard view configuration."""

    default_window: str = field(
        default_factory=lambda: os.getenv("DASHBOARD_DEFAULT_WINDOW", "all")
    )
    # Window sizes offered by the time range selector
    window_options: List[int] = field(default_factory=lambda: [7, 30, 90])

    # Snapshot age after which views trigger a refetch (0 = never)
    snapshot_ttl_seconds: int = field(
        default_factory=lambda: int(os.getenv("DASHBOARD_SNAPSHOT_TTL", "300"))
    )

    # Metric colors for the daily series chart
    series_colors: Dict[str, str] = field(default_factory=lambda: {
        "impressions": "#2563eb",
        "clicks": "#16a34a",
        "conversions": "#dc2626",
        "run_rate": "#f59e0b",
    })


@dataclass(frozen=True)
class LoggingConfig:
    """Logging configuration."""

    level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    format: str = field(default_factory=lambda: os.getenv("LOG_FORMAT", "text"))

    @property
    def json_format(self) -> bool:
        return self.format == "json"


@dataclass(frozen=True)
class AppConfig:
    """Main application configuration."""

    version: str = "1.0.0"
    backend: BackendConfig = field(default_factory=BackendConfig)
    rules: BusinessRules = field(default_factory=BusinessRules)
    platforms: PlatformConfig = field(default_factory=PlatformConfig)
    dashboard: DashboardConfig = field(default_factory=DashboardConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


# Global config instance
config = AppConfig()


VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""
    pass


def validate_config(app_config: AppConfig = None) -> None:
    """
    Validate that configuration values are usable.

    Call this on startup to fail fast with clear error messages
    instead of cryptic runtime failures.

    Args:
        app_config: Configuration to check (default: global config)

    Raises:
        ConfigurationError: If any value is missing or invalid
    """
    cfg = app_config or config
    errors = []

    if not cfg.backend.base_url:
        errors.append("ADS_BACKEND_URL is required but not set")
    elif not cfg.backend.base_url.startswith(("http://", "https://")):
        errors.append("ADS_BACKEND_URL must start with http:// or https://")

    if cfg.backend.fetch_limit < 1 or cfg.backend.fetch_limit > cfg.backend.max_limit:
        errors.append(
            f"ADS_FETCH_LIMIT must be between 1 and {cfg.backend.max_limit}"
        )

    rules = cfg.rules
    for name in ("spend_multiplier", "budget_multiplier", "conversion_value"):
        if getattr(rules, name) < 0:
            errors.append(f"{name} cannot be negative")

    keywords = [keyword for keyword, _ in cfg.platforms.rules]
    unknown_tags = [tag for _, tag in cfg.platforms.rules if tag not in cfg.platforms.display_names]
    if unknown_tags:
        errors.append(f"Unknown platform tags in rules: {unknown_tags}")
    if any(not keyword or keyword != keyword.lower() for keyword in keywords):
        errors.append("Platform keywords must be non-empty lower-case strings")

    if cfg.logging.level.upper() not in VALID_LOG_LEVELS:
        errors.append(f"LOG_LEVEL must be one of {sorted(VALID_LOG_LEVELS)}")

    if errors:
        error_msg = "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
        raise ConfigurationError(error_msg)
