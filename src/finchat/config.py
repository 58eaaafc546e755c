"""Service configuration loader.

Loads settings from a YAML file with safe defaults.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)


@dataclass
class ConfirmationConfig:
    """Two-phase confirmation settings."""

    ttl_seconds: int = 300
    require_token_match: bool = False
    token_length: int = 6


@dataclass
class BudgetConfig:
    """Budget alert thresholds in percent of the monthly limit."""

    warning_percent: int = 80
    exceeded_percent: int = 100


@dataclass
class NotificationConfig:
    """Notification history and delivery settings."""

    max_per_key: int = 50
    retention_days: int = 7
    cleanup_interval_seconds: int = 6 * 60 * 60
    delivery_provider: str = "dev"
    gateway_url: str | None = None
    gateway_token: str | None = None


@dataclass
class Settings:
    """Complete service configuration."""

    confirmation: ConfirmationConfig = field(default_factory=ConfirmationConfig)
    budget: BudgetConfig = field(default_factory=BudgetConfig)
    notifications: NotificationConfig = field(default_factory=NotificationConfig)
    recent_limit: int = 5
    app_secret: str | None = None


def _require_int(section: str, data: dict[str, Any], name: str, minimum: int = 0) -> None:
    if name in data:
        value = data[name]
        if not isinstance(value, int) or isinstance(value, bool):
            raise ValueError(f"Field '{section}.{name}' must be an integer")
        if value < minimum:
            raise ValueError(f"Field '{section}.{name}' must be >= {minimum}")


def _parse_settings(data: dict[str, Any]) -> Settings:
    """Parse a configuration dictionary into Settings.

    Raises:
        ValueError: If a field has the wrong type or range.
    """
    confirmation = data.get("confirmation") or {}
    budget = data.get("budget") or {}
    notifications = data.get("notifications") or {}
    replies = data.get("replies") or {}

    for name, section in (
        ("confirmation", confirmation),
        ("budget", budget),
        ("notifications", notifications),
        ("replies", replies),
    ):
        if not isinstance(section, dict):
            raise ValueError(f"Section '{name}' must be a dictionary")

    _require_int("confirmation", confirmation, "ttl_seconds", minimum=1)
    _require_int("confirmation", confirmation, "token_length", minimum=4)
    if not isinstance(confirmation.get("require_token_match", False), bool):
        raise ValueError("Field 'confirmation.require_token_match' must be a boolean")
    _require_int("budget", budget, "warning_percent", minimum=1)
    _require_int("budget", budget, "exceeded_percent", minimum=1)
    _require_int("notifications", notifications, "max_per_key", minimum=1)
    _require_int("notifications", notifications, "retention_days", minimum=1)
    _require_int("notifications", notifications, "cleanup_interval_seconds", minimum=1)
    _require_int("replies", replies, "recent_limit", minimum=1)

    budget_config = BudgetConfig(
        warning_percent=budget.get("warning_percent", 80),
        exceeded_percent=budget.get("exceeded_percent", 100),
    )
    if budget_config.warning_percent > budget_config.exceeded_percent:
        raise ValueError("budget.warning_percent must not exceed budget.exceeded_percent")

    delivery = notifications.get("delivery") or {}
    return Settings(
        confirmation=ConfirmationConfig(
            ttl_seconds=confirmation.get("ttl_seconds", 300),
            require_token_match=confirmation.get("require_token_match", False),
            token_length=confirmation.get("token_length", 6),
        ),
        budget=budget_config,
        notifications=NotificationConfig(
            max_per_key=notifications.get("max_per_key", 50),
            retention_days=notifications.get("retention_days", 7),
            cleanup_interval_seconds=notifications.get("cleanup_interval_seconds", 6 * 60 * 60),
            delivery_provider=delivery.get("provider", "dev"),
            gateway_url=delivery.get("gateway_url"),
        ),
        recent_limit=replies.get("recent_limit", 5),
    )


def _apply_env_overrides(settings: Settings) -> Settings:
    """Secrets and deployment endpoints come from the environment only."""
    settings.app_secret = os.environ.get("WHATSAPP_APP_SECRET") or None
    gateway_url = os.environ.get("WHATSAPP_GATEWAY_URL")
    if gateway_url:
        settings.notifications.gateway_url = gateway_url
        settings.notifications.delivery_provider = "gateway"
    settings.notifications.gateway_token = os.environ.get("WHATSAPP_GATEWAY_TOKEN") or None
    return settings


def load_settings(config_path: str | None = None) -> Settings:
    """Load settings from a YAML file.

    Args:
        config_path: Path to the YAML file. If None, uses FINCHAT_CONFIG or
                    the default path: config/finchat.yaml

    Returns:
        Settings; safe defaults if the file is missing or invalid.
    """
    if config_path is None:
        project_root = Path(__file__).parent.parent.parent
        config_path = os.environ.get(
            "FINCHAT_CONFIG", os.path.join(project_root, "config", "finchat.yaml")
        )

    if not os.path.exists(config_path):
        return _apply_env_overrides(Settings())

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a YAML dictionary")

        return _apply_env_overrides(_parse_settings(data))

    except (yaml.YAMLError, ValueError, OSError) as e:
        logger.warning("Failed to load config from %s: %s", config_path, e)
        logger.warning("Using default configuration")
        return _apply_env_overrides(Settings())


# Cache the loaded configuration
_cached_settings: Settings | None = None


def get_settings(config_path: str | None = None) -> Settings:
    """Get the settings (cached)."""
    global _cached_settings
    if _cached_settings is None:
        _cached_settings = load_settings(config_path)
    return _cached_settings


def reload_settings(config_path: str | None = None) -> Settings:
    """Reload settings from file."""
    global _cached_settings
    _cached_settings = load_settings(config_path)
    return _cached_settings


def clear_settings_cache() -> None:
    """Clear the cached settings.

    Used primarily for testing to ensure clean state between tests.
    """
    global _cached_settings
    _cached_settings = None
