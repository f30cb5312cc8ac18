"""Configuration management for StudioForge."""

from studioforge.core.config.loader import (
    configure_logging,
    detect_format,
    load_app_config,
    load_config,
)
from studioforge.core.config.models import (
    ApiSettings,
    AppConfig,
    LoggingConfig,
    ModelSettings,
    PollingSettings,
    RetrySettings,
)

__all__ = [
    "configure_logging",
    "detect_format",
    "load_app_config",
    "load_config",
    "ApiSettings",
    "AppConfig",
    "LoggingConfig",
    "ModelSettings",
    "PollingSettings",
    "RetrySettings",
]
