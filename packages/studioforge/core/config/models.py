"""Configuration models for StudioForge.

Credentials are never part of the config: every request carries its own key.
"""

from __future__ import annotations

from pathlib import Path

import httpx
from pydantic import BaseModel, ConfigDict, Field

from studioforge.core.api.gemini.client import GEMINI_API_BASE_URL
from studioforge.core.api.http.config import HttpClientConfig
from studioforge.core.studio.retry import (
    IMAGE_RETRY_POLICY,
    VIDEO_SUBMIT_RETRY_POLICY,
    RetryPolicy,
)


class ApiSettings(BaseModel):
    """Remote endpoint settings."""

    base_url: str = Field(default=GEMINI_API_BASE_URL, description="Gemini REST base URL")
    timeout_seconds: float = Field(default=120.0, gt=0, description="Read timeout per request")
    connect_timeout_seconds: float = Field(default=10.0, gt=0)

    def http_config(self) -> HttpClientConfig:
        """HTTP client configuration for these settings."""
        return HttpClientConfig(
            base_url=self.base_url,
            timeout=httpx.Timeout(self.timeout_seconds, connect=self.connect_timeout_seconds),
        )


class ModelSettings(BaseModel):
    """Model selection for each generation path."""

    image_model: str = Field(default="gemini-2.5-flash-image", description="Image edit model")
    video_model: str = Field(
        default="veo-3.1-fast-generate-preview", description="Video generation model"
    )
    video_resolution: str = Field(default="720p", pattern="^(720p|1080p)$")


class RetrySettings(BaseModel):
    """Backoff policies per operation kind."""

    image: RetryPolicy = Field(default_factory=lambda: IMAGE_RETRY_POLICY)
    video_submit: RetryPolicy = Field(default_factory=lambda: VIDEO_SUBMIT_RETRY_POLICY)


class PollingSettings(BaseModel):
    """Video operation polling intervals."""

    poll_interval_s: float = Field(default=5.0, ge=0.0, description="Wait between status calls")
    transient_backoff_s: float = Field(
        default=15.0, ge=0.0, description="Wait after a rate-limited status call"
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    structured: bool = False
    filename: str | None = None


class AppConfig(BaseModel):
    """Application-level configuration."""

    model_config = ConfigDict(extra="ignore")  # Forward compatibility

    output_dir: str = "outputs"
    api: ApiSettings = ApiSettings()
    models: ModelSettings = ModelSettings()
    retry: RetrySettings = RetrySettings()
    polling: PollingSettings = PollingSettings()
    logging: LoggingConfig = LoggingConfig()

    @classmethod
    def default_path(cls) -> Path:
        """Default path for application config."""
        return Path("studioforge.yaml")
