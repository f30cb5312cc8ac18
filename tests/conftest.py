"""Shared pytest fixtures for studioforge tests."""

from __future__ import annotations

import base64
from pathlib import Path

import pytest

from studioforge.core.config.models import AppConfig
from studioforge.core.studio.assets import ImageAsset
from studioforge.core.studio.retry import RetryPolicy

# Smallest valid PNG (1x1, transparent)
PNG_BYTES = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR42mNkYAAAAAYAAjCB0C8AAAAASUVORK5CYII="
)

TEST_API_KEY = "AIzaTestKey1234567890wxyz"

# ============================================================================
# Path Fixtures
# ============================================================================


@pytest.fixture
def project_root() -> Path:
    """Get project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def png_file(tmp_path: Path) -> Path:
    """A PNG image on disk."""
    path = tmp_path / "character.png"
    path.write_bytes(PNG_BYTES)
    return path


# ============================================================================
# Asset Fixtures
# ============================================================================


@pytest.fixture
def api_key() -> str:
    return TEST_API_KEY


@pytest.fixture
def character() -> ImageAsset:
    return ImageAsset.from_bytes(PNG_BYTES, "image/png", name="character.png")


@pytest.fixture
def outfit() -> ImageAsset:
    return ImageAsset.from_bytes(PNG_BYTES, "image/png", name="outfit.png")


@pytest.fixture
def product() -> ImageAsset:
    return ImageAsset.from_bytes(PNG_BYTES, "image/jpeg", name="product.jpg")


@pytest.fixture
def logo() -> ImageAsset:
    return ImageAsset.from_bytes(PNG_BYTES, "image/png", name="logo.png")


# ============================================================================
# Timing Fixtures
# ============================================================================


class RecordingSleep:
    """Awaitable sleep stand-in that records requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def fast_config() -> AppConfig:
    """App config with default timing (waits are recorded, not slept)."""
    return AppConfig()


@pytest.fixture
def single_attempt_policy() -> RetryPolicy:
    return RetryPolicy(max_attempts=1, initial_delay_s=0.0)
