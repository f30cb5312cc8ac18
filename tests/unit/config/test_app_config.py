"""Tests for app config models and loading."""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import ValidationError
import pytest

from studioforge.core.config.loader import detect_format, load_app_config, load_config
from studioforge.core.config.models import AppConfig


class TestDetectFormat:
    @pytest.mark.parametrize(
        ("name", "fmt"), [("a.json", "json"), ("a.yaml", "yaml"), ("a.YML", "yaml")]
    )
    def test_known(self, name: str, fmt: str) -> None:
        assert detect_format(name) == fmt

    def test_unknown(self) -> None:
        with pytest.raises(ValueError, match="Unsupported config format"):
            detect_format("config.toml")


class TestLoadConfig:
    def test_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "studioforge.yaml"
        path.write_text(
            "output_dir: renders\n"
            "models:\n"
            "  video_resolution: 1080p\n"
            "retry:\n"
            "  image:\n"
            "    max_attempts: 4\n"
            "    initial_delay_s: 1.0\n"
            "polling:\n"
            "  poll_interval_s: 10\n"
        )

        config = load_app_config(path)

        assert config.output_dir == "renders"
        assert config.models.video_resolution == "1080p"
        assert config.models.image_model == "gemini-2.5-flash-image"
        assert config.retry.image.max_attempts == 4
        assert config.retry.video_submit.initial_delay_s == 20.0
        assert config.polling.poll_interval_s == 10.0
        assert config.polling.transient_backoff_s == 15.0

    def test_json(self, tmp_path: Path) -> None:
        path = tmp_path / "studioforge.json"
        path.write_text(json.dumps({"logging": {"level": "DEBUG", "structured": True}}))

        config = load_app_config(path)

        assert config.logging.level == "DEBUG"
        assert config.logging.structured

    def test_empty_yaml_is_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_config(path) == {}

    def test_non_mapping_root(self, tmp_path: Path) -> None:
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ValueError, match="must be a mapping"):
            load_config(path)

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "broken.json"
        path.write_text("{")
        with pytest.raises(ValueError, match="Invalid JSON"):
            load_config(path)

    def test_explicit_missing_path(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_app_config(tmp_path / "nope.yaml")

    def test_missing_default_uses_defaults(self, tmp_path: Path, monkeypatch) -> None:
        monkeypatch.chdir(tmp_path)
        assert load_app_config() == AppConfig()

    def test_unknown_keys_ignored(self, tmp_path: Path) -> None:
        path = tmp_path / "c.json"
        path.write_text(json.dumps({"future_section": {"x": 1}}))
        assert load_app_config(path) == AppConfig()

    def test_invalid_values(self, tmp_path: Path) -> None:
        path = tmp_path / "c.json"
        path.write_text(json.dumps({"models": {"video_resolution": "4k"}}))
        with pytest.raises(ValidationError):
            load_app_config(path)


def test_http_config_from_api_settings() -> None:
    http = AppConfig().api.http_config()
    assert http.base_url == "https://generativelanguage.googleapis.com/v1beta"
    assert http.timeout.read == 120.0
    assert http.timeout.connect == 10.0
