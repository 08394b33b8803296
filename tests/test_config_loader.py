"""Tests for the watcher configuration loader."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from core.config_loader import ConfigLoader
from core.context import DEFAULT_CAMPAIGN_ID, DEFAULT_REFRESH_PERIOD
from shared.errors import ConfigError

ENV = {
    "TWITCH_CLIENT_ID": "cid",
    "TWITCH_CLIENT_SECRET": "twitch-secret",
    "YOUTUBE_API_KEY": "yt-secret",
    "TILTIFY_API_KEY": "tilt-secret",
}


def _write(tmp_path: Path, payload) -> Path:
    path = tmp_path / "watcher.json"
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def _load(path: Path, environ=ENV):
    return ConfigLoader(path, environ=environ, use_dotenv=False).load()


class TestConfigLoader:
    def test_full_config(self, tmp_path: Path) -> None:
        path = _write(
            tmp_path,
            {
                "refresh_period_seconds": 120,
                "campaign": {"id": 99},
                "creators": {"twitch": ["Gathe_", "kkywi"], "youtube": ["@ReapeeRon"]},
                "youtube": {"daily_quota_budget": 500},
                "export": {"enabled": True, "base_dir": str(tmp_path / "state")},
            },
        )

        config = _load(path)

        assert config.refresh_period == 120.0
        assert config.campaign_id == 99
        assert config.twitch_handles == ("gathe_", "kkywi")
        assert config.youtube_handles == ("@ReapeeRon",)
        assert config.youtube_daily_quota == 500
        assert config.export.enabled is True
        assert config.export.base_dir == tmp_path / "state"
        assert config.export.publish_root is None
        assert config.env.youtube_api_key == "yt-secret"

    def test_missing_file_uses_defaults(self, tmp_path: Path) -> None:
        config = _load(tmp_path / "absent.json")

        assert config.refresh_period == DEFAULT_REFRESH_PERIOD == 600.0
        assert config.campaign_id == DEFAULT_CAMPAIGN_ID == 468510
        assert config.twitch_handles == ()
        assert config.export.enabled is False

    def test_secrets_hidden_from_repr(self, tmp_path: Path) -> None:
        text = repr(_load(tmp_path / "absent.json"))

        assert "twitch-secret" not in text
        assert "yt-secret" not in text
        assert "tilt-secret" not in text
        assert "cid" in text

    def test_schema_violation(self, tmp_path: Path) -> None:
        path = _write(tmp_path, {"refresh_period_seconds": -5})

        with pytest.raises(ConfigError):
            _load(path)

    def test_invalid_youtube_handle(self, tmp_path: Path) -> None:
        path = _write(tmp_path, {"creators": {"youtube": ["no-at-sign"]}})

        with pytest.raises(ConfigError):
            _load(path)

    def test_unknown_key_rejected(self, tmp_path: Path) -> None:
        path = _write(tmp_path, {"refresh": 10})

        with pytest.raises(ConfigError):
            _load(path)

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "watcher.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(ConfigError):
            _load(path)

    def test_root_must_be_object(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError):
            _load(_write(tmp_path, ["a"]))

    def test_missing_credentials(self, tmp_path: Path) -> None:
        environ = dict(ENV, TILTIFY_API_KEY="  ")

        with pytest.raises(ConfigError) as exc_info:
            _load(tmp_path / "absent.json", environ=environ)

        assert "TILTIFY_API_KEY" in str(exc_info.value)

    def test_bundled_config_is_valid(self) -> None:
        bundled = Path(__file__).resolve().parent.parent / "shared" / "config" / "watcher.json"

        config = _load(bundled)

        assert config.campaign_id == 468510
        assert "gathe_" in config.twitch_handles

    def test_check_reports_without_credentials(self, tmp_path: Path) -> None:
        loader = ConfigLoader(_write(tmp_path, {"campaign": {}}), environ={}, use_dotenv=False)

        errors = loader.check()

        assert len(errors) == 1
        assert "'campaign'" in errors[0]
