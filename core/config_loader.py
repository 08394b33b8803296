"""
Watcher configuration loader.

Sources:
  - .env / process environment: upstream credentials
  - shared/config/watcher.json: roster, campaign, cadence, export settings

The JSON document is validated (jsonschema, Draft 7) before use. Unlike the
per-creator lookups, configuration problems are fatal: load() raises
ConfigError and the launcher refuses to start.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from dotenv import load_dotenv
from jsonschema import Draft7Validator

from core.context import (
    DEFAULT_CAMPAIGN_ID,
    DEFAULT_REFRESH_PERIOD,
    ExportConfig,
    WatcherConfig,
    WatcherEnvironment,
)
from shared.errors import ConfigError
from shared.logging.logger import get_logger

log = get_logger("core.config_loader", runtime="causewatch")


WATCHER_SCHEMA: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "refresh_period_seconds": {"type": "number", "exclusiveMinimum": 0},
        "http_timeout_seconds": {"type": "number", "exclusiveMinimum": 0},
        "campaign": {
            "type": "object",
            "required": ["id"],
            "properties": {"id": {"type": "integer", "minimum": 1}},
        },
        "creators": {
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "twitch": {
                    "type": "array",
                    "items": {"type": "string", "pattern": "^[A-Za-z0-9_]{1,25}$"},
                    "uniqueItems": True,
                },
                "youtube": {
                    "type": "array",
                    "items": {"type": "string", "pattern": "^@[A-Za-z0-9_.-]{1,100}$"},
                    "uniqueItems": True,
                },
            },
        },
        "youtube": {
            "type": "object",
            "properties": {
                "daily_quota_budget": {"type": ["integer", "null"], "minimum": 1},
            },
        },
        "export": {
            "type": "object",
            "properties": {
                "enabled": {"type": "boolean"},
                "base_dir": {"type": "string", "minLength": 1},
                "publish_root": {"type": ["string", "null"]},
            },
        },
    },
}


class ConfigLoader:
    """
    Loads and validates the watcher configuration.

    The config path defaults to shared/config/watcher.json and can be
    overridden with CAUSEWATCH_CONFIG or the `config_path` argument.
    """

    CONFIG_PATH = Path("shared/config/watcher.json")
    ENV_CONFIG_PATH = "CAUSEWATCH_CONFIG"

    REQUIRED_ENV = (
        "TWITCH_CLIENT_ID",
        "TWITCH_CLIENT_SECRET",
        "YOUTUBE_API_KEY",
        "TILTIFY_API_KEY",
    )

    def __init__(
        self,
        config_path: Path | str | None = None,
        environ: Optional[Mapping[str, str]] = None,
        use_dotenv: bool = True,
    ) -> None:
        self._config_path = Path(
            config_path or os.getenv(self.ENV_CONFIG_PATH) or self.CONFIG_PATH
        )
        self._environ = environ
        self._use_dotenv = use_dotenv

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _load_json(self) -> Dict[str, Any]:
        path = self._config_path
        if not path.exists():
            log.warning(f"watcher config not found at {path}; using defaults")
            return {}

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise ConfigError(f"failed to read watcher config {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"watcher config root must be an object ({path})")
        return data

    @staticmethod
    def _schema_errors(payload: Dict[str, Any]) -> List[str]:
        validator = Draft7Validator(WATCHER_SCHEMA)
        errors = sorted(validator.iter_errors(payload), key=lambda e: list(e.path))
        messages = []
        for err in errors:
            loc = "/".join(str(p) for p in err.path) or "<root>"
            messages.append(f"'{loc}': {err.message}")
        return messages

    def _validate(self, payload: Dict[str, Any]) -> None:
        errors = self._schema_errors(payload)
        if not errors:
            return

        for err in errors:
            log.error(f"watcher config invalid at {err}")

        raise ConfigError(
            f"watcher config has {len(errors)} error(s); first at {errors[0]}"
        )

    def _load_environment(self) -> WatcherEnvironment:
        if self._use_dotenv:
            load_dotenv()
            log.debug("Environment variables loaded")

        environ = self._environ if self._environ is not None else os.environ
        values = {key: (environ.get(key) or "").strip() for key in self.REQUIRED_ENV}

        missing = [key for key, value in values.items() if not value]
        if missing:
            raise ConfigError(f"missing required environment variable(s): {', '.join(missing)}")

        log.debug(
            "Credentials resolved: "
            + ", ".join(f"{key}=SET" for key in self.REQUIRED_ENV)
        )
        return WatcherEnvironment(
            twitch_client_id=values["TWITCH_CLIENT_ID"],
            twitch_client_secret=values["TWITCH_CLIENT_SECRET"],
            youtube_api_key=values["YOUTUBE_API_KEY"],
            tiltify_api_key=values["TILTIFY_API_KEY"],
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def config_path(self) -> Path:
        return self._config_path

    def check(self) -> List[str]:
        """Validate the JSON document only; credentials are not required."""
        try:
            data = self._load_json()
        except ConfigError as e:
            return [str(e)]
        return self._schema_errors(data)

    def load(self) -> WatcherConfig:
        data = self._load_json()
        self._validate(data)
        env = self._load_environment()

        creators = data.get("creators", {})
        export = data.get("export", {})
        publish_root = export.get("publish_root")

        config = WatcherConfig(
            env=env,
            twitch_handles=tuple(h.lower() for h in creators.get("twitch", [])),
            youtube_handles=tuple(creators.get("youtube", [])),
            campaign_id=data.get("campaign", {}).get("id", DEFAULT_CAMPAIGN_ID),
            refresh_period=float(data.get("refresh_period_seconds", DEFAULT_REFRESH_PERIOD)),
            http_timeout=float(data.get("http_timeout_seconds", 15.0)),
            youtube_daily_quota=data.get("youtube", {}).get("daily_quota_budget"),
            export=ExportConfig(
                enabled=bool(export.get("enabled", False)),
                base_dir=Path(export.get("base_dir", "shared/state")),
                publish_root=Path(publish_root) if publish_root else None,
            ),
        )

        log.info(
            f"Loaded config from {self._config_path}: "
            f"{len(config.twitch_handles)} twitch, "
            f"{len(config.youtube_handles)} youtube creator(s), "
            f"campaign={config.campaign_id}, period={config.refresh_period}s"
        )
        return config


def load_config(config_path: Path | str | None = None) -> WatcherConfig:
    return ConfigLoader(config_path).load()
