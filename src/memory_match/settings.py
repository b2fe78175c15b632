from __future__ import annotations

import dataclasses
import logging
import os
from dataclasses import dataclass, field
from importlib import resources
from pathlib import Path
from typing import Optional

import yaml
from platformdirs import user_config_path

from .errors import SettingsError

logger = logging.getLogger(__name__)

APP_NAME = "memory-match"
ENV_SETTINGS_PATH = "MEMORY_MATCH_SETTINGS"
USER_SETTINGS_FILENAME = "settings.yaml"


@dataclass
class ScoringSettings:
    """Per-match scoring knobs."""

    base_match_score: int = 100
    combo_multiplier: float = 1.5
    time_bonus_per_second: float = 10.0
    quick_match_seconds: float = 3.0


@dataclass
class TimingSettings:
    tick_seconds: float = 1.0
    mismatch_delay_seconds: float = 1.0


@dataclass
class AdapterSettings:
    history_window: int = 10
    trend_window: int = 3
    trend_threshold: float = 10.0


@dataclass
class RemoteSettings:
    """Optional network difficulty service.

    When disabled (or no url is configured) the rule-based adapter is used directly.
    """

    enabled: bool = False
    url: Optional[str] = None
    timeout_seconds: float = 5.0
    attempts: int = 2


@dataclass
class Settings:
    scoring: ScoringSettings = field(default_factory=ScoringSettings)
    timing: TimingSettings = field(default_factory=TimingSettings)
    adapter: AdapterSettings = field(default_factory=AdapterSettings)
    remote: RemoteSettings = field(default_factory=RemoteSettings)

    @staticmethod
    def _load_yaml(path: Path) -> dict:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise SettingsError(f"Settings file {path} must contain a mapping, got {type(data).__name__}")
        return data

    @classmethod
    def _deep_merge(cls, base: dict, overlay: dict) -> dict:
        merged = dict(base)
        for k, v in (overlay or {}).items():
            if isinstance(v, dict) and isinstance(base.get(k), dict):
                merged[k] = cls._deep_merge(base[k], v)
            else:
                merged[k] = v
        return merged

    @classmethod
    def _from_dict(cls, data: dict) -> "Settings":
        try:
            return Settings(
                scoring=ScoringSettings(**data.get("scoring", {})),
                timing=TimingSettings(**data.get("timing", {})),
                adapter=AdapterSettings(**data.get("adapter", {})),
                remote=RemoteSettings(**data.get("remote", {})),
            )
        except TypeError as exc:
            raise SettingsError(f"Unknown settings key: {exc}") from exc

    @staticmethod
    def default_user_path() -> Path:
        """Location of the per-user override file (may not exist)."""
        env = os.getenv(ENV_SETTINGS_PATH)
        if env:
            return Path(env)
        return user_config_path(APP_NAME) / USER_SETTINGS_FILENAME

    @classmethod
    def load(cls, user_path: Optional[Path] = None) -> "Settings":
        """Load settings from built-in defaults and an optional user override file.

        If user_path is not given, the MEMORY_MATCH_SETTINGS variable or the
        platform user config directory is consulted; a missing file there is not an error.
        """
        try:
            with resources.files("memory_match.data").joinpath("default_settings.yaml").open("r", encoding="utf-8") as f:
                default_data = yaml.safe_load(f) or {}
        except FileNotFoundError:
            logger.warning("Default settings not found; falling back to dataclass defaults.")
            default_data = dataclasses.asdict(Settings())

        user_data = {}
        if user_path is not None:
            if user_path.exists():
                user_data = cls._load_yaml(user_path)
                logger.info("Loaded user settings from %s", user_path)
            else:
                logger.warning("User settings file not found: %s", user_path)
        else:
            candidate = cls.default_user_path()
            if candidate.exists():
                user_data = cls._load_yaml(candidate)
                logger.info("Loaded user settings from %s", candidate)

        merged = cls._deep_merge(default_data, user_data)
        settings = cls._from_dict(merged)
        logger.debug("Settings merged: %s", settings)
        return settings

    def save(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as f:
            yaml.safe_dump(dataclasses.asdict(self), f, sort_keys=False)
        logger.info("Saved settings to %s", path)
