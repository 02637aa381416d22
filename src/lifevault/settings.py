from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from importlib import resources
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .validator import ValidatorLimits

logger = logging.getLogger(__name__)


@dataclass
class StorageSettings:
    data_dir: Optional[str] = None


@dataclass
class UpdateSettings:
    repo: str = "what-is-life/what-is-life"
    api_url: str = "https://api.github.com"
    download_url_template: Optional[str] = None
    timeout_seconds: float = 30.0
    enabled: bool = True
    check_interval_hours: float = 24.0
    install_dir: Optional[str] = None


@dataclass
class LoggingSettings:
    level: str = "WARNING"


@dataclass
class Settings:
    storage: StorageSettings = field(default_factory=StorageSettings)
    updates: UpdateSettings = field(default_factory=UpdateSettings)
    validator: ValidatorLimits = field(default_factory=ValidatorLimits)
    logging: LoggingSettings = field(default_factory=LoggingSettings)

    @staticmethod
    def _load_yaml(path: Path) -> dict:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Settings file {path} must contain a mapping")
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

    @staticmethod
    def _section(section_cls: Any, data: Dict[str, Any]) -> Any:
        known = {f.name for f in dataclasses.fields(section_cls)}
        unknown = set(data) - known
        if unknown:
            logger.warning("Ignoring unknown %s settings: %s", section_cls.__name__, sorted(unknown))
        return section_cls(**{k: v for k, v in data.items() if k in known})

    @classmethod
    def _from_dict(cls, data: dict) -> "Settings":
        return Settings(
            storage=cls._section(StorageSettings, data.get("storage") or {}),
            updates=cls._section(UpdateSettings, data.get("updates") or {}),
            validator=cls._section(ValidatorLimits, data.get("validator") or {}),
            logging=cls._section(LoggingSettings, data.get("logging") or {}),
        )

    @classmethod
    def load(cls, user_path: Optional[Path] = None) -> "Settings":
        """Load settings from built-in defaults and optional user override file.

        If user_path is provided and exists, overlay values onto defaults.
        """
        try:
            with resources.files("lifevault.config").joinpath("default_settings.yaml").open("r", encoding="utf-8") as f:
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
                logger.debug("User settings file not found: %s", user_path)

        merged = cls._deep_merge(default_data, user_data)
        settings = cls._from_dict(merged)
        logger.debug("Settings merged: %s", settings)
        return settings

    def save(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as f:
            yaml.safe_dump(dataclasses.asdict(self), f, sort_keys=False)
        logger.info("Saved settings to %s", path)
