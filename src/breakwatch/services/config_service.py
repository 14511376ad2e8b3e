"""Configuration service for breakwatch.

Loads and saves ``config.json`` in the platform config directory and
resolves the paths the engine persists to.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any

from platformdirs import user_cache_dir, user_config_dir, user_data_dir
from pydantic import BaseModel, ValidationError

from breakwatch.models.config_models import AppConfig
from breakwatch.utils.logger import get_logger

APP_NAME = "breakwatch"

logger = get_logger("config")


class ConfigService:
    """Single source of truth for the application configuration."""

    def __init__(self, config_dir: Path | None = None):
        self.config_dir = Path(config_dir or user_config_dir(APP_NAME))
        self.config_path = self.config_dir / "config.json"
        self._config: AppConfig | None = None

    @property
    def config(self) -> AppConfig:
        """Get or load the current configuration."""
        if self._config is None:
            self._config = self.load_config()
        return self._config

    def load_config(self) -> AppConfig:
        """Load configuration from disk, creating the default file on first run."""
        if self._config is not None:
            return self._config

        try:
            with open(self.config_path, encoding="utf-8") as f:
                self._config = AppConfig.model_validate_json(f.read())
        except FileNotFoundError:
            self._config = AppConfig()
            self.save_config()
        except ValidationError as e:
            raise RuntimeError(f"Failed to load config: {e}") from e

        return self._config

    def save_config(self) -> None:
        """Save the current configuration to disk."""
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_path, "w", encoding="utf-8") as f:
                f.write(self.config.model_dump_json(indent=4))
            self.config_path.chmod(0o600)
        except OSError as e:
            raise RuntimeError(f"Failed to save config: {e}") from e

    def get(self, key: str) -> Any:
        """Get a configuration value by dot-separated key."""
        return _lookup(self.config, key)

    def set(self, key: str, value: Any) -> None:
        """Set a configuration value by dot-separated key.

        Raises:
            KeyError: If ``key`` does not name a configuration field
            ValueError: If the new value fails validation
        """
        if not _is_known_field(key):
            raise KeyError(key)

        keys = key.split(".")
        config_dict = self.config.model_dump()
        current = config_dict
        for k in keys[:-1]:
            current = current[k]
        current[keys[-1]] = value

        try:
            self._config = AppConfig.model_validate(config_dict)
        except ValidationError as e:
            raise ValueError(f"Invalid value for {key}: {value!r}") from e
        self.save_config()
        logger.info("config %s set to %r", key, value)

    def reset(self, key: str | None = None) -> None:
        """Reset one key, or the whole configuration, to defaults."""
        if key is None:
            self._config = AppConfig()
            self.save_config()
            return
        self.set(key, _lookup(AppConfig(), key))

    @property
    def data_dir(self) -> Path:
        return Path(self.config.storage.data_dir or user_data_dir(APP_NAME))

    @property
    def state_path(self) -> Path:
        return self.data_dir / self.config.storage.state_file

    @property
    def fallback_dir(self) -> Path:
        return Path(self.config.storage.fallback_dir or user_cache_dir(APP_NAME))


def _lookup(config: BaseModel, key: str) -> Any:
    value: Any = config
    for k in key.split("."):
        if isinstance(value, BaseModel) and k in type(value).model_fields:
            value = getattr(value, k)
        else:
            return None
    return value


def _is_known_field(key: str) -> bool:
    section, _, name = key.partition(".")
    section_field = AppConfig.model_fields.get(section)
    if section_field is None or not name:
        return False
    section_model = section_field.annotation
    return isinstance(section_model, type) and name in getattr(section_model, "model_fields", {})


@lru_cache(maxsize=1)
def get_config_service() -> ConfigService:
    """Get a cached ConfigService instance."""
    config_service = ConfigService()
    config_service.load_config()
    return config_service
