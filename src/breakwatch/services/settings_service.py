"""Break settings persisted in the key/value store.

The service keeps one ``BreakSettings`` in memory, loaded from the store
under ``break_settings`` and merged over the defaults. Update methods
validate their input and return False instead of raising.
"""

from __future__ import annotations

import json
from collections.abc import Callable, Mapping
from typing import Any

from pydantic import ValidationError

from breakwatch.models.config_models import (
    MAX_BREAK_DURATION_MINUTES,
    MAX_THRESHOLD_MINUTES,
    MIN_THRESHOLD_MINUTES,
    REQUIRED_BREAK_TYPES,
    BreakSettings,
    BreakTypeConfig,
)
from breakwatch.models.exceptions import DataValidationError
from breakwatch.repositories import KeyValueStore
from breakwatch.utils.clock import minutes_to_ms
from breakwatch.utils.logger import get_logger

SETTINGS_KEY = "break_settings"
CURRENT_SETTINGS_VERSION = 1

logger = get_logger("settings")


def is_valid_threshold_minutes(minutes: Any) -> bool:
    return (
        isinstance(minutes, int)
        and not isinstance(minutes, bool)
        and MIN_THRESHOLD_MINUTES <= minutes <= MAX_THRESHOLD_MINUTES
    )


def is_valid_break_types(break_types: Any) -> bool:
    """Exactly short, medium and long, each labelled and at most two hours long."""
    if not isinstance(break_types, Mapping):
        return False
    if set(break_types) != set(REQUIRED_BREAK_TYPES):
        return False
    for key in REQUIRED_BREAK_TYPES:
        entry = break_types.get(key)
        if isinstance(entry, BreakTypeConfig):
            continue
        if not isinstance(entry, Mapping):
            return False
        duration = entry.get("duration")
        if (
            not isinstance(duration, (int, float))
            or isinstance(duration, bool)
            or not 0 < duration <= MAX_BREAK_DURATION_MINUTES
            or not isinstance(entry.get("label"), str)
        ):
            return False
    return True


def validate_settings_update(settings: Mapping[str, Any]) -> dict[str, Any]:
    """Return the recognised, valid fields of ``settings``.

    Raises:
        DataValidationError: If any recognised field holds an invalid value
    """
    validated: dict[str, Any] = {}

    if "work_time_threshold_minutes" in settings:
        value = settings["work_time_threshold_minutes"]
        if not is_valid_threshold_minutes(value):
            raise DataValidationError(f"Invalid work time threshold: {value!r}")
        validated["work_time_threshold_minutes"] = value

    for name in ("notifications_enabled", "dismiss_resets_work_timer"):
        if name in settings:
            value = settings[name]
            if not isinstance(value, bool):
                raise DataValidationError(f"Invalid value for {name}: {value!r}")
            validated[name] = value

    if "break_types" in settings:
        if not is_valid_break_types(settings["break_types"]):
            raise DataValidationError("Invalid break types configuration")
        validated["break_types"] = settings["break_types"]

    return validated


class BreakSettingsService:
    """Owns the user's break settings."""

    def __init__(self, store_provider: Callable[[], KeyValueStore]):
        self._store_provider = store_provider
        self.settings = BreakSettings()

    @property
    def store(self) -> KeyValueStore:
        return self._store_provider()

    async def load_settings(self) -> BreakSettings:
        """Load stored settings merged over the defaults."""
        try:
            stored = await self.store.get(SETTINGS_KEY)
        except Exception as e:
            logger.error("failed to read break settings, using defaults: %s", e)
            self.settings = BreakSettings()
            return self.settings

        if stored is None:
            self.settings = BreakSettings()
            await self.save_settings()
            return self.settings

        if not isinstance(stored, Mapping):
            logger.warning("stored break settings are not a mapping, using defaults")
            self.settings = BreakSettings()
            return self.settings

        merged = {**BreakSettings().model_dump(), **stored}
        try:
            self.settings = BreakSettings.model_validate(merged)
        except ValidationError as e:
            logger.warning("stored break settings invalid, using defaults: %s", e)
            self.settings = BreakSettings()
            return self.settings

        await self.migrate_settings()
        logger.debug("break settings loaded: %s", self.settings)
        return self.settings

    async def save_settings(self) -> bool:
        try:
            await self.store.set(SETTINGS_KEY, self.settings.model_dump())
            return True
        except Exception as e:
            logger.error("failed to save break settings: %s", e)
            return False

    def get_settings(self) -> BreakSettings:
        return self.settings.model_copy(deep=True)

    def get_work_time_threshold_minutes(self) -> int:
        return self.settings.work_time_threshold_minutes

    def get_work_time_threshold_ms(self) -> int:
        return minutes_to_ms(self.settings.work_time_threshold_minutes)

    def are_notifications_enabled(self) -> bool:
        return self.settings.notifications_enabled

    def get_break_types(self) -> dict[str, BreakTypeConfig]:
        return {k: v.model_copy() for k, v in self.settings.break_types.items()}

    async def update_work_time_threshold(self, minutes: Any) -> bool:
        return await self.update_settings({"work_time_threshold_minutes": minutes})

    async def update_notifications_enabled(self, enabled: Any) -> bool:
        return await self.update_settings({"notifications_enabled": enabled})

    async def update_dismiss_resets_work_timer(self, enabled: Any) -> bool:
        return await self.update_settings({"dismiss_resets_work_timer": enabled})

    async def update_break_types(self, break_types: Any) -> bool:
        return await self.update_settings({"break_types": break_types})

    async def update_settings(self, new_settings: Mapping[str, Any]) -> bool:
        """Apply several fields at once. Nothing changes if any field is invalid."""
        try:
            validated = validate_settings_update(new_settings)
            updated = BreakSettings.model_validate(
                {**self.settings.model_dump(), **validated}
            )
        except (DataValidationError, ValidationError) as e:
            logger.warning("rejected settings update %r: %s", new_settings, e)
            return False

        self.settings = updated
        if not await self.save_settings():
            return False
        logger.info("break settings updated: %s", sorted(validated))
        return True

    async def reset_to_defaults(self) -> bool:
        self.settings = BreakSettings()
        return await self.save_settings()

    def export_settings(self) -> str:
        return json.dumps(self.settings.model_dump(), indent=2)

    async def import_settings(self, settings_json: str) -> bool:
        try:
            imported = json.loads(settings_json)
        except json.JSONDecodeError as e:
            logger.warning("settings import is not valid JSON: %s", e)
            return False
        if not isinstance(imported, Mapping):
            logger.warning("settings import is not a JSON object")
            return False
        return await self.update_settings(imported)

    def get_settings_summary(self) -> dict[str, Any]:
        settings = self.settings
        return {
            "work_time_threshold": f"{settings.work_time_threshold_minutes} minutes",
            "notifications": "Enabled" if settings.notifications_enabled else "Disabled",
            "dismiss_resets_work_timer": settings.dismiss_resets_work_timer,
            "break_types_count": len(settings.break_types),
            "version": settings.version,
        }

    async def migrate_settings(self) -> None:
        if self.settings.version >= CURRENT_SETTINGS_VERSION:
            return
        logger.info(
            "migrating break settings from version %d to %d",
            self.settings.version,
            CURRENT_SETTINGS_VERSION,
        )
        self.settings = self.settings.model_copy(update={"version": CURRENT_SETTINGS_VERSION})
        await self.save_settings()
