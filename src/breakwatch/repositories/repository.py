"""Port definitions for the platform capabilities the engine depends on.

The core never talks to a concrete backend. It is handed one implementation
per capability at construction time (see ``services.error_coordinator``)
and adapters in ``breakwatch.adapters`` provide the concrete ones.

Adapters signal that their capability is missing altogether by raising
``PlatformApiUnavailableError``; any other exception is treated as an
ordinary failure of that call.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import Any

from breakwatch.models.notifications import NotificationOptions

SchedulerCallback = Callable[[], Awaitable[None] | None]


class KeyValueStore(ABC):
    """Key/value persistence over string keys. No cross-key transactions."""

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Return the stored value, or None when the key is absent."""
        raise NotImplementedError("KeyValueStore.get() must be implemented by adapter")

    async def get_multiple(self, keys: list[str]) -> dict[str, Any]:
        """Return a mapping for the keys that are present."""
        result = {}
        for key in keys:
            value = await self.get(key)
            if value is not None:
                result[key] = value
        return result

    @abstractmethod
    async def set(self, key: str, value: Any) -> bool:
        raise NotImplementedError("KeyValueStore.set() must be implemented by adapter")

    @abstractmethod
    async def set_multiple(self, items: dict[str, Any]) -> bool:
        raise NotImplementedError(
            "KeyValueStore.set_multiple() must be implemented by adapter"
        )

    @abstractmethod
    async def remove(self, key: str) -> bool:
        raise NotImplementedError("KeyValueStore.remove() must be implemented by adapter")


class NotificationService(ABC):
    """Platform notification service.

    User interactions (body click, button click, close) come back to the
    engine as events rather than through callbacks registered here.
    """

    @abstractmethod
    async def create(self, notification_id: str, options: NotificationOptions) -> bool:
        raise NotImplementedError(
            "NotificationService.create() must be implemented by adapter"
        )

    @abstractmethod
    async def clear(self, notification_id: str) -> bool:
        raise NotImplementedError(
            "NotificationService.clear() must be implemented by adapter"
        )

    @abstractmethod
    async def get_permission_level(self) -> str:
        """Return "granted", "denied" or another platform-specific level."""
        raise NotImplementedError(
            "NotificationService.get_permission_level() must be implemented by adapter"
        )

    async def open_primary_ui(self) -> bool:
        """Bring the application's main view forward, if the platform can."""
        return False


class BadgeDisplay(ABC):
    """Short badge text, badge colour and tooltip next to the app's icon."""

    @abstractmethod
    async def set_badge_text(self, text: str) -> None:
        raise NotImplementedError(
            "BadgeDisplay.set_badge_text() must be implemented by adapter"
        )

    @abstractmethod
    async def set_badge_background_color(self, color: str) -> None:
        raise NotImplementedError(
            "BadgeDisplay.set_badge_background_color() must be implemented by adapter"
        )

    @abstractmethod
    async def set_title(self, title: str) -> None:
        raise NotImplementedError("BadgeDisplay.set_title() must be implemented by adapter")


class Scheduler(ABC):
    """Named single-shot delayed callbacks. Re-arming a name replaces it."""

    @abstractmethod
    def call_later(self, name: str, delay_ms: int, callback: SchedulerCallback) -> None:
        raise NotImplementedError("Scheduler.call_later() must be implemented by adapter")

    @abstractmethod
    def cancel(self, name: str) -> bool:
        raise NotImplementedError("Scheduler.cancel() must be implemented by adapter")

    @abstractmethod
    def cancel_all(self) -> None:
        raise NotImplementedError("Scheduler.cancel_all() must be implemented by adapter")
