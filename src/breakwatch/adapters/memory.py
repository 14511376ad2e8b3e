"""In-process implementations used when a platform capability is missing."""

from __future__ import annotations

import copy
from collections import deque
from typing import Any

from breakwatch.models.notifications import FallbackNotification, NotificationOptions
from breakwatch.repositories import BadgeDisplay, KeyValueStore, NotificationService
from breakwatch.utils.clock import Clock, now_ms
from breakwatch.utils.logger import get_logger

logger = get_logger("fallback")

DEFAULT_BADGE_COLOR = "#000000"
DEFAULT_TITLE = "breakwatch"


class MemoryStore(KeyValueStore):
    """Dict-backed store. Lives as long as the process."""

    def __init__(self, initial: dict[str, Any] | None = None):
        self._data: dict[str, Any] = dict(initial or {})

    async def get(self, key: str) -> Any | None:
        return copy.deepcopy(self._data.get(key))

    async def set(self, key: str, value: Any) -> bool:
        self._data[key] = copy.deepcopy(value)
        return True

    async def set_multiple(self, items: dict[str, Any]) -> bool:
        for key, value in items.items():
            self._data[key] = copy.deepcopy(value)
        return True

    async def remove(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    def snapshot(self) -> dict[str, Any]:
        return copy.deepcopy(self._data)


class QueuedNotifier(NotificationService):
    """Keeps notifications in a bounded in-memory queue for later display."""

    def __init__(self, queue: deque[FallbackNotification], clock: Clock = now_ms):
        self.queue = queue
        self.clock = clock

    async def create(self, notification_id: str, options: NotificationOptions) -> bool:
        self.queue.append(
            FallbackNotification(
                id=notification_id,
                title=options.title,
                message=options.message,
                timestamp=self.clock(),
                method="in_memory",
            )
        )
        logger.info("queued notification %s: %s", notification_id, options.title)
        return True

    async def clear(self, notification_id: str) -> bool:
        for item in list(self.queue):
            if item.id == notification_id:
                self.queue.remove(item)
                return True
        return False

    async def get_permission_level(self) -> str:
        return "granted"


class MemoryBadge(BadgeDisplay):
    """Mirrors badge and tooltip state in memory."""

    def __init__(self):
        self.badge_text = ""
        self.badge_color = DEFAULT_BADGE_COLOR
        self.title = DEFAULT_TITLE

    async def set_badge_text(self, text: str) -> None:
        self.badge_text = text or ""
        logger.debug("fallback badge text set: %s", self.badge_text)

    async def set_badge_background_color(self, color: str) -> None:
        self.badge_color = color or DEFAULT_BADGE_COLOR

    async def set_title(self, title: str) -> None:
        self.title = title or DEFAULT_TITLE

    def as_dict(self) -> dict[str, str]:
        return {"badge_text": self.badge_text, "badge_color": self.badge_color, "title": self.title}
