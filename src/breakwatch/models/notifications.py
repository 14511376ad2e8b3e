"""Notification payloads and bookkeeping records."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

NotificationKind = Literal["threshold", "completion", "started", "fallback", "other"]

THRESHOLD_PREFIX = "break-timer"
COMPLETION_PREFIX = "break-complete"
STARTED_PREFIX = "break-started"
FALLBACK_PREFIX = "fallback"

DEFAULT_TITLE = "Break Reminder"
DEFAULT_MESSAGE = "Time for a break!"


@dataclass
class NotificationOptions:
    """What a notification shows."""

    title: str
    message: str
    buttons: list[str] = field(default_factory=list)
    require_interaction: bool = True

    def without_buttons(self) -> "NotificationOptions":
        return NotificationOptions(
            title=self.title or DEFAULT_TITLE,
            message=self.message or DEFAULT_MESSAGE,
            buttons=[],
            require_interaction=False,
        )


@dataclass
class NotificationRecord:
    """A notification the orchestrator believes is currently displayed."""

    id: str
    created_at: int
    options: NotificationOptions


@dataclass
class FallbackNotification:
    """A reminder kept in memory because no platform channel could show it."""

    id: str
    title: str
    message: str
    timestamp: int
    method: str = "console"


def make_notification_id(prefix: str, now: int) -> str:
    return f"{prefix}-{now}"


def notification_kind(notification_id: str) -> NotificationKind:
    """Classify a notification by its id prefix."""
    if notification_id.startswith(THRESHOLD_PREFIX + "-"):
        return "threshold"
    if notification_id.startswith(COMPLETION_PREFIX + "-"):
        return "completion"
    if notification_id.startswith(STARTED_PREFIX + "-"):
        return "started"
    if notification_id.startswith(FALLBACK_PREFIX + "-"):
        return "fallback"
    return "other"
