"""Ports (abstract interfaces) for platform capabilities."""

from .repository import (
    BadgeDisplay,
    KeyValueStore,
    NotificationService,
    Scheduler,
    SchedulerCallback,
)

__all__ = [
    "BadgeDisplay",
    "KeyValueStore",
    "NotificationService",
    "Scheduler",
    "SchedulerCallback",
]
