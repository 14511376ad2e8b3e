"""Concrete implementations of the capability ports."""

from .console import ConsoleNotifier, TerminalBadge
from .json_store import JsonFileStore
from .memory import MemoryBadge, MemoryStore, QueuedNotifier
from .scheduler import AsyncioScheduler, ThreadTimerScheduler

__all__ = [
    "AsyncioScheduler",
    "ConsoleNotifier",
    "JsonFileStore",
    "MemoryBadge",
    "MemoryStore",
    "QueuedNotifier",
    "TerminalBadge",
    "ThreadTimerScheduler",
]
