"""Data models for breakwatch."""

from .analytics import BreakSession, DailyBreakStats
from .config_models import AppConfig, BreakSettings, BreakTypeConfig
from .exceptions import (
    BreakwatchError,
    DataValidationError,
    NotificationDeliveryError,
    PlatformApiUnavailableError,
    StateCorruptionError,
)
from .notifications import NotificationOptions, NotificationRecord
from .results import Feedback, OperationResult
from .timer_state import BreakType, TimerState, TimerStatus

__all__ = [
    "AppConfig",
    "BreakSession",
    "BreakSettings",
    "BreakTypeConfig",
    "BreakType",
    "BreakwatchError",
    "DailyBreakStats",
    "DataValidationError",
    "Feedback",
    "NotificationDeliveryError",
    "NotificationOptions",
    "NotificationRecord",
    "OperationResult",
    "PlatformApiUnavailableError",
    "StateCorruptionError",
    "TimerState",
    "TimerStatus",
]
