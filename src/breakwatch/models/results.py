"""Result objects returned by recovery and fallback operations."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

from breakwatch.models.timer_state import TimerState

FeedbackLevel = Literal["success", "warning", "info"]


@dataclass
class OperationResult:
    """Outcome of a guarded operation. Never raised, always returned."""

    success: bool
    method: str | None = None
    reason: str | None = None
    message: str = ""
    fallback_mode: bool = False
    was_reset: bool = False
    recovered_state: TimerState | None = None
    data: Any = None
    error: str | None = None

    @classmethod
    def cooldown(cls) -> "OperationResult":
        return cls(success=False, reason="cooldown")


@dataclass
class Feedback:
    """A non-blocking, user-visible message about something the engine did."""

    message: str
    level: FeedbackLevel = "info"
    context: str | None = None
    persistent: bool = False
    actions: tuple[str, ...] = ()
