"""Events consumed by ``BreakEngine.dispatch``.

Every state change enters the engine as one of these, whether it comes from
the tick producer, a focus or activity signal, a notification interaction,
a CLI command, or a deferred scheduler callback.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from breakwatch.models.timer_state import BreakType


@dataclass(frozen=True)
class Tick:
    pass


@dataclass(frozen=True)
class ActivityDetected:
    pass


@dataclass(frozen=True)
class FocusChanged:
    focused: bool


@dataclass(frozen=True)
class NotificationClicked:
    notification_id: str


@dataclass(frozen=True)
class NotificationButtonClicked:
    notification_id: str
    button_index: int


@dataclass(frozen=True)
class NotificationClosed:
    notification_id: str
    by_user: bool


@dataclass(frozen=True)
class StartWork:
    pass


@dataclass(frozen=True)
class PauseWork:
    pass


@dataclass(frozen=True)
class ResumeWork:
    pass


@dataclass(frozen=True)
class ResetWork:
    pass


@dataclass(frozen=True)
class StartBreak:
    break_type: BreakType
    duration_minutes: float | None = None


@dataclass(frozen=True)
class EndBreak:
    pass


@dataclass(frozen=True)
class CancelBreak:
    pass


@dataclass(frozen=True)
class Deferred:
    """A scheduler callback re-entering the engine's serialized loop."""

    callback: Callable[[], Awaitable[None] | None]


EngineEvent = (
    Tick
    | ActivityDetected
    | FocusChanged
    | NotificationClicked
    | NotificationButtonClicked
    | NotificationClosed
    | StartWork
    | PauseWork
    | ResumeWork
    | ResetWork
    | StartBreak
    | EndBreak
    | CancelBreak
    | Deferred
)
