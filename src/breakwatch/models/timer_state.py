"""Timer state owned by the break timer service, and its persisted shape."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from typing import Any, Literal

from breakwatch.utils.clock import minutes_to_ms

BreakType = Literal["short", "medium", "long"]

BREAK_TYPES: tuple[str, ...] = ("short", "medium", "long")
DEFAULT_WORK_TIME_THRESHOLD_MS = minutes_to_ms(30)

TIMER_STATE_KEY = "break_timer_state"
WORK_SESSION_KEY = "work_session_data"

_TIMER_STATE_FIELDS = (
    "is_work_timer_active",
    "is_on_break",
    "break_type",
    "last_activity_time",
    "work_time_threshold",
    "is_browser_focused",
    "last_focus_change_time",
    "last_heartbeat_time",
)
_WORK_SESSION_FIELDS = (
    "work_start_time",
    "total_work_time",
    "break_start_time",
    "break_duration",
)


@dataclass
class TimerState:
    """Work/break lifecycle state. Times are epoch ms, durations are ms."""

    is_work_timer_active: bool = False
    is_on_break: bool = False
    break_type: BreakType | None = None
    work_start_time: int | None = None
    total_work_time: int = 0
    break_start_time: int | None = None
    break_duration: int = 0
    last_activity_time: int = 0
    work_time_threshold: int = DEFAULT_WORK_TIME_THRESHOLD_MS
    is_browser_focused: bool = True
    last_focus_change_time: int | None = field(default=None, compare=False)
    # Refreshed by the process that runs the reminder loop
    last_heartbeat_time: int | None = field(default=None, compare=False)

    @classmethod
    def clean(cls, now: int, work_time_threshold: int = DEFAULT_WORK_TIME_THRESHOLD_MS) -> "TimerState":
        """A stopped timer with nothing accumulated."""
        return cls(last_activity_time=now, work_time_threshold=work_time_threshold)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def to_records(self) -> dict[str, dict[str, Any]]:
        """Split into the two persisted records, keyed by storage key."""
        data = self.to_dict()
        return {
            TIMER_STATE_KEY: {name: data[name] for name in _TIMER_STATE_FIELDS},
            WORK_SESSION_KEY: {name: data[name] for name in _WORK_SESSION_FIELDS},
        }

    @staticmethod
    def merge_records(
        timer_state: dict[str, Any] | None, work_session: dict[str, Any] | None
    ) -> dict[str, Any]:
        """Flatten the two persisted records into one mapping (raw, unvalidated)."""
        merged: dict[str, Any] = {}
        if isinstance(timer_state, dict):
            merged.update(timer_state)
        if isinstance(work_session, dict):
            merged.update(work_session)
        return merged

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TimerState":
        """Build from a flat mapping, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})


@dataclass
class TimerStatus:
    """Read-only snapshot of the timer for display and decision making."""

    is_work_timer_active: bool
    is_on_break: bool
    break_type: BreakType | None
    work_start_time: int | None
    current_work_time: int
    total_work_time: int
    work_time_threshold: int
    is_threshold_exceeded: bool
    remaining_break_time: int
    last_activity_time: int
    is_browser_focused: bool

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
