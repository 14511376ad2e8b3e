"""Break history records and the daily summary built from them."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import asdict, dataclass, field
from typing import Any

ANALYTICS_KEY = "break_sessions"


@dataclass
class BreakSession:
    """One finished break. Times are epoch ms, durations are ms."""

    id: str
    break_type: str
    start_time: int
    end_time: int
    planned_duration: int
    actual_duration: int
    completed: bool

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "BreakSession":
        """Build from a stored record.

        Raises:
            ValueError: If a field is missing or has the wrong type
        """
        try:
            session = cls(
                id=str(data["id"]),
                break_type=str(data["break_type"]),
                start_time=int(data["start_time"]),
                end_time=int(data["end_time"]),
                planned_duration=int(data["planned_duration"]),
                actual_duration=int(data["actual_duration"]),
                completed=data["completed"],
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError(f"invalid break session: {e}") from e
        if not isinstance(session.completed, bool):
            raise ValueError(f"invalid break session: completed={session.completed!r}")
        return session


@dataclass
class DailyBreakStats:
    """Totals for one local calendar day."""

    date: str
    total_breaks: int = 0
    completed_breaks: int = 0
    cancelled_breaks: int = 0
    total_break_minutes: float = 0
    planned_break_minutes: float = 0
    breaks_by_type: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
