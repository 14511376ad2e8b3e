"""Validation and sanitization of work/break records.

Everything here is a pure function of its inputs plus the current time.
``validate`` never raises: each bad field is replaced by a safe default and
reported, and the caller always gets a usable record back.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from breakwatch.models.config_models import MAX_BREAK_DURATION_MINUTES
from breakwatch.models.timer_state import BREAK_TYPES, DEFAULT_WORK_TIME_THRESHOLD_MS
from breakwatch.utils.clock import MS_PER_DAY, MS_PER_MINUTE, now_ms

MAX_BREAK_DURATION_MS = MAX_BREAK_DURATION_MINUTES * MS_PER_MINUTE
MIN_WORK_TIME_THRESHOLD_MS = 5 * MS_PER_MINUTE
MAX_WORK_TIME_THRESHOLD_MS = 180 * MS_PER_MINUTE
MAX_WORK_TIME_MS = MS_PER_DAY
MAX_FUTURE_SKEW_MS = MS_PER_DAY
MAX_TEXT_LENGTH = 500

DEFAULT_BREAK_TYPE = "short"
DEFAULT_DURATION_MINUTES = 5

TIMESTAMP_FIELDS = ("start_time", "end_time", "last_activity_time")
NULLABLE_TIMESTAMP_FIELDS = (
    "work_start_time",
    "break_start_time",
    "last_focus_change_time",
    "last_heartbeat_time",
)
WORK_TIME_FIELDS = ("work_time", "total_work_time")
BOOLEAN_FIELDS = ("is_work_timer_active", "is_on_break", "is_browser_focused", "notifications_enabled")
TEXT_FIELDS = ("message", "title", "context")


@dataclass
class ValidationResult:
    is_valid: bool
    sanitized: dict[str, Any]
    errors: list[str] = field(default_factory=list)


def _is_number(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def is_valid_break_type(break_type: Any) -> bool:
    return isinstance(break_type, str) and break_type in BREAK_TYPES


def is_valid_break_duration(duration: Any) -> bool:
    """Break length in minutes: positive and at most two hours."""
    return _is_number(duration) and 0 < duration <= MAX_BREAK_DURATION_MINUTES


def is_valid_break_duration_ms(duration: Any) -> bool:
    """Stored break length in ms. Zero means no break is running."""
    return _is_number(duration) and 0 <= duration <= MAX_BREAK_DURATION_MS


def is_valid_timestamp(timestamp: Any, now: int | None = None) -> bool:
    if now is None:
        now = now_ms()
    return _is_number(timestamp) and 0 < timestamp <= now + MAX_FUTURE_SKEW_MS


def is_valid_work_time(work_time: Any) -> bool:
    return _is_number(work_time) and 0 <= work_time <= MAX_WORK_TIME_MS


def is_valid_work_time_threshold(threshold: Any) -> bool:
    return (
        _is_number(threshold)
        and MIN_WORK_TIME_THRESHOLD_MS <= threshold <= MAX_WORK_TIME_THRESHOLD_MS
    )


def sanitize_string(value: Any) -> str:
    """Drop angle brackets, trim, and cap the length."""
    if not isinstance(value, str):
        return ""
    return value.replace("<", "").replace(">", "").strip()[:MAX_TEXT_LENGTH]


def validate(record: Any, context: str = "break_data", now: int | None = None) -> ValidationResult:
    """Check every known field of ``record`` and return a repaired copy.

    Unknown fields are dropped. ``context`` only labels the error messages.
    """
    if now is None:
        now = now_ms()

    if not isinstance(record, Mapping):
        return ValidationResult(
            is_valid=False,
            sanitized={},
            errors=[f"{context}: record is not a mapping ({type(record).__name__})"],
        )

    sanitized: dict[str, Any] = {}
    errors: list[str] = []

    if "break_type" in record:
        value = record["break_type"]
        if is_valid_break_type(value) or (value is None and not record.get("is_on_break")):
            sanitized["break_type"] = value
        else:
            errors.append(f"Invalid break type: {value!r}")
            sanitized["break_type"] = DEFAULT_BREAK_TYPE

    if "duration" in record:
        value = record["duration"]
        if is_valid_break_duration(value):
            sanitized["duration"] = value
        else:
            errors.append(f"Invalid duration: {value!r}")
            sanitized["duration"] = DEFAULT_DURATION_MINUTES

    if "break_duration" in record:
        value = record["break_duration"]
        if is_valid_break_duration_ms(value):
            sanitized["break_duration"] = int(value)
        else:
            errors.append(f"Invalid break duration: {value!r}")
            sanitized["break_duration"] = DEFAULT_DURATION_MINUTES * MS_PER_MINUTE

    for name in TIMESTAMP_FIELDS + NULLABLE_TIMESTAMP_FIELDS:
        if name not in record:
            continue
        value = record[name]
        if is_valid_timestamp(value, now) or (value is None and name in NULLABLE_TIMESTAMP_FIELDS):
            sanitized[name] = value
        else:
            errors.append(f"Invalid timestamp for {name}: {value!r}")
            sanitized[name] = now

    for name in WORK_TIME_FIELDS:
        if name not in record:
            continue
        value = record[name]
        if is_valid_work_time(value):
            sanitized[name] = int(value)
        else:
            errors.append(f"Invalid work time for {name}: {value!r}")
            sanitized[name] = 0

    if "work_time_threshold" in record:
        value = record["work_time_threshold"]
        if is_valid_work_time_threshold(value):
            sanitized["work_time_threshold"] = value
        else:
            errors.append(f"Invalid work time threshold: {value!r}")
            sanitized["work_time_threshold"] = DEFAULT_WORK_TIME_THRESHOLD_MS

    for name in BOOLEAN_FIELDS:
        if name in record:
            sanitized[name] = bool(record[name])

    for name in TEXT_FIELDS:
        if name in record:
            sanitized[name] = sanitize_string(record[name])

    return ValidationResult(is_valid=not errors, sanitized=sanitized, errors=errors)


def find_inconsistencies(record: Mapping[str, Any]) -> list[str]:
    """Cross-field checks on a flattened timer record.

    Runs on raw persisted data, before ``validate`` coerces anything, so a
    flag stored as a string still shows up here.
    """
    problems: list[str] = []

    for name in ("is_work_timer_active", "is_on_break"):
        if name in record and not isinstance(record[name], bool):
            problems.append(f"{name} is not a boolean: {record[name]!r}")

    active = record.get("is_work_timer_active") is True
    on_break = record.get("is_on_break") is True

    if active and on_break:
        problems.append("work timer active while on break")
    if on_break and record.get("break_start_time") is None:
        problems.append("on break without a break start time")
    if on_break and record.get("break_type") is None:
        problems.append("on break without a break type")
    if not on_break and record.get("break_type") is not None:
        problems.append("break type set while not on break")
    if active and record.get("work_start_time") is None:
        problems.append("work timer active without a start time")

    return problems
