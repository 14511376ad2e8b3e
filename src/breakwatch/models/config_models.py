"""Configuration and settings models.

``AppConfig`` is the process-level configuration stored in ``config.json``.
``BreakSettings`` holds the user's break preferences and is persisted in
the key/value store next to the timer state.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

MIN_THRESHOLD_MINUTES = 5
MAX_THRESHOLD_MINUTES = 180
REQUIRED_BREAK_TYPES = ("short", "medium", "long")
MAX_BREAK_DURATION_MINUTES = 120


class StorageConfig(BaseModel):
    """Where persisted state lives."""

    data_dir: str | None = Field(default=None, description="Defaults to the platform data dir")
    state_file: str = Field(default="state.json")
    fallback_dir: str | None = Field(
        default=None, description="Secondary store location, defaults to the platform cache dir"
    )


class TimerConfig(BaseModel):
    """Timing knobs for the engine."""

    tick_interval_seconds: float = Field(default=1.0, gt=0)
    inactivity_threshold_minutes: float = Field(default=5, gt=0)
    notification_cooldown_minutes: float = Field(default=5, ge=0)
    error_cooldown_seconds: float = Field(default=5, ge=0)
    max_resume_gap_hours: float = Field(default=4, gt=0)


class OutputConfig(BaseModel):
    """Output configuration."""

    format: str = Field(default="table")
    color: bool = Field(default=True)


class AppConfig(BaseModel):
    """Main breakwatch configuration."""

    storage: StorageConfig = Field(default_factory=StorageConfig)
    timer: TimerConfig = Field(default_factory=TimerConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)


class BreakTypeConfig(BaseModel):
    """One entry of the break-type catalog."""

    duration: float = Field(
        gt=0, le=MAX_BREAK_DURATION_MINUTES, description="Break length in minutes"
    )
    label: str


def default_break_types() -> dict[str, BreakTypeConfig]:
    return {
        "short": BreakTypeConfig(duration=5, label="Short Break (5 min)"),
        "medium": BreakTypeConfig(duration=15, label="Medium Break (15 min)"),
        "long": BreakTypeConfig(duration=30, label="Long Break (30 min)"),
    }


class BreakSettings(BaseModel):
    """User-facing break reminder settings."""

    work_time_threshold_minutes: int = Field(
        default=30, ge=MIN_THRESHOLD_MINUTES, le=MAX_THRESHOLD_MINUTES
    )
    notifications_enabled: bool = True
    break_types: dict[str, BreakTypeConfig] = Field(default_factory=default_break_types)
    # Closing the threshold reminder without choosing a break resets the work timer.
    dismiss_resets_work_timer: bool = True
    version: int = 1

    @field_validator("break_types")
    @classmethod
    def validate_break_types(cls, v: dict[str, BreakTypeConfig]) -> dict[str, BreakTypeConfig]:
        missing = [key for key in REQUIRED_BREAK_TYPES if key not in v]
        if missing:
            raise ValueError(f"break types missing: {', '.join(missing)}")
        unknown = sorted(key for key in v if key not in REQUIRED_BREAK_TYPES)
        if unknown:
            raise ValueError(f"unknown break types: {', '.join(unknown)}")
        return v
