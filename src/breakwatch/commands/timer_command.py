"""Work timer commands: status, start, pause, resume, reset, activity, reset-all."""

import typer

from breakwatch.models.events import (
    ActivityDetected,
    PauseWork,
    ResetWork,
    ResumeWork,
    StartWork,
)
from breakwatch.models.timer_state import TimerStatus
from breakwatch.utils.clock import format_duration, ms_to_minutes
from breakwatch.utils.ui.formatters import format_output, format_success

from .decorators import command_wrapper
from .utils import open_engine, run_event


def describe_state(status: TimerStatus) -> str:
    if status.is_on_break:
        return "On break"
    if status.is_work_timer_active:
        return "Working"
    if status.total_work_time > 0:
        return "Paused"
    return "Stopped"


def status_view(status: TimerStatus, fallback_mode: bool) -> dict:
    """Human-oriented rendering of a timer snapshot."""
    view = {
        "state": describe_state(status),
        "work_time": format_duration(status.current_work_time),
        "threshold": f"{ms_to_minutes(status.work_time_threshold)} min",
        "break_due": status.is_threshold_exceeded,
        "focused": status.is_browser_focused,
    }
    if status.is_on_break:
        view["break_type"] = status.break_type
        view["break_remaining"] = format_duration(status.remaining_break_time)
    if fallback_mode:
        view["fallback_mode"] = True
    return view


@command_wrapper
async def status(
    output: str = typer.Option("table", "--output", "-o", help="Output format"),
) -> None:
    """Show the work timer status."""
    async with open_engine() as engine:
        timer_status = engine.timer.get_timer_status()
        if output in ("json", "yaml"):
            format_output(engine.snapshot(), output)
        else:
            format_output(status_view(timer_status, engine.coordinator.fallback_mode), output)


@command_wrapper
async def start() -> None:
    """Start the work timer."""
    await run_event(StartWork(), "Cannot start the work timer while on a break")
    format_success("Work timer started")


@command_wrapper
async def pause() -> None:
    """Pause the work timer."""
    engine = await run_event(PauseWork(), "Work timer is not running")
    format_success(
        f"Work timer paused at {format_duration(engine.timer.state.total_work_time)}"
    )


@command_wrapper
async def resume() -> None:
    """Resume a paused work timer."""
    await run_event(ResumeWork(), "Work timer is already running or a break is in progress")
    format_success("Work timer resumed")


@command_wrapper
async def reset() -> None:
    """Reset accumulated work time and start a fresh work segment."""
    await run_event(ResetWork(), "Cannot reset the work timer while on a break")
    format_success("Work timer reset")


@command_wrapper
async def activity() -> None:
    """Record user activity, resuming the timer if it was paused."""
    await run_event(ActivityDetected(), "Activity could not be recorded")
    format_success("Activity recorded")


@command_wrapper
async def reset_all(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Delete all persisted timer state."""
    if not yes:
        if not typer.confirm("Delete all timer state?"):
            raise typer.Exit(0)
    async with open_engine() as engine:
        await engine.timer.reset_all()
    format_success("Timer state deleted")
