"""Watch command - run the reminder loop in the foreground."""

import asyncio
import contextlib
import signal

import typer
from rich.status import Status

from breakwatch.models.events import StartWork
from breakwatch.services.engine import BreakEngine
from breakwatch.utils.clock import format_duration, ms_to_minutes
from breakwatch.utils.ui.console import get_console
from breakwatch.utils.ui.formatters import format_info, format_warning

from .decorators import command_wrapper
from .timer_command import describe_state
from .utils import open_engine

console = get_console()


def status_line(engine: BreakEngine) -> str:
    status = engine.timer.get_timer_status()
    state = describe_state(status)
    if status.is_on_break:
        return f"{state} ({status.break_type}) - {format_duration(status.remaining_break_time)} left"
    line = (
        f"{state} - {format_duration(status.current_work_time)} "
        f"of {ms_to_minutes(status.work_time_threshold)} min"
    )
    if engine.coordinator.fallback_mode:
        line += " [yellow](fallback mode)[/yellow]"
    return line


async def show_missed_reminders(engine: BreakEngine) -> None:
    """Print reminders that earlier runs could only buffer, then drop them."""
    missed = engine.coordinator.get_fallback_notifications()
    for reminder in missed:
        format_warning(f"Missed reminder: {reminder.title} - {reminder.message}")
    if missed:
        engine.coordinator.clear_fallback_notifications()
        await engine.coordinator.save_diagnostics()


async def _refresh(engine: BreakEngine, spinner: Status, stop: asyncio.Event) -> None:
    while not stop.is_set():
        spinner.update(status_line(engine))
        with contextlib.suppress(TimeoutError):
            await asyncio.wait_for(stop.wait(), timeout=engine.tick_interval)


@command_wrapper
async def watch(
    seconds: float | None = typer.Option(
        None, "--for", help="Stop after this many seconds (default: until Ctrl+C)"
    ),
    auto_start: bool = typer.Option(
        True, "--start/--no-start", help="Start the work timer if it is stopped"
    ),
) -> None:
    """Track work time and show break reminders until interrupted."""
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    with contextlib.suppress(NotImplementedError):
        loop.add_signal_handler(signal.SIGINT, stop.set)
    if seconds is not None:
        loop.call_later(seconds, stop.set)

    async with open_engine(tracking=True) as engine:
        await show_missed_reminders(engine)
        state = engine.timer.state
        if auto_start and not state.is_on_break and not state.is_work_timer_active:
            await engine.dispatch(StartWork())

        format_info("Watching work time. Press Ctrl+C to stop.")
        with console.status(status_line(engine)) as spinner:
            refresher = asyncio.create_task(_refresh(engine, spinner, stop))
            try:
                await engine.run(stop, follow_store=True)
            finally:
                stop.set()
                await refresher

    with contextlib.suppress(NotImplementedError):
        loop.remove_signal_handler(signal.SIGINT)
    format_info("Stopped watching")
