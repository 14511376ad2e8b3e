"""Break settings commands."""

from pathlib import Path

import typer

from breakwatch.models.timer_state import BREAK_TYPES
from breakwatch.utils.exit_codes import ERROR_INVALID_ARGS
from breakwatch.utils.typer_helpers import SuggestingGroup
from breakwatch.utils.ui.formatters import format_output, format_success

from .decorators import AppError, command_wrapper
from .utils import open_engine

app = typer.Typer(cls=SuggestingGroup, help="Break reminder settings")


def _parse_switch(value: str) -> bool:
    lowered = value.lower()
    if lowered in ("on", "true", "yes", "1"):
        return True
    if lowered in ("off", "false", "no", "0"):
        return False
    raise AppError(f"Expected on or off, got '{value}'", exit_code=ERROR_INVALID_ARGS)


@app.command("show")
@command_wrapper
async def show_settings(
    output: str = typer.Option("table", "--output", "-o", help="Output format"),
) -> None:
    """Show the current break settings."""
    async with open_engine() as engine:
        if output == "table":
            format_output(engine.settings.get_settings_summary(), output)
        else:
            format_output(engine.settings.get_settings().model_dump(), output)


@app.command("threshold")
@command_wrapper
async def set_threshold(
    minutes: int = typer.Argument(..., help="Work minutes before a break reminder (5-180)"),
) -> None:
    """Set the work time threshold."""
    async with open_engine() as engine:
        if not await engine.timer.update_work_time_threshold(minutes):
            raise AppError(
                f"Invalid threshold {minutes}: must be a whole number of minutes between 5 and 180",
                exit_code=ERROR_INVALID_ARGS,
            )
    format_success(f"Work time threshold set to {minutes} minutes")


@app.command("notifications")
@command_wrapper
async def set_notifications(
    state: str = typer.Argument(..., help="on or off"),
) -> None:
    """Turn break reminders on or off."""
    enabled = _parse_switch(state)
    async with open_engine() as engine:
        if not await engine.settings.update_notifications_enabled(enabled):
            raise AppError("Failed to save notification setting")
    format_success(f"Break reminders {'enabled' if enabled else 'disabled'}")


@app.command("dismiss-resets")
@command_wrapper
async def set_dismiss_resets(
    state: str = typer.Argument(..., help="on or off"),
) -> None:
    """Choose whether dismissing a reminder resets the work timer."""
    enabled = _parse_switch(state)
    async with open_engine() as engine:
        if not await engine.settings.update_dismiss_resets_work_timer(enabled):
            raise AppError("Failed to save dismissal setting")
    format_success(
        "Dismissing a reminder now "
        + ("resets the work timer" if enabled else "leaves the work timer running")
    )


@app.command("break-type")
@command_wrapper
async def set_break_type(
    break_type: str = typer.Argument(..., help="short, medium or long"),
    duration: float | None = typer.Option(None, "--duration", "-d", help="Length in minutes"),
    label: str | None = typer.Option(None, "--label", "-l", help="Button label"),
) -> None:
    """Change the length or label of a break type."""
    if break_type not in BREAK_TYPES:
        raise AppError(
            f"Unknown break type '{break_type}'. Choose one of: {', '.join(BREAK_TYPES)}",
            exit_code=ERROR_INVALID_ARGS,
        )
    if duration is None and label is None:
        raise AppError("Nothing to change: pass --duration and/or --label", exit_code=ERROR_INVALID_ARGS)

    async with open_engine() as engine:
        catalog = {k: v.model_dump() for k, v in engine.settings.get_break_types().items()}
        if duration is not None:
            catalog[break_type]["duration"] = duration
        if label is not None:
            catalog[break_type]["label"] = label
        if not await engine.notifier.update_break_types(catalog):
            raise AppError("Invalid break type configuration", exit_code=ERROR_INVALID_ARGS)
    format_success(f"Break type '{break_type}' updated")


@app.command("export")
@command_wrapper
async def export_settings(
    file: Path | None = typer.Option(None, "--file", "-f", help="Write to this file"),
) -> None:
    """Export settings as JSON."""
    async with open_engine() as engine:
        text = engine.settings.export_settings()
    if file is None:
        typer.echo(text)
        return
    file.write_text(text, encoding="utf-8")
    format_success(f"Settings exported to {file}")


@app.command("import")
@command_wrapper
async def import_settings(
    file: Path = typer.Argument(..., help="JSON file produced by 'settings export'"),
) -> None:
    """Import settings from JSON."""
    try:
        text = file.read_text(encoding="utf-8")
    except OSError as e:
        raise AppError(f"Cannot read {file}: {e}", exit_code=ERROR_INVALID_ARGS) from e
    async with open_engine() as engine:
        if not await engine.settings.import_settings(text):
            raise AppError(f"Invalid settings in {file}", exit_code=ERROR_INVALID_ARGS)
        engine.timer.state.work_time_threshold = engine.settings.get_work_time_threshold_ms()
        await engine.timer.persist_state("import_settings")
    format_success("Settings imported")


@app.command("reset")
@command_wrapper
async def reset_settings(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Reset break settings to defaults."""
    if not yes:
        if not typer.confirm("Reset break settings to defaults?"):
            raise typer.Exit(0)
    async with open_engine() as engine:
        if not await engine.settings.reset_to_defaults():
            raise AppError("Failed to save settings")
        engine.timer.state.work_time_threshold = engine.settings.get_work_time_threshold_ms()
        await engine.timer.persist_state("reset_settings")
    format_success("Break settings reset to defaults")
