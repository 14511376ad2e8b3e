"""Diagnostics commands - error tracking and fallback state of the engine.

Error counts and buffered fallback reminders are stored next to the timer
state, so these commands report and clear what every process recorded.
Fallback mode itself belongs to the process that entered it.
"""

from dataclasses import asdict

import typer

from breakwatch.utils.exit_codes import ERROR_DEGRADED
from breakwatch.utils.typer_helpers import SuggestingGroup
from breakwatch.utils.ui.formatters import format_dict_table, format_output, format_success

from .decorators import command_wrapper
from .utils import open_engine

app = typer.Typer(cls=SuggestingGroup, help="Inspect error handling and fallbacks")


@app.command("errors")
@command_wrapper
async def show_errors(
    output: str = typer.Option("table", "--output", "-o", help="Output format"),
    check: bool = typer.Option(
        False, "--check", help="Exit with a non-zero code if anything was recorded"
    ),
) -> None:
    """Show recorded errors and fallback mode."""
    async with open_engine() as engine:
        stats = engine.coordinator.get_error_stats()
    if output != "table":
        format_output(stats, output)
    else:
        _print_error_table(stats)
    if check and (stats["error_counts"] or stats["fallback_mode"]):
        raise typer.Exit(ERROR_DEGRADED)


def _print_error_table(stats: dict) -> None:
    rows = [
        {"error": key, "count": count, "last_seen": stats["last_errors"][key]}
        for key, count in stats["error_counts"].items()
    ]
    format_dict_table(rows, title="Recorded errors")
    format_output(
        {
            "fallback_mode": stats["fallback_mode"],
            "fallback_capabilities": stats["fallback_capabilities"],
        },
        "table",
    )


@app.command("fallback")
@command_wrapper
async def show_fallback(
    output: str = typer.Option("table", "--output", "-o", help="Output format"),
) -> None:
    """Show reminders that could only be kept in the fallback buffer."""
    async with open_engine() as engine:
        rows = [asdict(n) for n in engine.coordinator.get_fallback_notifications()]
    if output == "table":
        format_dict_table(rows, title="Fallback notifications")
    else:
        format_output(rows, output)


@app.command("clear")
@command_wrapper
async def clear_diagnostics() -> None:
    """Clear error tracking, fallback notifications and fallback mode."""
    async with open_engine() as engine:
        engine.coordinator.reset_error_tracking()
        engine.coordinator.clear_fallback_notifications()
        engine.coordinator.clear_fallback_mode()
    format_success("Diagnostics cleared")
