"""Break commands - start, end and cancel breaks, list break types."""

import typer

from breakwatch.models.events import CancelBreak, EndBreak, StartBreak
from breakwatch.models.timer_state import BREAK_TYPES
from breakwatch.utils.clock import format_duration
from breakwatch.utils.exit_codes import ERROR_INVALID_ARGS
from breakwatch.utils.typer_helpers import SuggestingGroup
from breakwatch.utils.ui.formatters import format_dict_table, format_output, format_success

from .decorators import AppError, command_wrapper
from .utils import open_engine, run_event

app = typer.Typer(cls=SuggestingGroup, help="Take, end and cancel breaks")


@app.command("start")
@command_wrapper
async def start_break(
    break_type: str = typer.Argument("short", help="Break type: short, medium or long"),
    duration: float | None = typer.Option(
        None, "--duration", "-d", help="Override the break length in minutes"
    ),
) -> None:
    """Start a break."""
    if break_type not in BREAK_TYPES:
        raise AppError(
            f"Unknown break type '{break_type}'. Choose one of: {', '.join(BREAK_TYPES)}",
            exit_code=ERROR_INVALID_ARGS,
        )
    engine = await run_event(
        StartBreak(break_type, duration), "Cannot start a break (already on one, or invalid length)"
    )
    remaining = engine.timer.get_remaining_break_time()
    format_success(f"{break_type.title()} break started ({format_duration(remaining)})")


@app.command("end")
@command_wrapper
async def end_break() -> None:
    """End the current break and start a fresh work segment."""
    await run_event(EndBreak(), "Not on a break")
    format_success("Break ended, back to work")


@app.command("cancel")
@command_wrapper
async def cancel_break() -> None:
    """Cancel the current break."""
    await run_event(CancelBreak(), "Not on a break")
    format_success("Break cancelled")


@app.command("types")
@command_wrapper
async def list_break_types(
    output: str = typer.Option("table", "--output", "-o", help="Output format"),
) -> None:
    """List the configured break types."""
    async with open_engine() as engine:
        rows = [
            {"type": key, "duration": entry.duration, "label": entry.label}
            for key, entry in engine.settings.get_break_types().items()
        ]
    if output == "table":
        format_dict_table(rows, title="Break types")
    else:
        format_output(rows, output)
