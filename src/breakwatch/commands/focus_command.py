"""Focus commands - report that the user's attention left or came back."""

import typer

from breakwatch.models.events import FocusChanged
from breakwatch.utils.typer_helpers import SuggestingGroup
from breakwatch.utils.ui.formatters import format_info

from .decorators import command_wrapper
from .utils import run_event

app = typer.Typer(cls=SuggestingGroup, help="Report focus changes")


@app.command("lost")
@command_wrapper
async def focus_lost() -> None:
    """Focus moved away from work."""
    await run_event(FocusChanged(focused=False), "Focus change could not be recorded")
    format_info("Focus lost; the work timer pauses if you stay away")


@app.command("gained")
@command_wrapper
async def focus_gained() -> None:
    """Focus is back on work."""
    await run_event(FocusChanged(focused=True), "Focus change could not be recorded")
    format_info("Focus regained")
