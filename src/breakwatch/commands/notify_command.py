"""Notification commands - answer a reminder shown by 'breakwatch watch'."""

import typer

from breakwatch.models.events import (
    NotificationButtonClicked,
    NotificationClicked,
    NotificationClosed,
)
from breakwatch.utils.typer_helpers import SuggestingGroup
from breakwatch.utils.ui.formatters import format_success

from .decorators import command_wrapper
from .utils import run_event

app = typer.Typer(cls=SuggestingGroup, help="Respond to break notifications")


@app.command("click")
@command_wrapper
async def click(
    notification_id: str = typer.Argument(..., help="Notification ID"),
) -> None:
    """Open a notification."""
    await run_event(NotificationClicked(notification_id), "Notification could not be opened")


@app.command("button")
@command_wrapper
async def button(
    notification_id: str = typer.Argument(..., help="Notification ID"),
    index: int = typer.Argument(..., help="Button number shown in the notification"),
) -> None:
    """Press one of a notification's buttons."""
    await run_event(
        NotificationButtonClicked(notification_id, index),
        f"Button {index} is not available for {notification_id}",
    )
    format_success("Done")


@app.command("dismiss")
@command_wrapper
async def dismiss(
    notification_id: str = typer.Argument(..., help="Notification ID"),
) -> None:
    """Dismiss a notification."""
    await run_event(
        NotificationClosed(notification_id, by_user=True), "Notification could not be dismissed"
    )
    format_success("Notification dismissed")
