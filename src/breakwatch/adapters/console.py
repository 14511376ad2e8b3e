"""Terminal implementations of the notification and badge capabilities."""

from __future__ import annotations

from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from breakwatch.models.notifications import NotificationOptions, notification_kind
from breakwatch.repositories import BadgeDisplay, NotificationService
from breakwatch.utils.ui.console import get_console

_KIND_STYLES = {
    "threshold": "yellow",
    "completion": "green",
    "started": "cyan",
}


class ConsoleNotifier(NotificationService):
    """Shows notifications as rich panels with reply hints for each button."""

    def __init__(self, console: Console | None = None, permission: str = "granted"):
        self.console = console or get_console()
        self.permission = permission
        self.displayed: dict[str, NotificationOptions] = {}

    async def create(self, notification_id: str, options: NotificationOptions) -> bool:
        body = Text(options.message)
        for index, label in enumerate(options.buttons):
            body.append(f"\n  [{index}] {label}", style="bold")
        if options.buttons:
            body.append(
                f"\n\nbreakwatch notify button {notification_id} <n>", style="dim"
            )
        style = _KIND_STYLES.get(notification_kind(notification_id), "blue")
        self.console.print(
            Panel(body, title=options.title, subtitle=notification_id, border_style=style)
        )
        self.displayed[notification_id] = options
        return True

    async def clear(self, notification_id: str) -> bool:
        return self.displayed.pop(notification_id, None) is not None

    async def get_permission_level(self) -> str:
        return self.permission

    async def open_primary_ui(self) -> bool:
        self.console.print("[dim]Run 'breakwatch status' to see the timer.[/dim]")
        return True


class TerminalBadge(BadgeDisplay):
    """Puts the badge text and tooltip in the terminal window title."""

    def __init__(self, console: Console | None = None):
        self.console = console or get_console()
        self.badge_text = ""
        self.badge_color = ""
        self.title = "breakwatch"

    def _refresh(self) -> None:
        label = f"[{self.badge_text}] {self.title}" if self.badge_text else self.title
        self.console.set_window_title(label)

    async def set_badge_text(self, text: str) -> None:
        self.badge_text = text
        self._refresh()

    async def set_badge_background_color(self, color: str) -> None:
        # Terminal titles have no colour; remember it for status output
        self.badge_color = color

    async def set_title(self, title: str) -> None:
        self.title = title
        self._refresh()
