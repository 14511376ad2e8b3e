"""Stats command - daily totals of finished breaks."""

import typer

from breakwatch.services.analytics_service import SESSION_RETENTION_DAYS
from breakwatch.utils.ui.console import get_console
from breakwatch.utils.ui.formatters import format_dict_table, format_output

from .decorators import command_wrapper
from .utils import open_engine

console = get_console()


def format_minutes(minutes: float) -> str:
    """Format minutes as hours and minutes."""
    hours = int(minutes // 60)
    mins = int(minutes % 60)
    if hours > 0:
        return f"{hours}h {mins}m"
    return f"{mins}m"


def render_progress_bar(value: float, max_value: float, width: int = 10) -> str:
    """Render a progress bar using block characters."""
    ratio = 0 if max_value == 0 else min(value / max_value, 1.0)
    filled = int(ratio * width)
    return "█" * filled + "░" * (width - filled)


@command_wrapper
async def stats(
    days: int = typer.Option(
        7, "--days", "-d", min=1, max=SESSION_RETENTION_DAYS, help="Number of days to show"
    ),
    output: str = typer.Option("table", "--output", "-o", help="Output format"),
) -> None:
    """Show how many breaks were taken and for how long, per day."""
    async with open_engine() as engine:
        daily = await engine.analytics.get_daily_stats(days)

    if output != "table":
        format_output([day.to_dict() for day in daily], output)
        return

    rows = [
        {
            "date": day.date,
            "breaks": day.total_breaks,
            "completed": render_progress_bar(day.completed_breaks, day.total_breaks)
            + f" {day.completed_breaks}/{day.total_breaks}",
            "break_time": format_minutes(day.total_break_minutes),
            "planned": format_minutes(day.planned_break_minutes),
            **day.breaks_by_type,
        }
        for day in daily
        if day.total_breaks
    ]
    format_dict_table(rows, title=f"Breaks in the last {days} days")

    total = sum(day.total_breaks for day in daily)
    if total:
        taken = sum(day.total_break_minutes for day in daily)
        console.print(
            f"Total: [bold]{total}[/bold] breaks, [bold]{format_minutes(taken)}[/bold] away from work"
        )
