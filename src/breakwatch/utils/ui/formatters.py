"""Output formatters for different formats."""

import json
from typing import Any

import yaml
from rich.table import Table

from breakwatch.models.results import Feedback
from breakwatch.utils.ui.console import get_console

console = get_console()


def format_output(data: Any, output_format: str = "table") -> None:
    """Format and display output based on format."""
    if output_format == "json":
        print(json.dumps(data, indent=2, default=str))
    elif output_format == "yaml":
        print(yaml.dump(data, default_flow_style=False, sort_keys=False))
    elif output_format == "quiet":
        format_quiet(data)
    else:
        format_table(data)


def format_table(data: Any) -> None:
    """Format data as a table."""
    if not data:
        console.print("[yellow]No data to display[/yellow]")
        return

    if isinstance(data, list):
        if isinstance(data[0], dict):
            format_dict_table(data)
        else:
            for item in data:
                console.print(item)
    elif isinstance(data, dict):
        format_single_item(data)
    else:
        console.print(data)


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "✓" if value else "✗"
    if isinstance(value, list):
        return ", ".join(str(v) for v in value)
    if isinstance(value, dict):
        return ", ".join(f"{k}={v}" for k, v in value.items())
    if value is None:
        return "-"
    return str(value)


def format_dict_table(items: list[dict], title: str | None = None) -> None:
    """Format a list of dictionaries as a table."""
    if not items:
        console.print("[yellow]No items found[/yellow]")
        return

    columns = list(items[0].keys())
    table = Table(title=title, show_header=True, header_style="bold magenta")
    for col in columns:
        table.add_column(col.replace("_", " ").title())

    for item in items:
        table.add_row(*(_format_value(item.get(col, "")) for col in columns))

    console.print(table)


def format_single_item(item: dict, title: str | None = None) -> None:
    """Format a single item as key-value pairs."""
    table = Table(title=title, show_header=False, box=None)
    table.add_column("Key", style="cyan")
    table.add_column("Value", style="white")

    for key, value in item.items():
        table.add_row(key.replace("_", " ").title(), _format_value(value))

    console.print(table)


def format_quiet(data: Any) -> None:
    """Print bare values, one per line."""
    if isinstance(data, dict):
        for value in data.values():
            console.print(_format_value(value))
    elif isinstance(data, list):
        for item in data:
            console.print(_format_value(item))
    else:
        console.print(data)


def format_error(message: str) -> None:
    """Format and display an error message."""
    console.print(f"[bold red]Error:[/bold red] {message}")


def format_success(message: str) -> None:
    """Format and display a success message."""
    console.print(f"[bold green]Success:[/bold green] {message}")


def format_warning(message: str) -> None:
    """Format and display a warning message."""
    console.print(f"[bold yellow]Warning:[/bold yellow] {message}")


def format_info(message: str) -> None:
    """Format and display an info message."""
    console.print(f"[bold blue]Info:[/bold blue] {message}")


def format_feedback(feedback: Feedback) -> None:
    """Render an engine feedback message at its severity."""
    message = feedback.message
    if feedback.context:
        message = f"{feedback.context}: {message}"
    if feedback.actions:
        message += f" [dim]({', '.join(feedback.actions)})[/dim]"
    if feedback.level == "success":
        format_success(message)
    elif feedback.level == "warning":
        format_warning(message)
    else:
        format_info(message)
