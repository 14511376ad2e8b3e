"""Configuration management commands."""

from typing import Optional

import typer

from breakwatch.services.config_service import get_config_service
from breakwatch.utils.exit_codes import ERROR_INVALID_ARGS
from breakwatch.utils.typer_helpers import SuggestingGroup
from breakwatch.utils.ui.console import get_console
from breakwatch.utils.ui.formatters import format_error, format_output, format_success

from .decorators import AppError, command_wrapper

app = typer.Typer(cls=SuggestingGroup, help="Configuration management commands")
console = get_console()


def _parse_value(value: str) -> str | int | float | bool | None:
    """Convert a command-line string to the most likely config type."""
    lowered = value.lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    if lowered in ("none", "null"):
        return None
    if value.isdigit():
        return int(value)
    try:
        return float(value)
    except ValueError:
        return value


@app.command("view")
@command_wrapper
def view_config(
    output: str = typer.Option("table", "--output", "-o", help="Output format"),
) -> None:
    """View current configuration."""
    config_dict = get_config_service().config.model_dump()
    if output == "table":
        flat = {
            f"{section}.{key}": value
            for section, values in config_dict.items()
            for key, value in values.items()
        }
        format_output(flat, output)
    else:
        format_output(config_dict, output)


@app.command("get")
@command_wrapper
def get_config(
    key: str = typer.Argument(..., help="Configuration key (e.g., timer.tick_interval_seconds)"),
) -> None:
    """Get a configuration value."""
    value = get_config_service().get(key)
    if value is None:
        format_error(f"Configuration key '{key}' not found or unset")
        raise typer.Exit(ERROR_INVALID_ARGS)
    console.print(value)


@app.command("set")
@command_wrapper
def set_config(
    key: str = typer.Argument(..., help="Configuration key (e.g., timer.tick_interval_seconds)"),
    value: str = typer.Argument(..., help="Configuration value"),
) -> None:
    """Set a configuration value."""
    parsed_value = _parse_value(value)
    try:
        get_config_service().set(key, parsed_value)
    except KeyError as e:
        raise AppError(f"Unknown configuration key '{key}'", exit_code=ERROR_INVALID_ARGS) from e
    except ValueError as e:
        raise AppError(str(e), exit_code=ERROR_INVALID_ARGS) from e
    format_success(f"Configuration '{key}' set to '{parsed_value}'")


@app.command("reset")
@command_wrapper
def reset_config(
    key: Optional[str] = typer.Argument(None, help="Configuration key to reset"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Reset configuration to defaults."""
    if not yes:
        msg = "entire configuration" if not key else f"'{key}'"
        if not typer.confirm(f"Are you sure you want to reset {msg}?"):
            format_error("Cancelled")
            raise typer.Exit(0)

    try:
        get_config_service().reset(key)
    except KeyError as e:
        raise AppError(f"Unknown configuration key '{key}'", exit_code=ERROR_INVALID_ARGS) from e

    if key:
        format_success(f"Configuration '{key}' reset to default")
    else:
        format_success("Configuration reset to defaults")
