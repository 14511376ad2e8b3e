"""Typer helper utilities."""

from difflib import get_close_matches

import typer
from typer.core import TyperGroup

from breakwatch.utils.ui.console import get_console


def suggest_commands(attempted: str, names: list[str], limit: int = 3) -> list[str]:
    """Close matches for a mistyped command name, best first."""
    return get_close_matches(attempted, names, n=limit, cutoff=0.6)


class SuggestingGroup(TyperGroup):
    """Command group that answers an unknown command with close matches.

    Sub-apps such as ``breakwatch settings`` use it too, so a typo in a
    nested command is suggested against that group's commands only.
    """

    def resolve_command(self, ctx, args):
        try:
            return super().resolve_command(ctx, args)
        except Exception as e:
            if not args:
                raise
            attempted = args[0]
            suggestions = suggest_commands(attempted, sorted(self.commands))
            if not suggestions:
                raise

            console = get_console()
            console.print(f'[red]Error:[/red] unknown command "{attempted}" for "{ctx.info_name}"')
            console.print()
            if len(suggestions) == 1:
                console.print("[yellow]Did you mean this?[/yellow]")
            else:
                console.print("[yellow]Did you mean one of these?[/yellow]")
            for suggestion in suggestions:
                console.print(f"        {ctx.info_name} {suggestion}")
            raise typer.Exit(1) from e
