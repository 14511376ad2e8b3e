"""Main entry point for breakwatch."""

import typer

from breakwatch import __version__
from breakwatch.commands import (
    break_command,
    config_command,
    diagnostics_command,
    focus_command,
    notify_command,
    settings_command,
    stats_command,
    timer_command,
    watch_command,
)
from breakwatch.utils.typer_helpers import SuggestingGroup
from breakwatch.utils.ui.console import get_console

app = typer.Typer(
    name="breakwatch",
    cls=SuggestingGroup,
    help="Track continuous work time and get reminded to take breaks",
    no_args_is_help=True,
)

console = get_console(highlight=False)


# Add subcommands
app.add_typer(break_command.app, name="break", help="Take, end and cancel breaks")
app.add_typer(focus_command.app, name="focus", help="Report focus changes")
app.add_typer(notify_command.app, name="notify", help="Respond to break notifications")
app.add_typer(settings_command.app, name="settings", help="Break reminder settings")
app.add_typer(config_command.app, name="config", help="Configuration management")
app.add_typer(
    diagnostics_command.app, name="diagnostics", help="Inspect error handling and fallbacks"
)

# Add top-level commands
app.command("status")(timer_command.status)
app.command("start")(timer_command.start)
app.command("pause")(timer_command.pause)
app.command("resume")(timer_command.resume)
app.command("reset")(timer_command.reset)
app.command("activity")(timer_command.activity)
app.command("reset-all")(timer_command.reset_all)
app.command("watch")(watch_command.watch)
app.command("stats")(stats_command.stats)


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"breakwatch {__version__}")


def main():
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
