"""ScriptPilot CLI interface."""

import typer
from rich.console import Console

# CLI App
app = typer.Typer(
    name="scriptpilot",
    help="Launch scripts on cron schedules and filesystem changes.",
    no_args_is_help=True,
)

# Console for rich output
console = Console()

# Import commands to register them
from scriptpilot.cli.commands import list_cmd, run, validate  # noqa: E402, F401


@app.command()
def version() -> None:
    """Show ScriptPilot version."""
    from scriptpilot import __version__

    console.print(f"ScriptPilot v{__version__}")


if __name__ == "__main__":
    app()
