"""CLI commands for ScriptPilot."""

# Import command modules to register them with the app
# These imports have side effects (register commands via @app.command())
from scriptpilot.cli.commands import list_cmd, run, validate

__all__ = ["list_cmd", "run", "validate"]
