"""Validate command for ScriptPilot CLI."""

from pathlib import Path

import typer

from scriptpilot.cli import app, console
from scriptpilot.cli.utils import check_descriptor, load_descriptors, resolve_triggers_path
from scriptpilot.config import ConfigError, get_interpreters
from scriptpilot.engine.launcher import ScriptLauncher


@app.command()
def validate(
    triggers: Path | None = typer.Option(
        None,
        "--triggers",
        "-t",
        help="Trigger file (defaults to ~/.scriptpilot/triggers.yaml)",
    ),
) -> None:
    """Validate a trigger file.

    Checks that every trigger:
    - Has a known kind and the fields that kind needs
    - Has a cron expression that parses (cron triggers)
    - Watches an existing directory (file-watch triggers)

    Scripts that are missing or have no interpreter are reported as warnings.
    """
    path = resolve_triggers_path(triggers)
    descriptors = load_descriptors(path)

    try:
        launcher = ScriptLauncher(get_interpreters())
    except ConfigError as e:
        console.print(f"[red]Error:[/] {e}")
        raise typer.Exit(1) from e

    if not descriptors:
        console.print(f"[yellow]No triggers defined in[/] {path}")
        return

    checks = [check_descriptor(i, d, launcher) for i, d in enumerate(descriptors)]

    for check in checks:
        label = f"trigger-{check.index + 1}"
        kind = check.descriptor.get("kind", "?")
        script = check.descriptor.get("script_path", "?")
        if check.valid:
            console.print(f"[green]✓[/] {label} [dim]({kind})[/] {script}")
        else:
            console.print(f"[red]✗[/] {label} [dim]({kind})[/] {script}")
        for error in check.errors:
            console.print(f"  [red]•[/] {error}")
        for warning in check.warnings:
            console.print(f"  [yellow]![/] {warning}")

    invalid = sum(1 for c in checks if not c.valid)
    console.print()
    if invalid:
        console.print(f"[red]{invalid} of {len(checks)} triggers are invalid[/]")
        raise typer.Exit(1)

    console.print(f"[green]All {len(checks)} triggers are valid[/]")
