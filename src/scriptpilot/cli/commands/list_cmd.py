"""List command for ScriptPilot CLI."""

from pathlib import Path
from typing import Any

import typer
from rich.table import Table

from scriptpilot.cli import app, console
from scriptpilot.cli.utils import check_descriptor, load_descriptors, resolve_triggers_path
from scriptpilot.engine.launcher import ScriptLauncher
from scriptpilot.models.triggers import CronTrigger, FileWatchTrigger
from scriptpilot.scheduler.triggers import next_occurrence, now_in, parse_cron_expression


@app.command("list")
def list_triggers(
    triggers: Path | None = typer.Option(
        None,
        "--triggers",
        "-t",
        help="Trigger file (defaults to ~/.scriptpilot/triggers.yaml)",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output as JSON",
    ),
) -> None:
    """List triggers and when cron triggers fire next."""
    path = resolve_triggers_path(triggers)
    descriptors = load_descriptors(path)
    launcher = ScriptLauncher()

    rows: list[dict[str, Any]] = []
    for index, descriptor in enumerate(descriptors):
        check = check_descriptor(index, descriptor, launcher)
        row: dict[str, Any] = {
            "id": f"trigger-{index + 1}",
            "kind": check.descriptor.get("kind"),
            "script_path": check.descriptor.get("script_path"),
        }
        trigger = check.trigger
        if isinstance(trigger, CronTrigger):
            schedule = parse_cron_expression(trigger.cron_expression, trigger.timezone)
            next_run = next_occurrence(schedule, now_in(schedule))
            row["cron_expression"] = trigger.cron_expression
            row["next_run"] = next_run.isoformat() if next_run else None
        elif isinstance(trigger, FileWatchTrigger):
            row["watched_path"] = trigger.watched_path
        if check.errors:
            row["error"] = "; ".join(check.errors)
        rows.append(row)

    if json_output:
        console.print_json(data={"triggers": rows})
        return

    if not rows:
        console.print("[yellow]No triggers found.[/]")
        console.print(f"Add triggers to: [cyan]{path}[/]")
        return

    table = Table(title="Triggers")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Kind")
    table.add_column("Script")
    table.add_column("Schedule / Path")
    table.add_column("Next Run")

    for row in rows:
        if "error" in row:
            table.add_row(
                row["id"],
                str(row["kind"]),
                str(row["script_path"]),
                f"[red]Error: {row['error']}[/]",
                "",
            )
        elif "cron_expression" in row:
            table.add_row(
                row["id"],
                row["kind"],
                row["script_path"],
                row["cron_expression"],
                row["next_run"] or "[dim]never[/]",
            )
        else:
            table.add_row(row["id"], row["kind"], row["script_path"], row["watched_path"], "")

    console.print(table)
