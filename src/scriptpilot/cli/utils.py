"""Utility functions for ScriptPilot CLI."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import typer
from pydantic import ValidationError

from scriptpilot.cli import console
from scriptpilot.config import expand_path, get_triggers_path
from scriptpilot.engine.errors import LaunchError, TriggerFileError
from scriptpilot.engine.launcher import ScriptLauncher
from scriptpilot.engine.parser import TriggerFileParser, format_validation_error
from scriptpilot.models.triggers import (
    CronTrigger,
    FileWatchTrigger,
    TriggerAdapter,
    normalize_descriptor,
)


@dataclass
class DescriptorCheck:
    """Result of checking one trigger descriptor without arming it."""

    index: int
    descriptor: dict[str, Any]
    trigger: CronTrigger | FileWatchTrigger | None = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors


def resolve_triggers_path(path: Path | None) -> Path:
    """Use the given trigger file, or fall back to the configured one."""
    return expand_path(path) if path is not None else get_triggers_path()


def load_descriptors(path: Path) -> list[dict[str, Any]]:
    """Load trigger descriptors, exiting with an error message on failure.

    Raises:
        typer.Exit: If the file is missing or cannot be parsed.
    """
    if not path.exists():
        console.print(f"[red]Error:[/] Trigger file not found: {path}")
        raise typer.Exit(1)

    try:
        return TriggerFileParser().parse_file(path)
    except TriggerFileError as e:
        console.print(f"[red]Error:[/] {e.message}")
        raise typer.Exit(1) from e


def check_descriptor(
    index: int,
    descriptor: dict[str, Any],
    launcher: ScriptLauncher,
) -> DescriptorCheck:
    """Validate a descriptor the way the engine would, without arming it.

    Missing scripts are warnings because the script can appear before the
    trigger fires; everything that would stop the trigger from arming is an
    error.
    """
    check = DescriptorCheck(index=index, descriptor=normalize_descriptor(descriptor))

    try:
        check.trigger = TriggerAdapter.validate_python(check.descriptor)
    except ValidationError as e:
        check.errors.append(format_validation_error(e))
        return check

    if isinstance(check.trigger, FileWatchTrigger):
        root = expand_path(check.trigger.watched_path)
        if not root.is_dir():
            check.errors.append(f"Watched directory not found: {root}")

    try:
        launcher.build_command(check.trigger.script_path)
    except LaunchError as e:
        check.warnings.append(e.message)

    return check
