"""Error classification for ScriptPilot triggers and launches."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Where an error came from, which decides how far it may propagate."""

    CONFIGURATION = "configuration"  # Skip the trigger, keep its siblings
    LAUNCH = "launch"  # Log, keep the handler running


@dataclass
class ScriptPilotError(Exception):
    """Base error with classification and context."""

    message: str
    category: ErrorCategory
    trigger_id: str | None = None
    context: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return f"[{self.category.value}] {self.message}"

    def __post_init__(self) -> None:
        # Call Exception.__init__ with the message
        super().__init__(self.message)


@dataclass
class TriggerConfigError(ScriptPilotError):
    """A single trigger could not be armed."""

    category: ErrorCategory = ErrorCategory.CONFIGURATION


@dataclass
class TriggerFileError(ScriptPilotError):
    """The trigger file could not be read or parsed."""

    category: ErrorCategory = ErrorCategory.CONFIGURATION


@dataclass
class LaunchError(ScriptPilotError):
    """A script could not be started."""

    category: ErrorCategory = ErrorCategory.LAUNCH
    script_path: str = ""


@dataclass
class ScriptNotFoundError(LaunchError):
    """The script file does not exist."""


@dataclass
class UnsupportedScriptError(LaunchError):
    """No interpreter is configured for the script's extension."""
