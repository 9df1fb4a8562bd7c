"""ScriptPilot script execution and trigger file loading."""

from .errors import (
    ErrorCategory,
    LaunchError,
    ScriptNotFoundError,
    ScriptPilotError,
    TriggerConfigError,
    TriggerFileError,
    UnsupportedScriptError,
)
from .launcher import DEFAULT_INTERPRETERS, Launcher, ScriptLauncher
from .parser import TriggerFileParser, ensure_trigger_file, format_validation_error

__all__ = [
    "DEFAULT_INTERPRETERS",
    "ErrorCategory",
    "LaunchError",
    "Launcher",
    "ScriptLauncher",
    "ScriptNotFoundError",
    "ScriptPilotError",
    "TriggerConfigError",
    "TriggerFileError",
    "TriggerFileParser",
    "UnsupportedScriptError",
    "ensure_trigger_file",
    "format_validation_error",
]
