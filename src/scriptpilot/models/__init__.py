"""ScriptPilot data models."""

from .triggers import (
    BaseTrigger,
    CronTrigger,
    FileWatchTrigger,
    Trigger,
    TriggerAdapter,
    TriggerKind,
    normalize_descriptor,
)

__all__ = [
    "BaseTrigger",
    "CronTrigger",
    "FileWatchTrigger",
    "Trigger",
    "TriggerAdapter",
    "TriggerKind",
    "normalize_descriptor",
]
