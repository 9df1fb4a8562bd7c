"""ScriptPilot scheduling system.

Cron triggers run by an APScheduler background scheduler, and
debounced file system watching with watchdog.
"""

from .debounce import DebounceGuard
from .file_watcher import (
    CHANGE_TYPES,
    DebouncedHandler,
    FileEvent,
    ScriptEventHandler,
    TriggerFileWatcher,
)
from .manager import ReloadResult, TriggerEngine
from .service import CronService
from .triggers import next_occurrence, now_in, parse_cron_expression

__all__ = [
    "CHANGE_TYPES",
    "CronService",
    "DebounceGuard",
    "DebouncedHandler",
    "FileEvent",
    "ReloadResult",
    "ScriptEventHandler",
    "TriggerEngine",
    "TriggerFileWatcher",
    "next_occurrence",
    "now_in",
    "parse_cron_expression",
]
