"""Trigger engine: arms cron jobs and file watches from a trigger list."""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError
from watchdog.observers import Observer

from scriptpilot.config import DEFAULT_DEBOUNCE_SECONDS, expand_path
from scriptpilot.engine.errors import TriggerConfigError
from scriptpilot.engine.parser import format_validation_error
from scriptpilot.models.triggers import (
    CronTrigger,
    FileWatchTrigger,
    TriggerAdapter,
    TriggerKind,
)

from .debounce import DebounceGuard
from .file_watcher import ScriptEventHandler
from .service import CronService

if TYPE_CHECKING:
    from collections.abc import Sequence

    from scriptpilot.engine.launcher import Launcher

logger = logging.getLogger(__name__)


@dataclass
class ReloadResult:
    """Outcome of a reload: which triggers were armed and which failed."""

    armed: list[str] = field(default_factory=list)
    errors: list[TriggerConfigError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        """True if every trigger was armed."""
        return not self.errors


class TriggerEngine:
    """Own the active trigger set and route each trigger to its handler.

    A reload is a teardown-then-rebuild: every cron job is removed and every
    watch unscheduled before the new list is armed, all under one lock, so
    handlers from an old list never overlap with handlers from a new one.
    """

    def __init__(
        self,
        launcher: Launcher,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
    ) -> None:
        """Initialize the engine.

        Args:
            launcher: Script launcher shared by every trigger.
            debounce_seconds: Debounce window for file-watch triggers.
        """
        self._launcher = launcher
        self._debounce_seconds = debounce_seconds
        self._observer = Observer()
        self._cron = CronService(launcher)
        self._handlers: dict[str, ScriptEventHandler] = {}
        self._lock = threading.Lock()
        self._running = False

    @property
    def is_running(self) -> bool:
        """Check if the engine is running."""
        return self._running

    def start(self) -> None:
        """Start the cron scheduler and filesystem event delivery."""
        with self._lock:
            if self._running:
                return

            self._cron.start()
            self._observer.start()
            self._running = True
            logger.info("Trigger engine started")

    def stop(self) -> None:
        """Disarm every trigger and stop the scheduler and observer."""
        with self._lock:
            self._disarm_all()
            if not self._running:
                return

            self._observer.stop()
            self._observer.join(timeout=5.0)
            # Observer threads cannot be restarted
            self._observer = Observer()
            self._cron.shutdown()
            self._running = False
            logger.info("Trigger engine stopped")

    def reload(
        self,
        triggers: Sequence[CronTrigger | FileWatchTrigger | Mapping[str, Any]],
    ) -> ReloadResult:
        """Replace the active trigger set.

        Args:
            triggers: Trigger models or raw descriptors. Raw descriptors are
                validated one at a time.

        Returns:
            ReloadResult listing armed trigger ids and per-trigger errors.
        """
        result = ReloadResult()

        with self._lock:
            self._disarm_all()

            for index, entry in enumerate(triggers):
                trigger_id = f"trigger-{index + 1}"
                try:
                    self._arm(trigger_id, self._validate(trigger_id, entry))
                except TriggerConfigError as e:
                    logger.error(f"Skipping {trigger_id}: {e.message}")
                    result.errors.append(e)
                else:
                    result.armed.append(trigger_id)

        logger.info(
            f"Reloaded triggers: {len(result.armed)} armed, {len(result.errors)} failed"
        )
        return result

    def get_active(self) -> list[dict[str, Any]]:
        """Describe every armed trigger.

        Returns:
            List of trigger information dictionaries.
        """
        with self._lock:
            active: list[dict[str, Any]] = [
                {"kind": TriggerKind.CRON.value, **job} for job in self._cron.get_jobs()
            ]
            active.extend(
                {
                    "id": trigger_id,
                    "kind": TriggerKind.FILE_WATCH.value,
                    "script_path": handler.trigger.script_path,
                    "watched_path": str(handler.root),
                }
                for trigger_id, handler in self._handlers.items()
            )
        return sorted(active, key=lambda t: int(t["id"].rsplit("-", 1)[1]))

    def _validate(
        self,
        trigger_id: str,
        entry: CronTrigger | FileWatchTrigger | Mapping[str, Any],
    ) -> CronTrigger | FileWatchTrigger:
        if isinstance(entry, (CronTrigger, FileWatchTrigger)):
            return entry

        if not isinstance(entry, Mapping):
            msg = f"Invalid trigger: expected a mapping, got {type(entry).__name__}"
            raise TriggerConfigError(msg, trigger_id=trigger_id, context={"descriptor": entry})

        try:
            return TriggerAdapter.validate_python(dict(entry))
        except ValidationError as e:
            raise TriggerConfigError(
                f"Invalid trigger: {format_validation_error(e)}",
                trigger_id=trigger_id,
                context={"descriptor": dict(entry)},
            ) from e

    def _arm(self, trigger_id: str, trigger: CronTrigger | FileWatchTrigger) -> None:
        match trigger.kind:
            case TriggerKind.CRON:
                self._arm_cron(trigger_id, trigger)  # type: ignore[arg-type]
            case TriggerKind.FILE_WATCH:
                self._arm_file_watch(trigger_id, trigger)  # type: ignore[arg-type]
            case _:
                msg = f"Trigger type {trigger.kind} is not implemented"
                raise TriggerConfigError(msg, trigger_id=trigger_id)

    def _arm_cron(self, trigger_id: str, trigger: CronTrigger) -> None:
        self._cron.schedule(trigger_id, trigger)

    def _arm_file_watch(self, trigger_id: str, trigger: FileWatchTrigger) -> None:
        root = expand_path(trigger.watched_path).resolve()
        if not root.is_dir():
            msg = f"Watched directory not found: {root}"
            raise TriggerConfigError(msg, trigger_id=trigger_id)

        handler = ScriptEventHandler(
            trigger_id,
            trigger,
            root,
            self._launcher,
            DebounceGuard(self._debounce_seconds),
        )
        try:
            self._observer.schedule(handler, str(root), recursive=True)
        except OSError as e:
            msg = f"Cannot watch {root}: {e}"
            raise TriggerConfigError(msg, trigger_id=trigger_id) from e

        self._handlers[trigger_id] = handler
        logger.info(f"Armed file-watch trigger '{trigger_id}' on {root}")

    def _disarm_all(self) -> None:
        cron_count = self._cron.remove_all()
        if self._handlers:
            self._observer.unschedule_all()
        if cron_count or self._handlers:
            logger.info(
                f"Disarmed {cron_count} cron and {len(self._handlers)} file-watch triggers"
            )
        self._handlers.clear()
