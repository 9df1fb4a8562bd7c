"""File system watching for ScriptPilot triggers and the trigger file."""

from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from watchdog.events import FileSystemEvent, FileSystemEventHandler, FileSystemMovedEvent
from watchdog.observers import Observer

from scriptpilot.engine.errors import LaunchError

if TYPE_CHECKING:
    from collections.abc import Callable

    from scriptpilot.engine.launcher import Launcher
    from scriptpilot.models.triggers import FileWatchTrigger

    from .debounce import DebounceGuard

logger = logging.getLogger(__name__)

# Watchdog event types mapped to the labels scripts receive
CHANGE_TYPES = {
    "modified": "Changed",
    "created": "Created",
    "deleted": "Deleted",
    "moved": "Renamed",
}


@dataclass(frozen=True)
class FileEvent:
    """A filesystem change as handed to a script."""

    change_type: str
    name: str
    full_path: str

    def to_args(self) -> list[str]:
        """Positional script arguments: change type, name, full path."""
        return [self.change_type, self.name, self.full_path]


def _event_path(event: FileSystemEvent) -> str:
    """Get the path an event refers to (the destination for moves)."""
    if isinstance(event, FileSystemMovedEvent):
        return os.fsdecode(event.dest_path)
    return os.fsdecode(event.src_path)


class ScriptEventHandler(FileSystemEventHandler):
    """Launch a trigger's script for changes under its watched directory.

    Bursts of events on the same path collapse into one launch per debounce
    window; the first event of a burst launches immediately.
    """

    def __init__(
        self,
        trigger_id: str,
        trigger: FileWatchTrigger,
        root: Path,
        launcher: Launcher,
        guard: DebounceGuard,
    ) -> None:
        super().__init__()
        self.trigger_id = trigger_id
        self.trigger = trigger
        self.root = root
        self._launcher = launcher
        self._guard = guard

    def to_file_event(self, event: FileSystemEvent) -> FileEvent | None:
        """Convert a watchdog event, or return None if it should be ignored."""
        change_type = CHANGE_TYPES.get(event.event_type)
        if change_type is None:
            return None

        full_path = _event_path(event)
        if os.path.normpath(full_path) == os.path.normpath(str(self.root)):
            if event.event_type == "deleted":
                logger.warning(
                    f"Watched directory {self.root} was removed; "
                    f"trigger '{self.trigger_id}' will not fire until it is reloaded"
                )
            return None

        try:
            name = os.path.relpath(full_path, self.root)
        except ValueError:
            # Different drive on Windows
            name = os.path.basename(full_path)

        return FileEvent(change_type=change_type, name=name, full_path=full_path)

    def on_any_event(self, event: FileSystemEvent) -> None:
        """Handle any file system event."""
        file_event = self.to_file_event(event)
        if file_event is None:
            return

        logger.debug(f"File {file_event.name} {file_event.change_type}")

        if not self._guard.claim(file_event.full_path):
            logger.debug(f"Suppressed {file_event.change_type} for {file_event.full_path}")
            return

        logger.info(
            f"File-watch trigger '{self.trigger_id}' firing "
            f"(event={file_event.change_type}, path={file_event.full_path})"
        )
        try:
            self._launcher.launch(self.trigger.script_path, file_event.to_args())
        except LaunchError as e:
            logger.error(f"File-watch trigger '{self.trigger_id}' launch failed: {e}")
        except Exception as e:
            logger.exception(f"Unexpected error launching file-watch trigger '{self.trigger_id}': {e}")


class DebouncedHandler(FileSystemEventHandler):
    """Handler that waits for a file to settle before calling back.

    Every matching event restarts a timer; the callback runs once the file
    has been quiet for ``debounce_seconds``. Editors tend to write a file in
    several steps, so this avoids acting on a half-written file.
    """

    def __init__(
        self,
        callback: Callable[[], None],
        filename: str,
        debounce_seconds: float = 0.5,
    ) -> None:
        """Initialize the debounced handler.

        Args:
            callback: Function to call when the file settles.
            filename: Name of the file to react to; other files are ignored.
            debounce_seconds: Quiet period before firing the callback.
        """
        super().__init__()
        self.callback = callback
        self.filename = filename
        self.debounce_seconds = debounce_seconds
        self._timer: threading.Timer | None = None
        self._lock = threading.Lock()

    def _should_handle(self, event: FileSystemEvent) -> bool:
        if event.is_directory:
            return False
        if event.event_type not in ("created", "modified", "moved"):
            return False
        return Path(_event_path(event)).name == self.filename

    def _debounced_callback(self) -> None:
        with self._lock:
            self._timer = None

        logger.debug(f"Debounce complete for {self.filename}, calling callback")
        try:
            self.callback()
        except Exception as e:
            logger.exception(f"Callback for {self.filename} failed: {e}")

    def on_any_event(self, event: FileSystemEvent) -> None:
        """Handle any file system event."""
        if not self._should_handle(event):
            return

        with self._lock:
            if self._timer is not None:
                self._timer.cancel()

            self._timer = threading.Timer(self.debounce_seconds, self._debounced_callback)
            self._timer.daemon = True
            self._timer.start()

    def cancel_all(self) -> None:
        """Cancel the pending callback, if any."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None


class TriggerFileWatcher:
    """Call back whenever the trigger file is written."""

    def __init__(
        self,
        path: Path,
        on_change: Callable[[], None],
        debounce_seconds: float = 0.5,
    ) -> None:
        self.path = path
        self._observer = Observer()
        self._handler = DebouncedHandler(
            callback=on_change,
            filename=path.name,
            debounce_seconds=debounce_seconds,
        )
        self._running = False

    @property
    def is_running(self) -> bool:
        """Check if the watcher is running."""
        return self._running

    def start(self) -> None:
        """Start watching the trigger file's directory."""
        if self._running:
            return

        self._observer.schedule(self._handler, str(self.path.parent), recursive=False)
        self._observer.start()
        self._running = True
        logger.info(f"Watching trigger file {self.path}")

    def stop(self) -> None:
        """Stop watching."""
        if not self._running:
            return

        self._handler.cancel_all()
        self._observer.stop()
        self._observer.join(timeout=5.0)
        self._running = False
        logger.info("Trigger file watcher stopped")
