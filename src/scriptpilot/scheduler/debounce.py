"""Per-path launch debouncing for filesystem triggers."""

from __future__ import annotations

import threading
import time
from typing import TYPE_CHECKING

from scriptpilot.config import DEFAULT_DEBOUNCE_SECONDS

if TYPE_CHECKING:
    from collections.abc import Callable


class DebounceGuard:
    """Remember when a script was last launched for each path.

    Watchdog delivers events from several emitter threads, so every lookup
    and update happens under one lock. Entries are never evicted; the map is
    bounded by the distinct paths seen during the process lifetime.
    """

    def __init__(
        self,
        window_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.window_seconds = window_seconds
        self._clock = clock
        self._last_launch: dict[str, float] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._last_launch)

    def _suppressed(self, path: str, now: float) -> bool:
        last = self._last_launch.get(path)
        return last is not None and now < last + self.window_seconds

    def should_suppress(self, path: str) -> bool:
        """Check whether a launch for ``path`` happened within the window."""
        with self._lock:
            return self._suppressed(path, self._clock())

    def record_launch(self, path: str) -> None:
        """Record a launch for ``path`` at the current time."""
        with self._lock:
            self._last_launch[path] = self._clock()

    def claim(self, path: str) -> bool:
        """Atomically check the window and record a launch.

        Returns:
            True if the caller should launch; the launch time is already
            recorded. False if the event falls inside the window, in which
            case nothing is recorded.
        """
        with self._lock:
            now = self._clock()
            if self._suppressed(path, now):
                return False
            self._last_launch[path] = now
            return True
