"""Tests for the trigger engine."""

import time
from collections.abc import Callable, Generator
from datetime import UTC, datetime
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from scriptpilot.engine.errors import ErrorCategory
from scriptpilot.models.triggers import CronTrigger, FileWatchTrigger
from scriptpilot.scheduler.manager import TriggerEngine


def wait_until(predicate: Callable[[], bool], timeout: float = 3.0) -> bool:
    """Poll until predicate is true or the timeout expires."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.02)
    return predicate()


@pytest.fixture
def engine(launcher: MagicMock) -> Generator[TriggerEngine, None, None]:
    """Create a started engine and stop it afterwards."""
    engine = TriggerEngine(launcher, debounce_seconds=1.0)
    engine.start()
    yield engine
    engine.stop()


def cron(expression: str = "0 0 0 1 1 *", script: str = "a.ps1") -> dict[str, str]:
    return {"kind": "cron", "script_path": script, "cron_expression": expression}


def file_watch(path: Path | str, script: str = "b.ps1") -> dict[str, str]:
    return {"kind": "file-watch", "script_path": script, "watched_path": str(path)}


class TestTriggerEngineLifecycle:
    """Tests for starting and stopping the engine."""

    def test_init(self, launcher: MagicMock) -> None:
        """Test engine initialization."""
        engine = TriggerEngine(launcher)
        assert engine.is_running is False
        assert engine.get_active() == []

    def test_start_stop(self, launcher: MagicMock) -> None:
        """Test starting and stopping the engine."""
        engine = TriggerEngine(launcher)

        engine.start()
        assert engine.is_running is True

        engine.stop()
        assert engine.is_running is False

    def test_start_idempotent(self, engine: TriggerEngine) -> None:
        """Test that start is idempotent."""
        engine.start()  # Should not raise
        assert engine.is_running is True

    def test_stop_idempotent(self, launcher: MagicMock) -> None:
        """Test that stop is idempotent."""
        engine = TriggerEngine(launcher)
        engine.stop()  # Should not raise
        assert engine.is_running is False

    def test_restart_after_stop(self, launcher: MagicMock, tmp_path: Path) -> None:
        """Test that the engine can be started again after stopping."""
        engine = TriggerEngine(launcher)
        engine.start()
        engine.stop()

        engine.start()
        try:
            result = engine.reload([file_watch(tmp_path)])
            assert result.ok
        finally:
            engine.stop()

    def test_stop_disarms(self, engine: TriggerEngine, tmp_path: Path) -> None:
        """Test that stopping disarms every trigger."""
        engine.reload([cron(), file_watch(tmp_path)])

        engine.stop()

        assert engine.get_active() == []
        assert engine._cron.is_running is False


class TestTriggerEngineReload:
    """Tests for TriggerEngine.reload."""

    def test_arms_each_kind(self, engine: TriggerEngine, tmp_path: Path) -> None:
        """Test that cron and file-watch triggers are both armed."""
        result = engine.reload([cron(), file_watch(tmp_path)])

        assert result.ok
        assert result.armed == ["trigger-1", "trigger-2"]

        active = engine.get_active()
        assert [t["kind"] for t in active] == ["cron", "file-watch"]
        assert active[0]["next_run"] is not None
        assert active[1]["watched_path"] == str(tmp_path.resolve())

    def test_accepts_models(self, engine: TriggerEngine, tmp_path: Path) -> None:
        """Test that validated trigger models are accepted directly."""
        result = engine.reload(
            [
                CronTrigger(kind="cron", script_path="a.ps1", cron_expression="0 0 0 1 1 *"),
                FileWatchTrigger(kind="file-watch", script_path="b.ps1", watched_path=str(tmp_path)),
            ]
        )

        assert result.armed == ["trigger-1", "trigger-2"]

    def test_unknown_kind_skips_only_that_entry(
        self, engine: TriggerEngine, tmp_path: Path
    ) -> None:
        """Test that an unknown kind does not block its siblings."""
        result = engine.reload(
            [
                cron(),
                {"kind": "webhook", "script_path": "c.ps1"},
                file_watch(tmp_path),
            ]
        )

        assert result.armed == ["trigger-1", "trigger-3"]
        assert len(result.errors) == 1
        assert result.errors[0].trigger_id == "trigger-2"
        assert result.errors[0].category == ErrorCategory.CONFIGURATION

    def test_missing_directory(self, engine: TriggerEngine) -> None:
        """Test that a nonexistent watched directory is a configuration error."""
        result = engine.reload([file_watch("/does/not/exist")])

        assert result.armed == []
        assert "Watched directory not found" in result.errors[0].message
        assert engine.is_running is True

    def test_invalid_cron(self, engine: TriggerEngine) -> None:
        """Test that an unparsable cron expression is a configuration error."""
        result = engine.reload([cron("not a cron expression at all")])

        assert result.armed == []
        assert "Invalid trigger" in result.errors[0].message

    def test_reload_replaces_previous_set(self, engine: TriggerEngine, tmp_path: Path) -> None:
        """Test that reloading twice leaves one handler per trigger."""
        triggers = [cron(), file_watch(tmp_path)]

        engine.reload(triggers)
        engine.reload(triggers)

        assert len(engine.get_active()) == 2
        assert len(engine._cron._scheduler.get_jobs()) == 1
        assert len(engine._observer.emitters) == 1

    def test_non_mapping_entry_skipped(self, engine: TriggerEngine) -> None:
        """Test that an entry that is not a mapping does not block its siblings."""
        result = engine.reload([None, cron()])  # type: ignore[list-item]

        assert result.armed == ["trigger-2"]
        assert result.errors[0].trigger_id == "trigger-1"
        assert "expected a mapping" in result.errors[0].message

    def test_capitalized_kind_tags(self, engine: TriggerEngine, tmp_path: Path) -> None:
        """Test descriptors written with Cron/FileWatch tags and camelCase keys."""
        result = engine.reload(
            [
                {"scriptPath": "a.ps1", "kind": "Cron", "cronExpression": "*/5 * * * * *"},
                {"scriptPath": "b.ps1", "kind": "FileWatch", "watchedPath": str(tmp_path)},
            ]
        )

        assert result.ok
        assert [t["kind"] for t in engine.get_active()] == ["cron", "file-watch"]

    def test_reload_with_empty_list(self, engine: TriggerEngine, tmp_path: Path) -> None:
        """Test that an empty list disarms everything."""
        engine.reload([cron(), file_watch(tmp_path)])

        result = engine.reload([])

        assert result.armed == []
        assert engine.get_active() == []

    def test_shared_directory(self, engine: TriggerEngine, tmp_path: Path) -> None:
        """Test that two triggers may watch the same directory."""
        result = engine.reload([file_watch(tmp_path, "b.ps1"), file_watch(tmp_path, "c.ps1")])
        assert result.ok

        result = engine.reload([file_watch(tmp_path)])
        assert result.armed == ["trigger-1"]


class TestTriggerEngineFiring:
    """End-to-end firing through real timers and watchers."""

    def test_cron_fires(self, engine: TriggerEngine, launcher: MagicMock) -> None:
        """Test that a per-second cron trigger launches its script."""
        engine.reload([cron("* * * * * *")])

        assert wait_until(lambda: launcher.launch.called, timeout=3.0)
        launcher.launch.assert_called_with("a.ps1", [])

    def test_file_change_fires(
        self, engine: TriggerEngine, launcher: MagicMock, tmp_path: Path
    ) -> None:
        """Test that creating a file launches the script with event details."""
        engine.reload([file_watch(tmp_path)])
        time.sleep(0.2)

        target = tmp_path / "x.txt"
        target.write_text("hello")

        assert wait_until(lambda: launcher.launch.called, timeout=5.0)
        script_path, args = launcher.launch.call_args.args
        assert script_path == "b.ps1"
        assert args[0] in ("Created", "Changed")
        assert args[1] == "x.txt"
        assert args[2] == str(tmp_path.resolve() / "x.txt")

    def test_cron_reloaded_twice_fires_once_per_second(
        self, engine: TriggerEngine, launcher: MagicMock
    ) -> None:
        """Test that reloading the same cron list twice launches each occurrence once."""
        seconds: list[datetime] = []
        launcher.launch.side_effect = lambda *_: seconds.append(
            datetime.now(UTC).replace(microsecond=0)
        )
        triggers = [cron("* * * * * *")]

        engine.reload(triggers)
        engine.reload(triggers)

        assert wait_until(lambda: len(seconds) >= 3, timeout=5.0)
        engine.reload([])
        assert len(seconds) == len(set(seconds))

    def test_file_watch_reloaded_twice_fires_once(
        self, engine: TriggerEngine, launcher: MagicMock, tmp_path: Path
    ) -> None:
        """Test that reloading the same watch list twice launches once per change."""
        triggers = [file_watch(tmp_path)]
        engine.reload(triggers)
        engine.reload(triggers)
        time.sleep(0.2)

        (tmp_path / "x.txt").write_text("hello")

        assert wait_until(lambda: launcher.launch.called, timeout=5.0)
        time.sleep(0.5)
        assert launcher.launch.call_count == 1

    def test_no_events_after_reload_away(
        self, engine: TriggerEngine, launcher: MagicMock, tmp_path: Path
    ) -> None:
        """Test that a removed watch stops launching."""
        engine.reload([file_watch(tmp_path)])
        engine.reload([])
        time.sleep(0.2)

        (tmp_path / "x.txt").write_text("hello")
        time.sleep(0.5)

        launcher.launch.assert_not_called()
