"""Run command for ScriptPilot CLI.

Runs the trigger daemon in the foreground until SIGINT or SIGTERM.
"""

from __future__ import annotations

import logging
import signal
import sys
import threading
from pathlib import Path
from typing import TYPE_CHECKING

import typer

from scriptpilot.cli import app, console
from scriptpilot.cli.utils import resolve_triggers_path
from scriptpilot.config import ConfigError, get_debounce_seconds, get_interpreters
from scriptpilot.engine.errors import TriggerFileError
from scriptpilot.engine.launcher import ScriptLauncher
from scriptpilot.engine.parser import TriggerFileParser, ensure_trigger_file
from scriptpilot.scheduler import TriggerEngine, TriggerFileWatcher

if TYPE_CHECKING:
    from types import FrameType

logger = logging.getLogger(__name__)


def setup_logging(log_file: Path | None = None, debug: bool = False) -> None:
    """Set up logging for the daemon.

    Args:
        log_file: Optional file to log to in addition to stderr.
        debug: Enable debug logging.
    """
    level = logging.DEBUG if debug else logging.INFO
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=handlers,
    )


def setup_signal_handlers(stop_event: threading.Event) -> None:
    """Set up signal handlers for graceful shutdown."""

    def handle_signal(signum: int, frame: FrameType | None) -> None:
        """Handle shutdown signals."""
        logger.info(f"Received signal {signum}, shutting down...")
        stop_event.set()

    signal.signal(signal.SIGTERM, handle_signal)
    signal.signal(signal.SIGINT, handle_signal)


def wait_for_shutdown(stop_event: threading.Event) -> None:
    """Block until a shutdown signal arrives."""
    while not stop_event.wait(timeout=1.0):
        pass


class TriggerDaemon:
    """Keep the engine in sync with the trigger file."""

    def __init__(self, path: Path, engine: TriggerEngine) -> None:
        self.path = path
        self.engine = engine
        self._parser = TriggerFileParser()

    def load(self) -> None:
        """Read the trigger file and reload the engine.

        Raises:
            TriggerFileError: If the trigger file cannot be parsed.
        """
        self.engine.reload(self._parser.parse_file(self.path))

    def on_trigger_file_changed(self) -> None:
        """Reload after an edit; keep the current triggers if the file is broken."""
        logger.info("Trigger file changed. Reloading triggers...")
        try:
            self.load()
        except TriggerFileError as e:
            logger.error(f"Keeping current triggers: {e.message}")


@app.command()
def run(
    triggers: Path | None = typer.Option(
        None,
        "--triggers",
        "-t",
        help="Trigger file (defaults to ~/.scriptpilot/triggers.yaml)",
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug logging",
    ),
    log_file: Path | None = typer.Option(
        None,
        "--log-file",
        help="Also write logs to this file",
    ),
) -> None:
    """Run the trigger daemon in the foreground.

    Loads the trigger file, arms every trigger, and reloads whenever the
    file changes. Stops on Ctrl+C or SIGTERM.
    """
    setup_logging(log_file, debug)
    path = resolve_triggers_path(triggers)

    if ensure_trigger_file(path):
        console.print(f"[yellow]Created empty trigger file:[/] {path}")

    try:
        launcher = ScriptLauncher(get_interpreters())
        engine = TriggerEngine(launcher, debounce_seconds=get_debounce_seconds())
    except ConfigError as e:
        console.print(f"[red]Error:[/] {e}")
        raise typer.Exit(1) from e

    daemon = TriggerDaemon(path, engine)
    engine.start()
    try:
        daemon.load()
    except TriggerFileError as e:
        engine.stop()
        console.print(f"[red]Error:[/] {e.message}")
        raise typer.Exit(1) from e

    watcher = TriggerFileWatcher(path, daemon.on_trigger_file_changed)
    watcher.start()

    stop_event = threading.Event()
    setup_signal_handlers(stop_event)
    console.print(f"[green]ScriptPilot running[/] with triggers from [cyan]{path}[/]")

    try:
        wait_for_shutdown(stop_event)
    finally:
        watcher.stop()
        engine.stop()
        console.print("[green]ScriptPilot stopped[/]")
