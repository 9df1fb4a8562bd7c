"""Script launcher for ScriptPilot.

Starts a script in a new process and returns immediately. The launcher never
waits for the child and never reports its exit status back to the caller.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
import sys
from typing import TYPE_CHECKING, Protocol

from scriptpilot.config import expand_path

from .errors import LaunchError, ScriptNotFoundError, UnsupportedScriptError

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

logger = logging.getLogger(__name__)

POWERSHELL = "powershell"

DEFAULT_INTERPRETERS: dict[str, list[str]] = {
    ".ps1": [POWERSHELL, "-NoProfile", "-ExecutionPolicy", "Bypass", "-File"],
    ".sh": ["bash"],
    ".py": [sys.executable],
}


class Launcher(Protocol):
    """Anything that can start a script with positional arguments."""

    def launch(self, script_path: str, args: Sequence[str] = ()) -> object: ...


def _resolve_powershell() -> str:
    """Prefer PowerShell 7 when it is installed."""
    return "pwsh" if shutil.which("pwsh") else POWERSHELL


class ScriptLauncher:
    """Launch scripts fire-and-forget, choosing the interpreter by extension."""

    def __init__(self, interpreters: Mapping[str, Sequence[str]] | None = None) -> None:
        """Initialize the launcher.

        Args:
            interpreters: Extra or overriding interpreter commands keyed by
                extension (e.g. ``{".rb": ["ruby"]}``).
        """
        self._interpreters: dict[str, list[str]] = {
            **{ext: list(cmd) for ext, cmd in DEFAULT_INTERPRETERS.items()},
            **{ext.lower(): list(cmd) for ext, cmd in (interpreters or {}).items()},
        }

    @property
    def supported_extensions(self) -> list[str]:
        """Extensions that have an interpreter."""
        return sorted(self._interpreters)

    def build_command(self, script_path: str, args: Sequence[str] = ()) -> list[str]:
        """Build the argv for a script.

        Args:
            script_path: Path to the script.
            args: Positional arguments appended after the script path.

        Returns:
            Command list suitable for ``subprocess.Popen``.

        Raises:
            ScriptNotFoundError: If the script does not exist.
            UnsupportedScriptError: If no interpreter handles the extension.
        """
        path = expand_path(script_path)
        if not path.is_file():
            raise ScriptNotFoundError(f"File not found: {path}", script_path=script_path)

        interpreter = self._interpreters.get(path.suffix.lower())
        if interpreter is None:
            raise UnsupportedScriptError(
                f"Script type {path.suffix or '(none)'} is not supported: {path}",
                script_path=script_path,
                context={"supported": self.supported_extensions},
            )

        if interpreter[0] == POWERSHELL:
            interpreter = [_resolve_powershell(), *interpreter[1:]]

        return [*interpreter, str(path), *[str(a) for a in args]]

    def launch(self, script_path: str, args: Sequence[str] = ()) -> subprocess.Popen[bytes]:
        """Start a script without waiting for it.

        Args:
            script_path: Path to the script.
            args: Positional string arguments for the script.

        Returns:
            The started process.

        Raises:
            LaunchError: If the script cannot be started.
        """
        command = self.build_command(script_path, args)
        logger.debug(f"Launching: {command}")

        try:
            proc = subprocess.Popen(
                command,
                stdin=subprocess.DEVNULL,
                start_new_session=True,
            )
        except OSError as e:
            raise LaunchError(
                f"Failed to start {script_path}: {e}",
                script_path=script_path,
                context={"command": command},
            ) from e

        logger.info(f"Launched {script_path} (pid={proc.pid})")
        return proc
