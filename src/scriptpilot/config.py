"""Configuration management for ScriptPilot."""

from __future__ import annotations

import os
from pathlib import Path

import yaml

DEFAULT_DEBOUNCE_SECONDS = 1.0


class ConfigError(Exception):
    """Error loading or accessing configuration."""


def get_scriptpilot_dir() -> Path:
    """Get the ScriptPilot home directory."""
    return Path.home() / ".scriptpilot"


def get_scriptpilot_config() -> dict[str, object]:
    """Load ScriptPilot configuration file.

    Returns:
        Configuration dictionary, empty if file doesn't exist.
    """
    config_path = get_scriptpilot_dir() / "config.yaml"
    if not config_path.exists():
        return {}

    try:
        with open(config_path) as f:
            config = yaml.safe_load(f)
            return config if isinstance(config, dict) else {}
    except (yaml.YAMLError, OSError):
        return {}


def expand_path(path: str | Path) -> Path:
    """Expand ~ and environment variables in path."""
    return Path(os.path.expandvars(os.path.expanduser(str(path))))


def get_triggers_path() -> Path:
    """Get the trigger file path.

    Checks in order of priority:
    1. SCRIPTPILOT_TRIGGERS environment variable
    2. ``triggers_file`` in ~/.scriptpilot/config.yaml
    3. ~/.scriptpilot/triggers.yaml
    """
    if path := os.environ.get("SCRIPTPILOT_TRIGGERS"):
        return expand_path(path)

    configured = get_scriptpilot_config().get("triggers_file")
    if configured:
        return expand_path(str(configured))

    return get_scriptpilot_dir() / "triggers.yaml"


def get_debounce_seconds() -> float:
    """Get the filesystem debounce window in seconds.

    Raises:
        ConfigError: If the configured value is not a non-negative number.
    """
    raw = os.environ.get("SCRIPTPILOT_DEBOUNCE_SECONDS")
    if raw is None:
        raw = get_scriptpilot_config().get("debounce_seconds")
    if raw is None:
        return DEFAULT_DEBOUNCE_SECONDS

    try:
        value = float(raw)  # type: ignore[arg-type]
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid debounce_seconds: {raw!r}") from e

    if value < 0:
        raise ConfigError(f"debounce_seconds must be >= 0, got {value}")
    return value


def get_interpreters() -> dict[str, list[str]]:
    """Get interpreter overrides keyed by script extension.

    Example config.yaml::

        interpreters:
          .rb: [ruby]
          .ps1: [pwsh, -NoProfile, -File]

    Raises:
        ConfigError: If the mapping is malformed.
    """
    configured = get_scriptpilot_config().get("interpreters") or {}
    if not isinstance(configured, dict):
        raise ConfigError("interpreters must be a mapping of extension to command")

    interpreters: dict[str, list[str]] = {}
    for ext, command in configured.items():
        if isinstance(command, str):
            command = command.split()
        if not isinstance(command, list) or not command:
            raise ConfigError(f"Invalid interpreter command for {ext!r}: {command!r}")
        key = str(ext).lower()
        interpreters[key if key.startswith(".") else f".{key}"] = [str(c) for c in command]
    return interpreters
