"""Trigger file parser for ScriptPilot."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .errors import TriggerFileError

EMPTY_TRIGGER_FILE = "triggers: []\n"
TRIGGER_LIST_KEYS = ("triggers", "Triggers")


def format_validation_error(error: ValidationError) -> str:
    """Convert a Pydantic error into one readable line per problem."""
    messages = []
    for err in error.errors():
        loc = " -> ".join(str(part) for part in err["loc"])
        messages.append(f"{loc}: {err['msg']}" if loc else err["msg"])
    return "; ".join(messages)


class TriggerFileParser:
    """Parser for trigger files.

    Entries are returned as raw mappings. Each one is validated separately by
    the engine so a bad entry never takes its siblings down with it.
    """

    def parse_file(self, path: Path | str) -> list[dict[str, Any]]:
        """Parse trigger descriptors from a YAML or JSON file.

        Args:
            path: Path to the trigger file.

        Returns:
            List of trigger descriptors.

        Raises:
            TriggerFileError: If the file cannot be read or parsed.
        """
        path = Path(path)
        try:
            content = path.read_text()
        except OSError as e:
            raise TriggerFileError(f"Cannot read trigger file {path}: {e}") from e

        if path.suffix.lower() == ".json":
            try:
                data = json.loads(content) if content.strip() else None
            except json.JSONDecodeError as e:
                raise TriggerFileError(f"Invalid JSON in {path}: {e}") from e
            return self.parse_data(data, source=str(path))

        return self.parse_string(content, source=str(path))

    def parse_string(self, content: str, source: str = "<string>") -> list[dict[str, Any]]:
        """Parse trigger descriptors from YAML content.

        Raises:
            TriggerFileError: If the content cannot be parsed.
        """
        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise TriggerFileError(f"Invalid YAML syntax in {source}: {e}") from e

        return self.parse_data(data, source=source)

    def parse_data(self, data: Any, source: str = "<data>") -> list[dict[str, Any]]:
        """Extract the trigger list from loaded data.

        Accepts ``{"triggers": [...]}`` (or ``Triggers``) or a bare list. An
        empty document, or a ``triggers`` key with no value, is an empty
        trigger list.

        Raises:
            TriggerFileError: If the data has the wrong shape.
        """
        if data is None:
            return []

        if isinstance(data, dict):
            key = next((k for k in TRIGGER_LIST_KEYS if k in data), None)
            if key is None:
                found = ", ".join(str(k) for k in data) or "none"
                raise TriggerFileError(
                    f"Missing 'triggers' key in {source} (found keys: {found})"
                )
            data = data[key] if data[key] is not None else []

        if not isinstance(data, list):
            raise TriggerFileError(f"Expected a list of triggers in {source}")

        entries: list[dict[str, Any]] = []
        for index, entry in enumerate(data):
            if not isinstance(entry, dict):
                raise TriggerFileError(
                    f"Trigger {index} in {source} must be a mapping, got {type(entry).__name__}"
                )
            entries.append(entry)
        return entries


def ensure_trigger_file(path: Path) -> bool:
    """Create an empty trigger file if it does not exist yet.

    Returns:
        True if the file was created.
    """
    if path.exists():
        return False

    path.parent.mkdir(parents=True, exist_ok=True)
    if path.suffix.lower() == ".json":
        path.write_text(json.dumps({"triggers": []}) + "\n")
    else:
        path.write_text(EMPTY_TRIGGER_FILE)
    return True

