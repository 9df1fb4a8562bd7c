"""Trigger models for ScriptPilot."""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import Annotated, Any, Literal

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    TypeAdapter,
    field_validator,
    model_validator,
)


class TriggerKind(str, Enum):
    """Known trigger kinds."""

    CRON = "cron"
    FILE_WATCH = "file-watch"


# Other spellings accepted for the kind tag, compared without case or separators
KIND_ALIASES = {
    "cron": TriggerKind.CRON.value,
    "cronexpression": TriggerKind.CRON.value,
    "filewatch": TriggerKind.FILE_WATCH.value,
    "filewatcher": TriggerKind.FILE_WATCH.value,
}

FIELD_ALIASES = {
    "Kind": "kind",
    "Type": "kind",
    "scriptPath": "script_path",
    "ScriptPath": "script_path",
    "ScriptFileName": "script_path",
    "cronExpression": "cron_expression",
    "CronExpression": "cron_expression",
    "watchedPath": "watched_path",
    "WatchedPath": "watched_path",
}


def normalize_descriptor(data: Any) -> Any:
    """Rewrite camelCase or PascalCase keys and kind spellings to the canonical form.

    Descriptors written as ``{scriptPath, kind: "Cron", cronExpression}`` or
    ``{ScriptFileName, Type: "FileWatcher", WatchedPath}`` validate the same
    as ``{script_path, kind: "cron", cron_expression}``. Anything that is not
    a mapping is returned unchanged.
    """
    if not isinstance(data, Mapping):
        return data

    normalized = {FIELD_ALIASES.get(key, key): value for key, value in data.items()}
    kind = normalized.get("kind")
    if isinstance(kind, str):
        key = kind.replace("-", "").replace("_", "").lower()
        normalized["kind"] = KIND_ALIASES.get(key, kind)
    return normalized


class BaseTrigger(BaseModel):
    """Fields shared by every trigger kind."""

    model_config = ConfigDict(frozen=True)

    script_path: str = Field(..., description="Script to launch when the trigger fires")

    @model_validator(mode="before")
    @classmethod
    def normalize_keys(cls, data: Any) -> Any:
        """Accept alternate key and kind spellings."""
        return normalize_descriptor(data)

    @field_validator("script_path")
    @classmethod
    def validate_script_path(cls, v: str) -> str:
        """Reject blank script paths."""
        if not v.strip():
            msg = "script_path must not be empty"
            raise ValueError(msg)
        return v


class CronTrigger(BaseTrigger):
    """Launch a script on a cron schedule."""

    kind: Literal["cron"]
    cron_expression: str = Field(..., description="Cron expression (6 fields, or 5 without seconds)")
    timezone: str = Field(default="local", description="Timezone for schedule")

    @field_validator("cron_expression")
    @classmethod
    def validate_field_count(cls, v: str) -> str:
        """Validate cron expression field count."""
        parts = v.split()
        if len(parts) not in (5, 6):
            msg = f"Cron expression must have 5 or 6 fields, got {len(parts)}"
            raise ValueError(msg)
        return v

    @model_validator(mode="after")
    def validate_schedule(self) -> CronTrigger:
        """Make sure the expression builds a schedule before anything is armed."""
        # Import here to avoid circular imports
        from scriptpilot.scheduler.triggers import parse_cron_expression

        parse_cron_expression(self.cron_expression, self.timezone)
        return self


class FileWatchTrigger(BaseTrigger):
    """Launch a script when anything under a directory changes."""

    kind: Literal["file-watch"]
    watched_path: str = Field(..., description="Directory to watch recursively")


# Union type for all triggers
Trigger = Annotated[
    CronTrigger | FileWatchTrigger,
    Field(discriminator="kind"),
    BeforeValidator(normalize_descriptor),
]

TriggerAdapter: TypeAdapter[CronTrigger | FileWatchTrigger] = TypeAdapter(Trigger)
