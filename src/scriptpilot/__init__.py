"""ScriptPilot: launch scripts on cron schedules and filesystem changes."""

__version__ = "0.1.0"
