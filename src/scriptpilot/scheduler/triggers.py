"""Cron expression parsing on top of APScheduler's cron trigger."""

from __future__ import annotations

from datetime import datetime, timedelta

from apscheduler.triggers.cron import CronTrigger as APCronTrigger


def parse_cron_expression(expression: str, timezone: str = "local") -> APCronTrigger:
    """Parse a cron expression into an APScheduler schedule.

    Args:
        expression: Cron expression with 6 fields
            (second minute hour day month day_of_week) or 5 fields
            (minute hour day month day_of_week, firing at second 0).
        timezone: Timezone name, or "local" for the system timezone.

    Returns:
        APScheduler CronTrigger instance.

    Raises:
        ValueError: If the expression or timezone is invalid.
    """
    parts = expression.split()
    tz = timezone if timezone != "local" else None

    if len(parts) == 5:
        minute, hour, day, month, day_of_week = parts
        second = "0"
    elif len(parts) == 6:
        second, minute, hour, day, month, day_of_week = parts
    else:
        msg = f"Invalid cron expression: {expression}. Expected 5 or 6 fields."
        raise ValueError(msg)

    try:
        return APCronTrigger(
            second=second,
            minute=minute,
            hour=hour,
            day=day,
            month=month,
            day_of_week=day_of_week,
            timezone=tz,
        )
    except (ValueError, LookupError) as e:
        msg = f"Invalid cron expression: {expression}. {e}"
        raise ValueError(msg) from e


def now_in(schedule: APCronTrigger) -> datetime:
    """Current wall-clock time in the schedule's timezone."""
    return datetime.now(schedule.timezone)


def next_occurrence(schedule: APCronTrigger, now: datetime) -> datetime | None:
    """Get the first occurrence strictly after ``now``.

    APScheduler returns ``now`` itself when it lands exactly on a matching
    second, so the search starts one microsecond later.

    Args:
        schedule: Parsed cron schedule.
        now: Reference time. Naive datetimes are taken in the schedule's timezone.

    Returns:
        The next fire time, or None if the schedule never fires again.
    """
    if now.tzinfo is None:
        localize = getattr(schedule.timezone, "localize", None)
        now = localize(now) if localize else now.replace(tzinfo=schedule.timezone)
    return schedule.get_next_fire_time(None, now + timedelta(microseconds=1))
