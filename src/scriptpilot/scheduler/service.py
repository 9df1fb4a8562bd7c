"""APScheduler service that runs cron triggers for ScriptPilot."""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Any

from apscheduler.schedulers.background import BackgroundScheduler

from scriptpilot.engine.errors import LaunchError, TriggerConfigError

from .triggers import next_occurrence, now_in, parse_cron_expression

if TYPE_CHECKING:
    from datetime import datetime

    from scriptpilot.engine.launcher import Launcher
    from scriptpilot.models.triggers import CronTrigger

logger = logging.getLogger(__name__)

# Occurrences later than this are dropped, not caught up
MISFIRE_GRACE_SECONDS = 1


class CronService:
    """BackgroundScheduler-based runner for cron triggers.

    Each armed trigger is one job in the in-memory job store, keyed by its
    trigger id. APScheduler computes every next fire time strictly after the
    previous one, so a job never fires twice for the same occurrence.
    """

    def __init__(
        self,
        launcher: Launcher,
        misfire_grace_time: int = MISFIRE_GRACE_SECONDS,
    ) -> None:
        """Initialize the cron service.

        Args:
            launcher: Script launcher called on every occurrence.
            misfire_grace_time: Seconds a late occurrence may still fire.
        """
        self._launcher = launcher
        self._job_defaults = {
            "coalesce": True,  # Combine missed runs into one
            "max_instances": 1,  # Only one instance at a time
            "misfire_grace_time": misfire_grace_time,
        }
        self._scheduler = BackgroundScheduler(job_defaults=self._job_defaults)
        self._armed: dict[str, tuple[CronTrigger, object]] = {}
        self._lock = threading.Lock()
        self._running = False

    @property
    def is_running(self) -> bool:
        """Check if scheduler is running."""
        return self._running

    def start(self) -> None:
        """Start the scheduler."""
        if self._running:
            return

        self._scheduler.start()
        self._running = True
        logger.info("Cron scheduler started")

    def shutdown(self, wait: bool = True) -> None:
        """Stop the scheduler and drop every job.

        Args:
            wait: Whether to wait for running launches to complete.
        """
        self.remove_all()
        if not self._running:
            return

        self._scheduler.shutdown(wait=wait)
        # Executors are closed on shutdown; a fresh scheduler can start again
        self._scheduler = BackgroundScheduler(job_defaults=self._job_defaults)
        self._running = False
        logger.info("Cron scheduler stopped")

    def schedule(self, trigger_id: str, trigger: CronTrigger) -> datetime:
        """Arm a cron trigger.

        Args:
            trigger_id: Job id, also used in logs.
            trigger: Cron trigger configuration.

        Returns:
            The first fire time.

        Raises:
            TriggerConfigError: If the expression cannot be parsed or never fires.
        """
        try:
            schedule = parse_cron_expression(trigger.cron_expression, trigger.timezone)
        except ValueError as e:
            raise TriggerConfigError(str(e), trigger_id=trigger_id) from e

        first_run = next_occurrence(schedule, now_in(schedule))
        if first_run is None:
            msg = f"Cron expression never fires: {trigger.cron_expression}"
            raise TriggerConfigError(msg, trigger_id=trigger_id)

        token = object()
        with self._lock:
            self._armed[trigger_id] = (trigger, token)

        self._scheduler.add_job(
            self._launch,
            trigger=schedule,
            id=trigger_id,
            name=trigger.script_path,
            args=[trigger_id, token],
            next_run_time=first_run,
            replace_existing=True,
        )

        logger.info(
            f"Armed cron trigger '{trigger_id}' ({trigger.cron_expression}), "
            f"next run at {first_run.isoformat()}"
        )
        return first_run

    def remove_all(self) -> int:
        """Disarm every cron trigger.

        No occurrence launches after this returns, including one the
        scheduler has already handed to its executor.

        Returns:
            Number of triggers removed.
        """
        with self._lock:
            count = len(self._armed)
            self._armed.clear()
        self._scheduler.remove_all_jobs()
        return count

    def next_run_time(self, trigger_id: str) -> datetime | None:
        """Get the next fire time of an armed trigger."""
        job = self._scheduler.get_job(trigger_id)
        if job is None:
            return None
        return job.next_run_time

    def get_jobs(self) -> list[dict[str, Any]]:
        """Describe every armed cron trigger.

        Returns:
            List of job information dictionaries.
        """
        with self._lock:
            armed = {trigger_id: trigger for trigger_id, (trigger, _) in self._armed.items()}

        return [
            {
                "id": trigger_id,
                "script_path": trigger.script_path,
                "cron_expression": trigger.cron_expression,
                "next_run": self.next_run_time(trigger_id),
            }
            for trigger_id, trigger in armed.items()
        ]

    def _launch(self, trigger_id: str, token: object) -> None:
        # Held across the launch so remove_all waits for an in-flight one
        with self._lock:
            armed = self._armed.get(trigger_id)
            if armed is None or armed[1] is not token:
                logger.debug(f"Skipping stale occurrence of cron trigger '{trigger_id}'")
                return

            trigger = armed[0]
            logger.info(f"Cron trigger '{trigger_id}' firing: {trigger.script_path}")
            try:
                self._launcher.launch(trigger.script_path, [])
            except LaunchError as e:
                logger.error(f"Cron trigger '{trigger_id}' launch failed: {e}")
            except Exception as e:
                logger.exception(f"Unexpected error launching cron trigger '{trigger_id}': {e}")
