"""
quoteflow.scheduler
===================

Daily trigger for the sweeps.

:class:`SweepTrigger` registers one APScheduler cron job and guarantees that
sweeps never overlap: APScheduler itself is told ``max_instances=1`` with
``coalesce=True``, and every firing (scheduled or manual, e.g. from the API)
goes through :pymeth:`SweepTrigger.fire`, which takes a non-blocking lock and
skips the firing when a sweep is still running.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Optional

from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_MISSED
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.cron import CronTrigger

from .settings import settings

logger = logging.getLogger(__name__)

JOB_ID = "daily_quote_sweep"


class SweepInProgress(RuntimeError):
    """Raised by :pymeth:`SweepTrigger.fire` when ``raise_if_busy`` is set."""


class SweepTrigger:
    """
    Serialising wrapper around a sweep job.

    Args:
        job: Callable running one sweep (called with no arguments when
            scheduled); its return value is kept as :pyattr:`last_result`
        hour, minute: Daily firing time (defaults to settings)
        timezone: IANA zone name for the cron trigger
        blocking: Use ``BlockingScheduler`` (daemon) instead of a background one
    """

    def __init__(
        self,
        job: Callable[[], Any],
        hour: Optional[int] = None,
        minute: Optional[int] = None,
        timezone: Optional[str] = None,
        blocking: bool = False,
    ):
        self.job = job
        self.hour = settings.sweep_hour if hour is None else hour
        self.minute = settings.sweep_minute if minute is None else minute
        self.timezone = timezone or settings.sweep_timezone
        self._lock = threading.Lock()
        self.last_result: Any = None
        self.last_error: Optional[BaseException] = None

        scheduler_cls = BlockingScheduler if blocking else BackgroundScheduler
        self.scheduler = scheduler_cls(timezone=self.timezone)
        self.scheduler.add_listener(self._job_error_listener, EVENT_JOB_ERROR)
        self.scheduler.add_listener(self._job_missed_listener, EVENT_JOB_MISSED)

    # ------------------------------------------------------------------
    # Firing
    # ------------------------------------------------------------------
    @property
    def running(self) -> bool:
        return self._lock.locked()

    def fire(self, *args, raise_if_busy: bool = False, **kwargs) -> Any:
        """
        Run the job once unless another run holds the lock.

        Positional and keyword arguments are passed through to the job.

        Returns the job result, or ``None`` when the firing was skipped.
        Exceptions from the job are recorded and re-raised.
        """
        if not self._lock.acquire(blocking=False):
            logger.warning("Sweep still running; skipping this firing")
            if raise_if_busy:
                raise SweepInProgress("a sweep is already running")
            return None
        try:
            self.last_result = self.job(*args, **kwargs)
            self.last_error = None
            return self.last_result
        except Exception as e:
            self.last_error = e
            raise
        finally:
            self._lock.release()

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------
    def start(self) -> None:
        """Register the daily cron job and start the scheduler."""
        self.scheduler.add_job(
            self.fire,
            trigger=CronTrigger(hour=self.hour, minute=self.minute, timezone=self.timezone),
            id=JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            misfire_grace_time=3600,
        )
        logger.info(f"Daily sweep scheduled at {self.hour:02d}:{self.minute:02d} {self.timezone}")
        self.scheduler.start()

    def shutdown(self, wait: bool = True) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=wait)

    def next_run_time(self):
        job = self.scheduler.get_job(JOB_ID)
        return getattr(job, "next_run_time", None) if job else None

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------
    def _job_error_listener(self, event) -> None:
        logger.error(f"Job {event.job_id} failed at {event.scheduled_run_time}: {event.exception}")

    def _job_missed_listener(self, event) -> None:
        logger.warning(f"Job {event.job_id} missed at {event.scheduled_run_time}")
