"""Scheduler service for periodic notification reconciliation."""

import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from yaya.logging import get_logger

logger = get_logger(__name__, component="scheduler")

RECONCILE_JOB_ID = "notification-reconcile"


class SchedulerService:
    """
    Wraps APScheduler to run a callable at a fixed interval.

    Uses BackgroundScheduler so the HTTP server keeps the main thread.
    """

    def __init__(
        self,
        job_callable: Callable[[], object],
        interval_seconds: int,
        shutdown_event: Optional[threading.Event] = None,
        run_immediately: bool = False,
    ):
        """
        Initialize the scheduler service.

        Args:
            job_callable: Function to call on each run (e.g. pipeline.reconcile_pending)
            interval_seconds: Interval between runs in seconds
            shutdown_event: Optional event to set on shutdown for coordination
            run_immediately: Run once at start instead of waiting one interval
        """
        self.job_callable = job_callable
        self.interval_seconds = interval_seconds
        self.shutdown_event = shutdown_event
        self.run_immediately = run_immediately

        self.scheduler = BackgroundScheduler(
            job_defaults={
                "max_instances": 1,
                "coalesce": True,
                "misfire_grace_time": interval_seconds,
            },
            timezone=timezone.utc,
        )

    def start(self) -> None:
        """Register the job and start the scheduler thread."""
        trigger = IntervalTrigger(seconds=self.interval_seconds, timezone=timezone.utc)

        now = datetime.now(timezone.utc)
        next_run = now if self.run_immediately else now + timedelta(seconds=self.interval_seconds)
        self.scheduler.add_job(
            func=self._run,
            trigger=trigger,
            id=RECONCILE_JOB_ID,
            name="Notification reconciliation",
            replace_existing=True,
            next_run_time=next_run,
        )

        self.scheduler.start()

        logger.info(
            f"Scheduler started with interval: {self.interval_seconds} seconds",
            extra={
                "event": "scheduler.started",
                "interval_seconds": self.interval_seconds,
                "next_run_time": next_run.isoformat(),
            },
        )

    def _run(self) -> None:
        try:
            self.job_callable()
        except Exception as e:
            logger.error(
                f"Scheduled run failed: {e}",
                extra={"event": "scheduler.run.failed", "error_type": type(e).__name__},
                exc_info=True,
            )

    def shutdown(self, wait: bool = False) -> None:
        """
        Shutdown the scheduler gracefully.

        Args:
            wait: If True, wait for running jobs to complete before returning
        """
        logger.info(
            "Shutting down scheduler",
            extra={"event": "scheduler.stopping", "wait_for_jobs": wait},
        )

        if self.scheduler.running:
            self.scheduler.shutdown(wait=wait)

        if self.shutdown_event:
            self.shutdown_event.set()

        logger.info("Scheduler shutdown complete", extra={"event": "scheduler.stopped"})

    def trigger_now(self) -> None:
        """Run the job synchronously in the current thread."""
        logger.info("Triggering immediate run", extra={"event": "scheduler.trigger_now"})
        self.job_callable()

    def is_running(self) -> bool:
        return self.scheduler.running

    def get_next_run_time(self) -> Optional[datetime]:
        job = self.scheduler.get_job(RECONCILE_JOB_ID)
        return job.next_run_time if job else None
