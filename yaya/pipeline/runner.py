"""Job posting pipeline: create the job, match workers, notify them.

Posting waits for the whole notification batch before returning, but the
outcome of any send never changes the posting result. Matches whose SMS did
not go out stay pending and are picked up by reconcile_pending().
"""

import threading
from typing import List
from uuid import uuid4

from yaya.domain.models import JobCreate
from yaya.logging import get_logger
from yaya.logging.context import log_context
from yaya.matching.engine import WorkerMatcher
from yaya.notifications.models import NotificationResult
from yaya.notifications.service import NotificationService
from yaya.persistence.exceptions import PersistenceError
from yaya.persistence.store import DirectoryStore
from yaya.utils.timestamps import utc_now

from .models import JobPostingResult, ReconcileResult

logger = get_logger(__name__, component="pipeline")


class JobPostingPipeline:
    """
    Orchestrates job creation, matching and match notification.
    """

    def __init__(
        self,
        directory: DirectoryStore,
        matcher: WorkerMatcher,
        notification_service: NotificationService,
    ):
        """
        Initialize the pipeline.

        Args:
            directory: Store for jobs, workers and matches
            matcher: Engine selecting workers for a job
            notification_service: Service sending match SMS
        """
        self.directory = directory
        self.matcher = matcher
        self.notification_service = notification_service
        self._reconcile_lock = threading.Lock()

    def post_job(self, job_create: JobCreate) -> JobPostingResult:
        """
        Create a job, match workers to it and notify each matched worker.

        Returns:
            JobPostingResult with the job and matched-worker count

        Raises:
            PersistenceError: If the job itself cannot be created
        """
        started_at = utc_now()
        job = self.directory.create_job(job_create)

        with log_context(job_id=job.id):
            logger.info(
                "Job posted",
                extra={
                    "event": "pipeline.job.created",
                    "skill": job.skill_required.value,
                    "location": job.location.value,
                    "daily_rate": job.daily_rate,
                },
            )

            result = JobPostingResult(job=job, started_at=started_at)

            try:
                match_run = self.matcher.match(job)
            except PersistenceError as e:
                result.error_message = f"Worker matching failed: {e}"
                result.finished_at = utc_now()
                logger.error(
                    result.error_message,
                    extra={"event": "pipeline.matching.failed"},
                    exc_info=True,
                )
                return result

            result.matched_workers = match_run.matched_count
            if match_run.had_errors:
                result.error_message = match_run.error

            result.notification_results = self._notify(match_run.match_ids)
            result.finished_at = utc_now()

            logger.info(
                f"Job {job.id} posted: {result.matched_workers} matched, "
                f"{result.notified_count} notified, {result.failed_count} failed",
                extra={
                    "event": "pipeline.job.completed",
                    "matched_workers": result.matched_workers,
                    "notified": result.notified_count,
                    "failed": result.failed_count,
                    "duration_seconds": round(result.duration_seconds, 3),
                },
            )
            return result

    def reconcile_pending(self, batch_size: int = 100) -> ReconcileResult:
        """
        Re-send notifications for matches still marked as unsent.

        Only one reconciliation runs at a time; an overlapping call is
        skipped.
        """
        run_started_at = utc_now()
        run_id = uuid4().hex

        if not self._reconcile_lock.acquire(blocking=False):
            with log_context(run_id=run_id):
                logger.warning(
                    "Reconciliation skipped: previous run still in progress",
                    extra={"event": "pipeline.reconcile.skipped", "reason": "lock_held"},
                )
            return ReconcileResult(
                run_started_at=run_started_at,
                run_finished_at=utc_now(),
                skipped=True,
            )

        try:
            with log_context(run_id=run_id):
                try:
                    pending = self.directory.list_pending_matches(batch_size)
                except PersistenceError as e:
                    logger.error(
                        f"Failed to list pending matches: {e}",
                        extra={"event": "pipeline.reconcile.failed"},
                        exc_info=True,
                    )
                    return ReconcileResult(
                        run_started_at=run_started_at,
                        run_finished_at=utc_now(),
                        error_message=str(e),
                    )

                logger.info(
                    f"Reconciling {len(pending)} pending notification(s)",
                    extra={"event": "pipeline.reconcile.started", "pending": len(pending)},
                )

                results = self._notify([match.id for match in pending])
                result = ReconcileResult(
                    run_started_at=run_started_at,
                    run_finished_at=utc_now(),
                    notification_results=results,
                )

                logger.info(
                    f"Reconciliation complete: {result.sent} sent, {result.failed} failed",
                    extra={
                        "event": "pipeline.reconcile.completed",
                        "attempted": result.attempted,
                        "sent": result.sent,
                        "failed": result.failed,
                        "duration_seconds": round(result.duration_seconds, 3),
                    },
                )
                return result
        finally:
            self._reconcile_lock.release()

    def _notify(self, match_ids: List[int]) -> List[NotificationResult]:
        if not match_ids:
            return []
        return self.notification_service.send_bulk(match_ids)
