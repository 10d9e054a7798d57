"""Notification service for sending job match alerts by SMS.

Coordinates one notification per match: resolve the match with its worker
and job, normalise the worker's phone number, render the SMS, send it through
the gateway and mark the match as sent. Failures are reported as
NotificationResult objects and never raised to the caller. There is no
automatic retry; unsent matches stay pending for a later reconciliation run.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Iterable, List, Optional

from yaya.logging import get_logger, mask_phone
from yaya.logging.context import get_log_context, log_context
from yaya.persistence.exceptions import PersistenceError
from yaya.persistence.store import DirectoryStore
from yaya.utils.phone import normalize_phone
from yaya.utils.timestamps import utc_now

from .gateway import MessageGateway
from .models import BulkNotificationSummary, NotificationResult, NotificationTemplateError
from .templates import SmsTemplateRenderer

logger = get_logger(__name__, component="notification")


class NotificationService:
    """Sends job match SMS notifications.

    The service opens no transactions of its own; every store call is a
    separate unit of work, so it is safe to use from worker threads.
    """

    def __init__(
        self,
        directory: DirectoryStore,
        gateway: MessageGateway,
        template_renderer: Optional[SmsTemplateRenderer] = None,
        default_country_code: Optional[str] = None,
        max_concurrency: int = 5,
        logger_instance: Optional[logging.Logger] = None,
    ):
        """Initialize notification service.

        Args:
            directory: Store used to resolve matches and record sends
            gateway: Outbound SMS gateway
            template_renderer: Template renderer instance (creates default if None)
            default_country_code: Dialling code applied to local "0..." numbers
            max_concurrency: Maximum parallel sends in send_bulk()
            logger_instance: Logger instance (uses module logger if None)
        """
        self.directory = directory
        self.gateway = gateway
        self.template_renderer = template_renderer or SmsTemplateRenderer()
        self.default_country_code = default_country_code
        self.max_concurrency = max(1, max_concurrency)
        self.logger = logger_instance or logger

    def send_job_match(self, match_id: int) -> NotificationResult:
        """Notify the worker of one match.

        Returns:
            NotificationResult with status "sent", "failed" or "not_found"
        """
        with log_context(match_id=match_id):
            try:
                details = self.directory.get_match_details(match_id)
            except PersistenceError as e:
                error_msg = f"Failed to load match {match_id}: {e}"
                self.logger.error(error_msg, extra={"event": "notification.lookup_failed"})
                return NotificationResult(match_id=match_id, status="failed", error=error_msg)

            if details is None:
                error_msg = f"Match with ID {match_id} not found or missing related data"
                self.logger.warning(error_msg, extra={"event": "notification.not_found"})
                return NotificationResult(match_id=match_id, status="not_found", error=error_msg)

            worker, job = details.worker, details.job

            try:
                phone_number = normalize_phone(worker.phone, self.default_country_code)
            except ValueError as e:
                error_msg = f"Invalid phone number for worker {worker.id}: {e}"
                self.logger.error(error_msg, extra={"event": "notification.invalid_phone"})
                return NotificationResult(match_id=match_id, status="failed", error=error_msg)

            try:
                message = self.template_renderer.render_job_match(job)
            except NotificationTemplateError as e:
                error_msg = f"Template rendering failed: {e}"
                self.logger.error(error_msg, extra={"event": "notification.template_error"})
                return NotificationResult(match_id=match_id, status="failed", error=error_msg)

            gateway_result = self.gateway.send(phone_number, message)

            if not gateway_result.success:
                self.logger.error(
                    f"SMS delivery failed for match {match_id}: {gateway_result.error}",
                    extra={
                        "event": "notification.send.failure",
                        "job_id": job.id,
                        "worker_id": worker.id,
                        "to": mask_phone(phone_number),
                    },
                )
                return NotificationResult(
                    match_id=match_id,
                    status="failed",
                    error=gateway_result.error,
                    provider_result=gateway_result.provider_result,
                )

            self.logger.info(
                f"Notification sent for match {match_id} (job {job.id}, worker {worker.id})",
                extra={
                    "event": "notification.send.success",
                    "job_id": job.id,
                    "worker_id": worker.id,
                    "to": mask_phone(phone_number),
                },
            )

            # Outcome stays "sent" even if marking fails
            marked = True
            try:
                self.directory.mark_match_notified(match_id, utc_now())
            except Exception as e:
                marked = False
                self.logger.error(
                    f"Failed to mark match {match_id} as notified: {e}",
                    extra={"event": "notification.mark_failed"},
                    exc_info=True,
                )

            return NotificationResult(
                match_id=match_id,
                status="sent",
                provider_result=gateway_result.provider_result,
                marked_sent=marked,
            )

    def send_bulk(self, match_ids: Iterable[int]) -> List[NotificationResult]:
        """Notify every match concurrently and wait for all sends to finish.

        Results are returned in the order of ``match_ids``. An exception in
        one send becomes a "failed" result and does not affect the others.
        """
        match_ids = list(match_ids)
        if not match_ids:
            return []

        # Thread pool workers do not inherit contextvars
        context = get_log_context()

        def run(match_id: int) -> NotificationResult:
            with log_context(**context):
                return self.send_job_match(match_id)

        workers = min(self.max_concurrency, len(match_ids))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="sms") as executor:
            futures = [executor.submit(run, match_id) for match_id in match_ids]
            wait(futures)

        results = []
        for match_id, future in zip(match_ids, futures):
            error = future.exception()
            if error is None:
                results.append(future.result())
                continue
            self.logger.error(
                f"Unexpected error notifying match {match_id}: {error}",
                extra={"event": "notification.unexpected_error", "match_id": match_id},
                exc_info=(type(error), error, error.__traceback__),
            )
            results.append(NotificationResult(match_id=match_id, status="failed", error=str(error)))

        summary = BulkNotificationSummary(results=results)
        self.logger.info(
            f"Notification batch complete: {summary.sent} sent, {summary.failed} failed, "
            f"{summary.not_found} not found",
            extra={
                "event": "notification.batch.completed",
                "total": len(results),
                "sent": summary.sent,
                "failed": summary.failed,
                "not_found": summary.not_found,
            },
        )
        return results
