"""Data models for job posting and reconciliation runs."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from yaya.domain.models import Job
from yaya.notifications.models import NotificationResult


@dataclass
class JobPostingResult:
    """
    Outcome of posting one job.

    The job is created once this object exists; matching and notification
    problems are recorded here and never undo the posting.

    Attributes:
        job: The created job
        matched_workers: Number of Match records created
        notification_results: One result per match, in match order
        started_at: UTC timestamp when posting began
        finished_at: UTC timestamp when the notification batch finished
        error_message: Optional error from the matching step
    """

    job: Job
    matched_workers: int = 0
    notification_results: List[NotificationResult] = field(default_factory=list)
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    error_message: Optional[str] = None

    @property
    def notified_count(self) -> int:
        return sum(1 for r in self.notification_results if r.is_success())

    @property
    def failed_count(self) -> int:
        return sum(1 for r in self.notification_results if not r.is_success())

    @property
    def had_errors(self) -> bool:
        return bool(self.error_message) or self.failed_count > 0

    @property
    def duration_seconds(self) -> float:
        if self.started_at is None or self.finished_at is None:
            return 0.0
        return (self.finished_at - self.started_at).total_seconds()


@dataclass
class ReconcileResult:
    """
    Outcome of re-sending pending notifications.

    Attributes:
        run_started_at: UTC timestamp when the run began
        run_finished_at: UTC timestamp when the run completed
        notification_results: One result per pending match attempted
        skipped: Whether the run was skipped because another was in progress
        error_message: Optional error if pending matches could not be listed
    """

    run_started_at: datetime
    run_finished_at: datetime
    notification_results: List[NotificationResult] = field(default_factory=list)
    skipped: bool = False
    error_message: Optional[str] = None

    @property
    def attempted(self) -> int:
        return len(self.notification_results)

    @property
    def sent(self) -> int:
        return sum(1 for r in self.notification_results if r.is_success())

    @property
    def failed(self) -> int:
        return self.attempted - self.sent

    @property
    def had_errors(self) -> bool:
        return bool(self.error_message) or self.failed > 0

    @property
    def duration_seconds(self) -> float:
        return (self.run_finished_at - self.run_started_at).total_seconds()
