"""Background scheduling."""

from .service import RECONCILE_JOB_ID, SchedulerService

__all__ = ["SchedulerService", "RECONCILE_JOB_ID"]
