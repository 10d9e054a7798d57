"""Job posting and notification reconciliation."""

from .models import JobPostingResult, ReconcileResult
from .runner import JobPostingPipeline

__all__ = ["JobPostingPipeline", "JobPostingResult", "ReconcileResult"]
