"""Job-to-worker matching."""

from .engine import DEFAULT_MATCH_LIMIT, WorkerMatcher
from .models import MatchRunResult

__all__ = ["WorkerMatcher", "MatchRunResult", "DEFAULT_MATCH_LIMIT"]
