"""Data models for the matching engine."""

from dataclasses import dataclass, field
from typing import List

from yaya.domain.models import Job, Match, Worker


@dataclass
class MatchRunResult:
    """Outcome of matching one job against the worker directory.

    Attributes:
        job: The job that was matched
        workers: Workers selected, in directory order
        matches: Match records created, one per selected worker
        error: Error message if match creation stopped early
    """

    job: Job
    workers: List[Worker] = field(default_factory=list)
    matches: List[Match] = field(default_factory=list)
    error: str = ""

    @property
    def matched_count(self) -> int:
        return len(self.matches)

    @property
    def match_ids(self) -> List[int]:
        return [match.id for match in self.matches]

    @property
    def had_errors(self) -> bool:
        return bool(self.error)
