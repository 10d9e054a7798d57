"""Matching engine pairing a posted job with available workers.

A worker qualifies when their skill and location both equal the job's and
they are marked available. At most ``limit`` workers are selected, in the
directory's natural order, and one Match (notification not yet sent) is
created per selected worker.
"""

import logging
from typing import Optional

from yaya.domain.models import Job, Location, Skill
from yaya.logging import get_logger
from yaya.persistence.exceptions import PersistenceError
from yaya.persistence.store import DirectoryStore

from .models import MatchRunResult

logger = get_logger(__name__, component="matching")

DEFAULT_MATCH_LIMIT = 3


class WorkerMatcher:
    """Selects workers for jobs and records the resulting matches."""

    def __init__(
        self,
        directory: DirectoryStore,
        limit: int = DEFAULT_MATCH_LIMIT,
        logger_instance: Optional[logging.Logger] = None,
    ):
        """Initialize WorkerMatcher.

        Args:
            directory: Store holding workers, jobs and matches
            limit: Maximum workers matched per job
            logger_instance: Optional logger instance (defaults to module logger)
        """
        if limit < 1:
            raise ValueError(f"limit must be at least 1, got {limit}")
        self.directory = directory
        self.limit = limit
        self.logger = logger_instance or logger

    def match(self, job: Job) -> MatchRunResult:
        """Select up to ``limit`` qualifying workers and create a Match for each.

        An empty result is normal. Lookup failures propagate; a failure while
        creating matches stops the run and is reported on the result together
        with the matches created so far.

        Raises:
            PersistenceError: If the worker lookup fails
        """
        workers = self.directory.find_available_workers(
            job.skill_required, job.location, self.limit
        )
        result = MatchRunResult(job=job, workers=workers)

        for worker in workers:
            try:
                result.matches.append(self.directory.create_match(job.id, worker.id))
            except PersistenceError as e:
                result.error = f"Failed to create match for worker {worker.id}: {e}"
                self.logger.error(
                    result.error,
                    extra={"event": "matching.match.failed", "job_id": job.id, "worker_id": worker.id},
                )
                break

        self.logger.info(
            f"Matched {result.matched_count} worker(s) to job {job.id}",
            extra={
                "event": "matching.completed",
                "job_id": job.id,
                "skill": job.skill_required.value,
                "location": job.location.value,
                "matched_count": result.matched_count,
                "limit": self.limit,
            },
        )
        return result

    def count_workers(self, skill: Skill, location: Location) -> int:
        """Number of available workers with exactly this skill and location."""
        return self.directory.count_available_workers(Skill(skill), Location(location))
