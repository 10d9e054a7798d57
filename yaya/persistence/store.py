"""Storage ports used by the dialog, matching and notification layers.

The core only depends on the abstract DirectoryStore and SessionStore
interfaces. SqlAlchemyStore implements both on top of the repositories; each
call runs in its own short transaction so request threads and dispatcher
threads never share a SQLAlchemy session.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from yaya.domain.models import (
    DialogSessionRecord,
    Job,
    JobCreate,
    Location,
    Match,
    MatchDetails,
    Skill,
    Worker,
    WorkerCreate,
)

from .database import get_session
from .repositories import (
    DialogSessionRepository,
    JobRepository,
    MatchRepository,
    WorkerRepository,
)


class DirectoryStore(ABC):
    """Workers, jobs and matches."""

    @abstractmethod
    def get_worker_by_phone(self, phone: str) -> Optional[Worker]:
        ...

    @abstractmethod
    def create_worker(self, worker: WorkerCreate) -> Worker:
        """Create a worker; raises DataIntegrityError if the phone exists."""

    @abstractmethod
    def update_worker_skill(self, worker_id: int, skill: Skill) -> Worker:
        """Raises RecordNotFoundError for an unknown worker."""

    @abstractmethod
    def update_worker_location(self, worker_id: int, location: Location) -> Worker:
        """Raises RecordNotFoundError for an unknown worker."""

    @abstractmethod
    def count_available_workers(self, skill: Skill, location: Location) -> int:
        ...

    @abstractmethod
    def find_available_workers(
        self, skill: Skill, location: Location, limit: int
    ) -> List[Worker]:
        """First ``limit`` qualifying workers in the store's natural order."""

    @abstractmethod
    def create_job(self, job: JobCreate) -> Job:
        ...

    @abstractmethod
    def get_job(self, job_id: int) -> Optional[Job]:
        ...

    @abstractmethod
    def find_active_jobs(self, skill: Skill, location: Location) -> List[Job]:
        """Active jobs for the skill and location, oldest first."""

    @abstractmethod
    def create_match(self, job_id: int, worker_id: int) -> Match:
        ...

    @abstractmethod
    def get_match_details(self, match_id: int) -> Optional[MatchDetails]:
        """None when the match, its worker or its job is missing."""

    @abstractmethod
    def list_matches_for_job(self, job_id: int) -> List[Match]:
        ...

    @abstractmethod
    def list_pending_matches(self, limit: Optional[int] = None) -> List[Match]:
        ...

    @abstractmethod
    def mark_match_notified(self, match_id: int, sent_at: datetime) -> Match:
        ...


class SessionStore(ABC):
    """Dialog session records keyed by the caller-supplied session id."""

    @abstractmethod
    def load_dialog_session(self, session_id: str) -> Optional[DialogSessionRecord]:
        ...

    @abstractmethod
    def save_dialog_session(self, record: DialogSessionRecord) -> DialogSessionRecord:
        """Create the record or overwrite its step, data and input position."""


class SqlAlchemyStore(DirectoryStore, SessionStore):
    """Both storage ports backed by the module-level database session factory.

    init_database() must have been called first.
    """

    def get_worker_by_phone(self, phone: str) -> Optional[Worker]:
        with get_session() as session:
            return WorkerRepository(session).get_by_phone(phone)

    def create_worker(self, worker: WorkerCreate) -> Worker:
        with get_session() as session:
            return WorkerRepository(session).create(worker)

    def update_worker_skill(self, worker_id: int, skill: Skill) -> Worker:
        with get_session() as session:
            return WorkerRepository(session).update_profile(worker_id, skill=skill)

    def update_worker_location(self, worker_id: int, location: Location) -> Worker:
        with get_session() as session:
            return WorkerRepository(session).update_profile(worker_id, location=location)

    def count_available_workers(self, skill: Skill, location: Location) -> int:
        with get_session() as session:
            return WorkerRepository(session).count_available(skill, location)

    def find_available_workers(
        self, skill: Skill, location: Location, limit: int
    ) -> List[Worker]:
        with get_session() as session:
            return WorkerRepository(session).find_available(skill, location, limit)

    def create_job(self, job: JobCreate) -> Job:
        with get_session() as session:
            return JobRepository(session).create(job)

    def get_job(self, job_id: int) -> Optional[Job]:
        with get_session() as session:
            return JobRepository(session).get(job_id)

    def find_active_jobs(self, skill: Skill, location: Location) -> List[Job]:
        with get_session() as session:
            return JobRepository(session).find_active(skill, location)

    def create_match(self, job_id: int, worker_id: int) -> Match:
        with get_session() as session:
            return MatchRepository(session).create(job_id, worker_id)

    def get_match_details(self, match_id: int) -> Optional[MatchDetails]:
        with get_session() as session:
            return MatchRepository(session).get_details(match_id)

    def list_matches_for_job(self, job_id: int) -> List[Match]:
        with get_session() as session:
            return MatchRepository(session).list_by_job(job_id)

    def list_pending_matches(self, limit: Optional[int] = None) -> List[Match]:
        with get_session() as session:
            return MatchRepository(session).list_pending(limit)

    def mark_match_notified(self, match_id: int, sent_at: datetime) -> Match:
        with get_session() as session:
            return MatchRepository(session).mark_notified(match_id, sent_at)

    def load_dialog_session(self, session_id: str) -> Optional[DialogSessionRecord]:
        with get_session() as session:
            return DialogSessionRepository(session).get(session_id)

    def save_dialog_session(self, record: DialogSessionRecord) -> DialogSessionRecord:
        with get_session() as session:
            return DialogSessionRepository(session).save(record)
