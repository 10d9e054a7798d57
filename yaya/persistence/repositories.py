"""Data access layer (repositories) for persistence operations.

Repositories work inside the caller's session, never commit, and return
domain models rather than ORM models.
"""

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

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
from yaya.utils.timestamps import format_timestamp, utc_now

from .exceptions import DataIntegrityError, PersistenceError, RecordNotFoundError
from .schema import DialogSessionModel, JobModel, MatchModel, WorkerModel

logger = logging.getLogger(__name__)


class WorkerRepository:
    """Repository for worker records."""

    def __init__(self, session: Session):
        self.session = session

    def get(self, worker_id: int) -> Optional[Worker]:
        """Retrieve a worker by id, or None."""
        try:
            worker_model = self.session.get(WorkerModel, worker_id)
            return worker_model.to_domain() if worker_model else None
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving worker {worker_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve worker: {e}") from e

    def get_by_phone(self, phone: str) -> Optional[Worker]:
        """Retrieve a worker by exact phone number, or None."""
        try:
            stmt = select(WorkerModel).where(WorkerModel.phone == phone)
            worker_model = self.session.execute(stmt).scalar_one_or_none()
            return worker_model.to_domain() if worker_model else None
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving worker by phone: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve worker: {e}") from e

    def create(self, worker: WorkerCreate) -> Worker:
        """Insert a new worker.

        Raises:
            DataIntegrityError: If the phone number is already registered
            PersistenceError: If another database error occurs
        """
        try:
            worker_model = WorkerModel(
                name=worker.name,
                phone=worker.phone,
                skill=Skill(worker.skill).value,
                location=Location(worker.location).value,
                is_available=worker.is_available,
                registered_at=format_timestamp(utc_now()),
            )
            self.session.add(worker_model)
            self.session.flush()
            return worker_model.to_domain()
        except IntegrityError as e:
            logger.warning(f"Integrity error creating worker: {e}")
            raise DataIntegrityError(
                f"Worker with phone {worker.phone} already exists"
            ) from e
        except SQLAlchemyError as e:
            logger.error(f"Error creating worker: {e}", exc_info=True)
            raise PersistenceError(f"Failed to create worker: {e}") from e

    def update_profile(
        self,
        worker_id: int,
        skill: Optional[Skill] = None,
        location: Optional[Location] = None,
    ) -> Worker:
        """Change a worker's skill and/or location.

        Raises:
            RecordNotFoundError: If the worker does not exist
            PersistenceError: If a database error occurs
        """
        try:
            worker_model = self.session.get(WorkerModel, worker_id)
            if worker_model is None:
                raise RecordNotFoundError(f"Worker with ID {worker_id} not found")

            if skill is not None:
                worker_model.skill = Skill(skill).value
            if location is not None:
                worker_model.location = Location(location).value

            self.session.flush()
            return worker_model.to_domain()
        except RecordNotFoundError:
            raise
        except SQLAlchemyError as e:
            logger.error(f"Error updating worker {worker_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to update worker: {e}") from e

    def _available_filter(self, skill: Skill, location: Location):
        return (
            WorkerModel.skill == Skill(skill).value,
            WorkerModel.location == Location(location).value,
            WorkerModel.is_available.is_(True),
        )

    def count_available(self, skill: Skill, location: Location) -> int:
        """Count available workers with exactly this skill and location."""
        try:
            stmt = (
                select(func.count())
                .select_from(WorkerModel)
                .where(*self._available_filter(skill, location))
            )
            return int(self.session.execute(stmt).scalar_one())
        except SQLAlchemyError as e:
            logger.error(f"Error counting workers: {e}", exc_info=True)
            raise PersistenceError(f"Failed to count workers: {e}") from e

    def find_available(self, skill: Skill, location: Location, limit: int) -> List[Worker]:
        """First ``limit`` available workers with this skill and location, in id order."""
        try:
            stmt = (
                select(WorkerModel)
                .where(*self._available_filter(skill, location))
                .order_by(WorkerModel.id)
                .limit(limit)
            )
            return [model.to_domain() for model in self.session.execute(stmt).scalars()]
        except SQLAlchemyError as e:
            logger.error(f"Error finding matching workers: {e}", exc_info=True)
            raise PersistenceError(f"Failed to find workers: {e}") from e


class JobRepository:
    """Repository for job records."""

    def __init__(self, session: Session):
        self.session = session

    def get(self, job_id: int) -> Optional[Job]:
        """Retrieve a job by id, or None."""
        try:
            job_model = self.session.get(JobModel, job_id)
            return job_model.to_domain() if job_model else None
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving job {job_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve job: {e}") from e

    def create(self, job: JobCreate) -> Job:
        """Insert a new job.

        Raises:
            PersistenceError: If a database error occurs
        """
        try:
            job_model = JobModel(
                contact_phone=job.contact_phone,
                skill_required=Skill(job.skill_required).value,
                location=Location(job.location).value,
                daily_rate=job.daily_rate,
                project_duration=job.project_duration.value,
                additional_notes=job.additional_notes,
                is_active=job.is_active,
                created_at=format_timestamp(utc_now()),
            )
            self.session.add(job_model)
            self.session.flush()
            return job_model.to_domain()
        except SQLAlchemyError as e:
            logger.error(f"Error creating job: {e}", exc_info=True)
            raise PersistenceError(f"Failed to create job: {e}") from e

    def find_active(self, skill: Skill, location: Location) -> List[Job]:
        """Active jobs for this skill and location, oldest first."""
        try:
            stmt = (
                select(JobModel)
                .where(
                    JobModel.skill_required == Skill(skill).value,
                    JobModel.location == Location(location).value,
                    JobModel.is_active.is_(True),
                )
                .order_by(JobModel.id)
            )
            return [model.to_domain() for model in self.session.execute(stmt).scalars()]
        except SQLAlchemyError as e:
            logger.error(f"Error finding active jobs: {e}", exc_info=True)
            raise PersistenceError(f"Failed to find jobs: {e}") from e


class MatchRepository:
    """Repository for job/worker matches."""

    def __init__(self, session: Session):
        self.session = session

    def create(self, job_id: int, worker_id: int) -> Match:
        """Insert a match with notification_sent=False.

        Raises:
            DataIntegrityError: If the job or worker does not exist
            PersistenceError: If another database error occurs
        """
        try:
            match_model = MatchModel(
                job_id=job_id,
                worker_id=worker_id,
                notification_sent=False,
                notification_time=None,
                worker_responded=False,
            )
            self.session.add(match_model)
            self.session.flush()
            return match_model.to_domain()
        except IntegrityError as e:
            logger.error(f"Integrity error creating match: {e}", exc_info=True)
            raise DataIntegrityError(
                f"Match references missing job {job_id} or worker {worker_id}"
            ) from e
        except SQLAlchemyError as e:
            logger.error(f"Error creating match: {e}", exc_info=True)
            raise PersistenceError(f"Failed to create match: {e}") from e

    def get_details(self, match_id: int) -> Optional[MatchDetails]:
        """Resolve a match with its worker and job; None if any link is missing."""
        try:
            match_model = self.session.get(MatchModel, match_id)
            if match_model is None:
                return None

            worker_model = self.session.get(WorkerModel, match_model.worker_id)
            job_model = self.session.get(JobModel, match_model.job_id)
            if worker_model is None or job_model is None:
                return None

            return MatchDetails(
                match=match_model.to_domain(),
                worker=worker_model.to_domain(),
                job=job_model.to_domain(),
            )
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving match {match_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve match: {e}") from e

    def list_by_job(self, job_id: int) -> List[Match]:
        """All matches created for a job, in id order."""
        try:
            stmt = select(MatchModel).where(MatchModel.job_id == job_id).order_by(MatchModel.id)
            return [model.to_domain() for model in self.session.execute(stmt).scalars()]
        except SQLAlchemyError as e:
            logger.error(f"Error listing matches for job {job_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to list matches: {e}") from e

    def list_pending(self, limit: Optional[int] = None) -> List[Match]:
        """Matches whose notification has not been sent yet, oldest first."""
        try:
            stmt = (
                select(MatchModel)
                .where(MatchModel.notification_sent.is_(False))
                .order_by(MatchModel.id)
            )
            if limit:
                stmt = stmt.limit(limit)
            return [model.to_domain() for model in self.session.execute(stmt).scalars()]
        except SQLAlchemyError as e:
            logger.error(f"Error listing pending matches: {e}", exc_info=True)
            raise PersistenceError(f"Failed to list pending matches: {e}") from e

    def mark_notified(self, match_id: int, sent_at: datetime) -> Match:
        """Set notification_sent=True and record the send time.

        Raises:
            RecordNotFoundError: If the match does not exist
            PersistenceError: If a database error occurs
        """
        try:
            match_model = self.session.get(MatchModel, match_id)
            if match_model is None:
                raise RecordNotFoundError(f"Match with ID {match_id} not found")

            match_model.notification_sent = True
            match_model.notification_time = format_timestamp(sent_at)
            self.session.flush()
            return match_model.to_domain()
        except RecordNotFoundError:
            raise
        except SQLAlchemyError as e:
            logger.error(f"Error updating match {match_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to update match: {e}") from e


class DialogSessionRepository:
    """Repository for USSD dialog sessions."""

    def __init__(self, session: Session):
        self.session = session

    def _get_model(self, session_id: str) -> Optional[DialogSessionModel]:
        stmt = select(DialogSessionModel).where(DialogSessionModel.session_id == session_id)
        return self.session.execute(stmt).scalar_one_or_none()

    def get(self, session_id: str) -> Optional[DialogSessionRecord]:
        """Retrieve a dialog session by its caller-supplied id, or None."""
        try:
            model = self._get_model(session_id)
            return model.to_domain() if model else None
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving dialog session {session_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve dialog session: {e}") from e

    def save(self, record: DialogSessionRecord) -> DialogSessionRecord:
        """Insert the session, or overwrite step/data/position if it exists.

        Raises:
            DataIntegrityError: If a concurrent insert of the same id wins
            PersistenceError: If another database error occurs
        """
        try:
            model = self._get_model(record.session_id)
            if model is None:
                if record.created_at is None:
                    record = record.model_copy(update={"created_at": utc_now()})
                model = DialogSessionModel.from_domain(record)
                self.session.add(model)
            else:
                model.phone_number = record.phone_number
                model.step = record.step
                model.data = record.data
                model.input_position = record.input_position

            self.session.flush()
            return model.to_domain()
        except IntegrityError as e:
            logger.error(f"Integrity error saving dialog session: {e}", exc_info=True)
            raise DataIntegrityError(
                f"Dialog session {record.session_id} could not be saved"
            ) from e
        except SQLAlchemyError as e:
            logger.error(f"Error saving dialog session: {e}", exc_info=True)
            raise PersistenceError(f"Failed to save dialog session: {e}") from e
