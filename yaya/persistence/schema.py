"""Database schema definition and ORM models.

Timestamps are stored as ISO 8601 UTC strings (see yaya.utils.timestamps).
Each ORM model converts to and from its domain model.
"""

import logging

from sqlalchemy import Boolean, Column, ForeignKey, Index, Integer, String, Text, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base

from yaya.domain.models import DialogSessionRecord, Job, Match, Worker
from yaya.utils.timestamps import format_timestamp, parse_timestamp

logger = logging.getLogger(__name__)

Base = declarative_base()


class WorkerModel(Base):
    """ORM model for the workers table."""

    __tablename__ = "workers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(120), nullable=False)
    # Uniqueness is the backstop for concurrent registrations of one phone
    phone = Column(String(32), nullable=False, unique=True)
    skill = Column(String(50), nullable=False)
    location = Column(String(50), nullable=False)
    is_available = Column(Boolean, nullable=False, default=True)
    registered_at = Column(String(50), nullable=False)

    __table_args__ = (
        Index("idx_workers_skill_location", "skill", "location", "is_available"),
    )

    def to_domain(self) -> Worker:
        return Worker(
            id=self.id,
            name=self.name,
            phone=self.phone,
            skill=self.skill,
            location=self.location,
            is_available=bool(self.is_available),
            registered_at=parse_timestamp(self.registered_at),
        )


class JobModel(Base):
    """ORM model for the jobs table."""

    __tablename__ = "jobs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    contact_phone = Column(String(32), nullable=False)
    skill_required = Column(String(50), nullable=False)
    location = Column(String(50), nullable=False)
    daily_rate = Column(Integer, nullable=False)
    project_duration = Column(String(50), nullable=False)
    additional_notes = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(String(50), nullable=False)

    __table_args__ = (
        Index("idx_jobs_skill_location", "skill_required", "location", "is_active"),
    )

    def to_domain(self) -> Job:
        return Job(
            id=self.id,
            contact_phone=self.contact_phone,
            skill_required=self.skill_required,
            location=self.location,
            daily_rate=self.daily_rate,
            project_duration=self.project_duration,
            additional_notes=self.additional_notes,
            is_active=bool(self.is_active),
            created_at=parse_timestamp(self.created_at),
        )


class MatchModel(Base):
    """ORM model for the matches table."""

    __tablename__ = "matches"

    id = Column(Integer, primary_key=True, autoincrement=True)
    job_id = Column(Integer, ForeignKey("jobs.id"), nullable=False)
    worker_id = Column(Integer, ForeignKey("workers.id"), nullable=False)
    notification_sent = Column(Boolean, nullable=False, default=False)
    notification_time = Column(String(50), nullable=True)
    worker_responded = Column(Boolean, nullable=False, default=False)

    __table_args__ = (
        Index("idx_matches_job", "job_id"),
        Index("idx_matches_pending", "notification_sent"),
    )

    def to_domain(self) -> Match:
        return Match(
            id=self.id,
            job_id=self.job_id,
            worker_id=self.worker_id,
            notification_sent=bool(self.notification_sent),
            notification_time=parse_timestamp(self.notification_time),
            worker_responded=bool(self.worker_responded),
        )


class DialogSessionModel(Base):
    """ORM model for the ussd_sessions table."""

    __tablename__ = "ussd_sessions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    session_id = Column(String(128), nullable=False, unique=True)
    phone_number = Column(String(32), nullable=False)
    step = Column(String(50), nullable=False)
    data = Column(Text, nullable=False, default="{}")
    input_position = Column(Integer, nullable=True)
    created_at = Column(String(50), nullable=False)

    def to_domain(self) -> DialogSessionRecord:
        return DialogSessionRecord(
            session_id=self.session_id,
            phone_number=self.phone_number,
            step=self.step,
            data=self.data,
            input_position=self.input_position,
            created_at=parse_timestamp(self.created_at),
        )

    @classmethod
    def from_domain(cls, record: DialogSessionRecord) -> "DialogSessionModel":
        return cls(
            session_id=record.session_id,
            phone_number=record.phone_number,
            step=record.step,
            data=record.data,
            input_position=record.input_position,
            created_at=format_timestamp(record.created_at),
        )


def create_schema(engine: Engine) -> None:
    """Create all tables and indexes if they don't exist (idempotent)."""
    logger.info("Creating database schema if not exists")

    try:
        Base.metadata.create_all(engine, checkfirst=True)
        tables = inspect(engine).get_table_names()
        logger.info(f"Database schema ready. Tables: {', '.join(tables)}")
    except Exception as e:
        logger.error(f"Failed to create database schema: {e}", exc_info=True)
        raise
