"""Persistence layer: SQLAlchemy schema, repositories and storage ports.

Public API:
    # Database initialization and session management
    - init_database(database_url: str) -> None
    - get_session() -> ContextManager[Session]
    - close_database() -> None
    - get_engine() -> Engine

    # Repositories (work inside a caller-provided session)
    - WorkerRepository, JobRepository, MatchRepository, DialogSessionRepository

    # Storage ports consumed by the core, and their SQLAlchemy implementation
    - DirectoryStore, SessionStore, SqlAlchemyStore

    # Exceptions
    - PersistenceError, DatabaseConnectionError, RecordNotFoundError, DataIntegrityError

Example usage:
    >>> from yaya.persistence import init_database, SqlAlchemyStore
    >>> init_database("sqlite:///./data/yaya.db")
    >>> store = SqlAlchemyStore()
    >>> store.count_available_workers(Skill.MASON, Location.PIPELINE)
    0
"""

from .database import close_database, get_engine, get_session, init_database
from .exceptions import (
    DatabaseConnectionError,
    DataIntegrityError,
    PersistenceError,
    RecordNotFoundError,
)
from .repositories import (
    DialogSessionRepository,
    JobRepository,
    MatchRepository,
    WorkerRepository,
)
from .store import DirectoryStore, SessionStore, SqlAlchemyStore

__all__ = [
    "init_database",
    "get_session",
    "close_database",
    "get_engine",
    "WorkerRepository",
    "JobRepository",
    "MatchRepository",
    "DialogSessionRepository",
    "DirectoryStore",
    "SessionStore",
    "SqlAlchemyStore",
    "PersistenceError",
    "DatabaseConnectionError",
    "RecordNotFoundError",
    "DataIntegrityError",
]
