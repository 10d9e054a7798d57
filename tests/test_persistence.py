"""Unit tests for persistence layer."""

from datetime import datetime, timezone

import pytest
from sqlalchemy import text

from tests.helpers import job_create, worker_create
from yaya.domain.models import DialogSessionRecord, Location, Skill
from yaya.persistence import (
    DatabaseConnectionError,
    DataIntegrityError,
    DialogSessionRepository,
    JobRepository,
    MatchRepository,
    RecordNotFoundError,
    SqlAlchemyStore,
    WorkerRepository,
    close_database,
    get_engine,
    get_session,
    init_database,
)
from yaya.persistence.schema import WorkerModel


@pytest.fixture
def database(tmp_path):
    """File-backed SQLite database, closed after the test."""
    init_database(f"sqlite:///{tmp_path / 'yaya.db'}")
    yield
    close_database()


class TestDatabaseInitialization:
    """Tests for database initialization."""

    def test_init_database_success(self, tmp_path):
        """Test successful database initialization."""
        db_file = tmp_path / "test.db"

        init_database(f"sqlite:///{db_file}")

        assert db_file.exists()
        with get_session() as session:
            assert session is not None

        close_database()

    def test_init_database_creates_parent_directories(self, tmp_path):
        db_file = tmp_path / "subdir" / "nested" / "test.db"

        init_database(f"sqlite:///{db_file}")

        assert db_file.exists()
        close_database()

    def test_init_database_creates_tables(self, database):
        with get_engine().connect() as conn:
            rows = conn.execute(text("SELECT name FROM sqlite_master WHERE type='table'")).fetchall()

        assert {"workers", "jobs", "matches", "ussd_sessions"} <= {row[0] for row in rows}

    def test_init_database_invalid_url_raises_error(self):
        with pytest.raises(DatabaseConnectionError):
            init_database("")

    def test_schema_creation_is_idempotent(self, tmp_path):
        """Test re-initializing an existing database keeps its data."""
        db_url = f"sqlite:///{tmp_path / 'test.db'}"
        init_database(db_url)
        with get_session() as session:
            WorkerRepository(session).create(worker_create())
        close_database()

        init_database(db_url)
        with get_session() as session:
            assert WorkerRepository(session).get_by_phone("0712345678") is not None
        close_database()

    def test_get_session_without_init_raises_error(self):
        close_database()

        with pytest.raises(DatabaseConnectionError, match="Database not initialized"):
            with get_session():
                pass


class TestSessionManagement:
    """Tests for session commit and rollback."""

    def test_session_commits_on_success(self, database):
        with get_session() as session:
            WorkerRepository(session).create(worker_create())

        with get_session() as session:
            assert session.query(WorkerModel).count() == 1

    def test_session_rolls_back_on_exception(self, database):
        with pytest.raises(ValueError):
            with get_session() as session:
                WorkerRepository(session).create(worker_create())
                raise ValueError("Test exception")

        with get_session() as session:
            assert session.query(WorkerModel).count() == 0


class TestWorkerRepository:
    """Tests for WorkerRepository."""

    def test_create_and_get(self, database):
        with get_session() as session:
            created = WorkerRepository(session).create(worker_create(name="Jane Wanjiru"))

        with get_session() as session:
            fetched = WorkerRepository(session).get(created.id)

        assert fetched.name == "Jane Wanjiru"
        assert fetched.skill == Skill.MASON
        assert fetched.location == Location.PIPELINE
        assert fetched.is_available is True
        assert fetched.registered_at.tzinfo == timezone.utc

    def test_get_missing_returns_none(self, database):
        with get_session() as session:
            assert WorkerRepository(session).get(42) is None
            assert WorkerRepository(session).get_by_phone("0700000000") is None

    def test_duplicate_phone_raises_integrity_error(self, database):
        with get_session() as session:
            WorkerRepository(session).create(worker_create())

        with pytest.raises(DataIntegrityError, match="already exists"):
            with get_session() as session:
                WorkerRepository(session).create(worker_create(name="Someone Else"))

    def test_update_profile(self, database):
        with get_session() as session:
            worker = WorkerRepository(session).create(worker_create())

        with get_session() as session:
            updated = WorkerRepository(session).update_profile(worker.id, skill=Skill.PLUMBER)

        assert updated.skill == Skill.PLUMBER
        assert updated.location == Location.PIPELINE

        with get_session() as session:
            updated = WorkerRepository(session).update_profile(worker.id, location=Location.RONGAI)

        assert updated.skill == Skill.PLUMBER
        assert updated.location == Location.RONGAI

    def test_update_missing_worker_raises(self, database):
        with pytest.raises(RecordNotFoundError):
            with get_session() as session:
                WorkerRepository(session).update_profile(99, skill=Skill.WELDER)

    def test_count_and_find_available(self, database):
        with get_session() as session:
            repo = WorkerRepository(session)
            repo.create(worker_create(phone="0711000001"))
            repo.create(worker_create(phone="0711000002", is_available=False))
            repo.create(worker_create(phone="0711000003"))
            repo.create(worker_create(phone="0711000004", skill=Skill.PAINTER))
            repo.create(worker_create(phone="0711000005", location=Location.KASARANI))

        with get_session() as session:
            repo = WorkerRepository(session)
            assert repo.count_available(Skill.MASON, Location.PIPELINE) == 2
            found = repo.find_available(Skill.MASON, Location.PIPELINE, limit=5)
            assert [w.phone for w in found] == ["0711000001", "0711000003"]
            assert len(repo.find_available(Skill.MASON, Location.PIPELINE, limit=1)) == 1


class TestJobRepository:
    """Tests for JobRepository."""

    def test_create_and_get(self, database):
        with get_session() as session:
            created = JobRepository(session).create(job_create(notes="Bring tools"))

        with get_session() as session:
            fetched = JobRepository(session).get(created.id)

        assert fetched.additional_notes == "Bring tools"
        assert fetched.daily_rate == 1200
        assert fetched.is_active is True
        assert fetched.created_at.tzinfo == timezone.utc

    def test_find_active_oldest_first(self, database):
        with get_session() as session:
            repo = JobRepository(session)
            first = repo.create(job_create(daily_rate=1000))
            repo.create(job_create(daily_rate=1100, is_active=False))
            third = repo.create(job_create(daily_rate=1300))
            repo.create(job_create(location=Location.KITENGELA))

        with get_session() as session:
            active = JobRepository(session).find_active(Skill.MASON, Location.PIPELINE)

        assert [job.id for job in active] == [first.id, third.id]


class TestMatchRepository:
    """Tests for MatchRepository."""

    @pytest.fixture
    def job_and_worker(self, database):
        with get_session() as session:
            worker = WorkerRepository(session).create(worker_create())
            job = JobRepository(session).create(job_create())
        return job, worker

    def test_create_defaults(self, job_and_worker):
        job, worker = job_and_worker

        with get_session() as session:
            match = MatchRepository(session).create(job.id, worker.id)

        assert match.notification_sent is False
        assert match.notification_time is None
        assert match.worker_responded is False

    def test_create_with_missing_worker_raises(self, job_and_worker):
        job, _ = job_and_worker

        with pytest.raises(DataIntegrityError):
            with get_session() as session:
                MatchRepository(session).create(job.id, 999)

    def test_get_details(self, job_and_worker):
        job, worker = job_and_worker
        with get_session() as session:
            match = MatchRepository(session).create(job.id, worker.id)

        with get_session() as session:
            details = MatchRepository(session).get_details(match.id)
            missing = MatchRepository(session).get_details(match.id + 1)

        assert details.worker.id == worker.id
        assert details.job.id == job.id
        assert missing is None

    def test_mark_notified_and_pending(self, job_and_worker):
        job, worker = job_and_worker
        sent_at = datetime(2025, 6, 1, 8, 30, tzinfo=timezone.utc)
        with get_session() as session:
            repo = MatchRepository(session)
            first = repo.create(job.id, worker.id)
            second = repo.create(job.id, worker.id)

        with get_session() as session:
            marked = MatchRepository(session).mark_notified(first.id, sent_at)

        assert marked.notification_sent is True
        assert marked.notification_time == sent_at

        with get_session() as session:
            repo = MatchRepository(session)
            assert [m.id for m in repo.list_pending()] == [second.id]
            assert [m.id for m in repo.list_by_job(job.id)] == [first.id, second.id]

    def test_list_pending_limit(self, job_and_worker):
        job, worker = job_and_worker
        with get_session() as session:
            repo = MatchRepository(session)
            ids = [repo.create(job.id, worker.id).id for _ in range(4)]

        with get_session() as session:
            assert [m.id for m in MatchRepository(session).list_pending(limit=2)] == ids[:2]

    def test_mark_missing_match_raises(self, database):
        with pytest.raises(RecordNotFoundError):
            with get_session() as session:
                MatchRepository(session).mark_notified(5, datetime.now(timezone.utc))


class TestDialogSessionRepository:
    """Tests for DialogSessionRepository."""

    def test_save_inserts_then_overwrites(self, database):
        record = DialogSessionRecord(
            session_id="ATUid_1", phone_number="+254712345678", step="register_name", input_position=1
        )
        with get_session() as session:
            created = DialogSessionRepository(session).save(record)

        assert created.created_at is not None

        with get_session() as session:
            updated = DialogSessionRepository(session).save(
                record.model_copy(
                    update={"step": "register_skill", "data": '{"name":"John Mwangi"}', "input_position": 2}
                )
            )

        assert updated.step == "register_skill"
        assert updated.data == '{"name":"John Mwangi"}'
        assert updated.input_position == 2
        assert updated.created_at == created.created_at

    def test_get_missing_returns_none(self, database):
        with get_session() as session:
            assert DialogSessionRepository(session).get("unknown") is None


class TestSqlAlchemyStore:
    """Tests for the store used by the running service."""

    def test_each_call_is_its_own_transaction(self, database):
        store = SqlAlchemyStore()
        worker = store.create_worker(worker_create())
        job = store.create_job(job_create())
        match = store.create_match(job.id, worker.id)

        store.update_worker_skill(worker.id, Skill.CARPENTER)
        store.mark_match_notified(match.id, datetime.now(timezone.utc))

        assert store.get_worker_by_phone("0712345678").skill == Skill.CARPENTER
        assert store.count_available_workers(Skill.CARPENTER, Location.PIPELINE) == 1
        assert store.list_pending_matches() == []
        assert store.get_match_details(match.id).match.notification_sent is True

    def test_failed_create_does_not_leave_partial_rows(self, database):
        store = SqlAlchemyStore()
        store.create_worker(worker_create())

        with pytest.raises(DataIntegrityError):
            store.create_worker(worker_create(name="Duplicate"))

        with get_session() as session:
            assert session.query(WorkerModel).count() == 1

    def test_dialog_session_round_trip(self, database):
        store = SqlAlchemyStore()
        store.save_dialog_session(
            DialogSessionRecord(session_id="s1", phone_number="+254700000000", step="main_menu")
        )

        loaded = store.load_dialog_session("s1")

        assert loaded.step == "main_menu"
        assert loaded.data == "{}"
        assert loaded.input_position is None
