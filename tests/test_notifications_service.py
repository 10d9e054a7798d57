"""Unit tests for notification service.

Tests the NotificationService for:
- Complete single-match notification flow
- Phone normalisation before sending
- Missing matches and gateway failures
- Best-effort marking of sent matches
- Concurrent batch sending with partial failures
"""

from unittest.mock import Mock

import pytest

from tests.helpers import InMemoryStore, RecordingGateway, job_create, worker_create
from yaya.domain.models import Location, ProjectDuration, Skill
from yaya.notifications.models import NotificationResult, NotificationTemplateError
from yaya.notifications.service import NotificationService
from yaya.notifications.templates import SmsTemplateRenderer
from yaya.persistence.exceptions import PersistenceError


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def gateway():
    return RecordingGateway()


@pytest.fixture
def service(store, gateway):
    return NotificationService(store, gateway, default_country_code="254")


def seed_match(store, phone="0712345678", **job_fields):
    worker = store.create_worker(worker_create(phone=phone))
    job = store.create_job(job_create(**job_fields))
    return store.create_match(job.id, worker.id)


class TestSendJobMatch:
    """Tests for send_job_match()."""

    def test_sends_rendered_sms_and_marks_match(self, store, gateway, service):
        match = seed_match(
            store,
            skill=Skill.MASON,
            location=Location.PIPELINE,
            daily_rate=1200,
            duration=ProjectDuration.ONE_WEEK,
            notes="Bring own tools",
        )

        result = service.send_job_match(match.id)

        assert result.is_success()
        assert result.status == "sent"
        assert result.marked_sent is True
        assert gateway.sent == [
            (
                "+254712345678",
                "Job alert: Mason needed in Pipeline. Pay: KSh 1200/day, Duration: 1 week. "
                "Details: Bring own tools. Call 0799888777 to apply. By Yaya Labor.",
            )
        ]
        stored = store.matches[match.id]
        assert stored.notification_sent is True
        assert stored.notification_time is not None

    def test_missing_notes_render_as_na(self, store, gateway, service):
        match = seed_match(store)

        service.send_job_match(match.id)

        assert "Details: N/A." in gateway.sent[0][1]

    def test_international_number_sent_unchanged(self, store, gateway, service):
        match = seed_match(store, phone="+254 711 000 111")

        service.send_job_match(match.id)

        assert gateway.recipients == ["+254711000111"]

    def test_unknown_match_is_not_found(self, gateway, service):
        result = service.send_job_match(999)

        assert result.status == "not_found"
        assert not result.is_success()
        assert "999" in result.error
        assert gateway.sent == []

    def test_match_with_missing_worker_is_not_found(self, store, service):
        match = seed_match(store)
        del store.workers[match.worker_id]

        assert service.send_job_match(match.id).status == "not_found"

    def test_gateway_failure_leaves_match_pending(self, store, service):
        match = seed_match(store)
        service.gateway = RecordingGateway(fail_numbers=["+254712345678"])

        result = service.send_job_match(match.id)

        assert result.status == "failed"
        assert result.error == "Rejected by provider"
        assert store.matches[match.id].notification_sent is False

    def test_no_retry_on_failure(self, store):
        match = seed_match(store)
        gateway = RecordingGateway(fail_numbers=["+254712345678"])
        service = NotificationService(store, gateway, default_country_code="254")

        service.send_job_match(match.id)

        assert len(gateway.sent) == 1

    def test_mark_failure_still_reports_sent(self, store, gateway):
        match = seed_match(store)
        directory = Mock(wraps=store)
        directory.mark_match_notified.side_effect = PersistenceError("database is locked")
        service = NotificationService(directory, gateway, default_country_code="254")

        result = service.send_job_match(match.id)

        assert result.status == "sent"
        assert result.marked_sent is False
        assert len(gateway.sent) == 1

    def test_lookup_failure_is_failed_outcome(self, gateway):
        directory = Mock()
        directory.get_match_details.side_effect = PersistenceError("no database")
        service = NotificationService(directory, gateway)

        result = service.send_job_match(1)

        assert result.status == "failed"
        assert gateway.sent == []

    def test_template_error_is_failed_outcome(self, store, gateway):
        match = seed_match(store)
        renderer = Mock(spec=SmsTemplateRenderer)
        renderer.render_job_match.side_effect = NotificationTemplateError("missing variable")
        service = NotificationService(store, gateway, template_renderer=renderer)

        result = service.send_job_match(match.id)

        assert result.status == "failed"
        assert "missing variable" in result.error
        assert gateway.sent == []


class TestSendBulk:
    """Tests for send_bulk()."""

    def test_empty_batch(self, service):
        assert service.send_bulk([]) == []

    def test_one_failure_does_not_abort_others(self, store):
        ok = seed_match(store, phone="0711111111")
        bad = seed_match(store, phone="0722222222")
        gateway = RecordingGateway(fail_numbers=["+254722222222"])
        service = NotificationService(store, gateway, default_country_code="254")

        results = service.send_bulk([ok.id, bad.id])

        assert [r.match_id for r in results] == [ok.id, bad.id]
        assert [r.status for r in results] == ["sent", "failed"]
        assert len(gateway.sent) == 2
        assert store.matches[ok.id].notification_sent is True
        assert store.matches[bad.id].notification_sent is False

    def test_exception_becomes_failed_outcome(self, store):
        first = seed_match(store, phone="0711111111")
        second = seed_match(store, phone="0722222222")
        gateway = RecordingGateway(raise_numbers=["+254711111111"])
        service = NotificationService(store, gateway, default_country_code="254")

        results = service.send_bulk([first.id, second.id])

        assert results[0].status == "failed"
        assert "gateway exploded" in results[0].error
        assert results[1].status == "sent"

    def test_many_matches_with_small_pool(self, store):
        match_ids = [seed_match(store, phone=f"07000000{i:02d}").id for i in range(12)]
        gateway = RecordingGateway()
        service = NotificationService(store, gateway, default_country_code="254", max_concurrency=2)

        results = service.send_bulk(match_ids)

        assert all(isinstance(r, NotificationResult) for r in results)
        assert [r.match_id for r in results] == match_ids
        assert all(r.is_success() for r in results)
        assert len(gateway.sent) == 12

    def test_not_found_reported_per_match(self, store, service):
        match = seed_match(store)

        results = service.send_bulk([match.id, 404])

        assert [r.status for r in results] == ["sent", "not_found"]
