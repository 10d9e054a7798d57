"""Tests for logging context propagation."""

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from yaya.logging import mask_phone
from yaya.logging.context import (
    clear_log_context,
    get_log_context,
    log_context,
    pop_log_context,
    push_log_context,
)


@pytest.fixture(autouse=True)
def clean_context():
    """Clear logging context before and after each test."""
    clear_log_context()
    yield
    clear_log_context()


def test_empty_context():
    assert get_log_context() == {}


def test_push_and_pop():
    """Test nested pushes restore the previous layer on pop."""
    outer = push_log_context(session_id="ATUid_1")
    inner = push_log_context(job_id=7, match_id=12)

    assert get_log_context() == {"session_id": "ATUid_1", "job_id": 7, "match_id": 12}

    pop_log_context(inner)
    assert get_log_context() == {"session_id": "ATUid_1"}

    pop_log_context(outer)
    assert get_log_context() == {}


def test_same_key_overrides_then_restores():
    token1 = push_log_context(run_id="first")
    token2 = push_log_context(run_id="second")

    assert get_log_context() == {"run_id": "second"}

    pop_log_context(token2)
    assert get_log_context() == {"run_id": "first"}
    pop_log_context(token1)


def test_context_manager_nested():
    with log_context(job_id=1):
        with log_context(match_id=2):
            assert get_log_context() == {"job_id": 1, "match_id": 2}
        assert get_log_context() == {"job_id": 1}

    assert get_log_context() == {}


def test_context_manager_restores_on_exception():
    with pytest.raises(ValueError):
        with log_context(session_id="s1"):
            raise ValueError("boom")

    assert get_log_context() == {}


def test_get_log_context_returns_copy():
    with log_context(job_id=1):
        snapshot = get_log_context()
        snapshot["job_id"] = 99

        assert get_log_context() == {"job_id": 1}


def test_clear_context():
    push_log_context(session_id="s1")

    clear_log_context()

    assert get_log_context() == {}


def test_context_isolated_between_threads():
    """Test each thread starts with its own empty context."""
    seen = {}

    def worker():
        seen["context"] = get_log_context()

    with log_context(session_id="main-thread"):
        thread = threading.Thread(target=worker)
        thread.start()
        thread.join()

    assert seen["context"] == {}


def test_context_can_be_carried_into_pool_threads():
    """Test the capture-and-reapply pattern used for batch sends."""
    with log_context(job_id=5):
        captured = get_log_context()

        def worker(match_id):
            with log_context(**captured):
                with log_context(match_id=match_id):
                    return get_log_context()

        with ThreadPoolExecutor(max_workers=2) as executor:
            results = list(executor.map(worker, [1, 2]))

    assert results == [{"job_id": 5, "match_id": 1}, {"job_id": 5, "match_id": 2}]


@pytest.mark.parametrize(
    "phone,expected",
    [
        ("+254712345678", "+254***78"),
        ("0712345678", "0712***78"),
        ("12345", "***"),
        ("", "***"),
        (None, "***"),
    ],
)
def test_mask_phone(phone, expected):
    assert mask_phone(phone) == expected
