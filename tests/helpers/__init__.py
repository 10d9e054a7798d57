"""Test helper utilities for Yaya tests."""

from .factories import job_create, worker_create
from .gateways import RecordingGateway
from .memory_store import InMemoryStore

__all__ = ["InMemoryStore", "RecordingGateway", "job_create", "worker_create"]
