"""Shared pytest fixtures."""

import pytest

ENV_VARS = [
    "AFRICASTALKING_USERNAME",
    "AFRICASTALKING_API_KEY",
    "AFRICASTALKING_SENDER_ID",
    "LOG_LEVEL",
    "DATABASE_URL",
    "ENVIRONMENT",
]


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every variable the service reads from the environment."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def mock_env_vars(clean_env):
    """Sandbox SMS credentials as a developer would configure them."""
    clean_env.setenv("AFRICASTALKING_USERNAME", "sandbox")
    clean_env.setenv("AFRICASTALKING_API_KEY", "test-api-key")
    return clean_env
