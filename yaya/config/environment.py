"""Environment variable loading and validation."""

import os
from typing import Optional

from .exceptions import ConfigurationError

VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class EnvironmentConfig:
    """Secrets and deployment settings read from the environment."""

    def __init__(
        self,
        africastalking_username: Optional[str] = None,
        africastalking_api_key: Optional[str] = None,
        africastalking_sender_id: Optional[str] = None,
        log_level: Optional[str] = None,
        database_url: Optional[str] = None,
        environment: Optional[str] = None,
    ):
        self.africastalking_username = africastalking_username
        self.africastalking_api_key = africastalking_api_key
        self.africastalking_sender_id = africastalking_sender_id
        self.log_level = log_level
        self.database_url = database_url or "sqlite:///./data/yaya.db"
        self.environment = environment or "local"

    @property
    def sms_credentials_configured(self) -> bool:
        """True when both the gateway username and API key are set."""
        return bool(self.africastalking_username and self.africastalking_api_key)


def load_environment_config() -> EnvironmentConfig:
    """Load and validate environment variables.

    Optional environment variables:
    - AFRICASTALKING_USERNAME: Africa's Talking account username ("sandbox" for testing)
    - AFRICASTALKING_API_KEY: Africa's Talking API key
    - AFRICASTALKING_SENDER_ID: Registered sender id / short code for outgoing SMS
    - LOG_LEVEL: Override log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    - DATABASE_URL: SQLAlchemy URL (default: sqlite:///./data/yaya.db)
    - ENVIRONMENT: Label attached to every log record (default: local)

    Missing SMS credentials are not an error: notifications then fail softly.

    Raises:
        ConfigurationError: If a variable is set to an invalid value
    """
    errors = []

    username = os.getenv("AFRICASTALKING_USERNAME") or None
    api_key = os.getenv("AFRICASTALKING_API_KEY") or None
    sender_id = os.getenv("AFRICASTALKING_SENDER_ID") or None
    log_level = os.getenv("LOG_LEVEL") or None
    database_url = os.getenv("DATABASE_URL") or None
    environment = os.getenv("ENVIRONMENT") or None

    if log_level and log_level.upper() not in VALID_LOG_LEVELS:
        errors.append(
            f"Invalid LOG_LEVEL: '{log_level}'. Must be one of: {', '.join(VALID_LOG_LEVELS)}"
        )

    if username and not api_key:
        errors.append(
            "AFRICASTALKING_USERNAME is set but AFRICASTALKING_API_KEY is not. "
            "Both must be set to send SMS."
        )
    elif api_key and not username:
        errors.append(
            "AFRICASTALKING_API_KEY is set but AFRICASTALKING_USERNAME is not. "
            "Both must be set to send SMS."
        )

    if errors:
        raise ConfigurationError(
            "Environment variable validation failed",
            source="environment",
            errors=errors,
            suggestions=[
                "Copy .env.example to .env and fill in your credentials",
                "Use AFRICASTALKING_USERNAME=sandbox with a sandbox API key for testing",
            ],
        )

    return EnvironmentConfig(
        africastalking_username=username,
        africastalking_api_key=api_key,
        africastalking_sender_id=sender_id,
        log_level=log_level.upper() if log_level else None,
        database_url=database_url,
        environment=environment,
    )
