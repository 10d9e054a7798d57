"""Configuration schema models using Pydantic.

Every field has a default, so an empty or missing config file yields a
working local setup.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from .duration import DurationParseError, parse_duration, validate_duration_range


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log output formats."""

    JSON = "json"
    KEY_VALUE = "key-value"


class DialogConfig(BaseModel):
    """USSD menu settings."""

    service_code: str = Field(
        "*384*15667#", min_length=1, description="USSD code users dial to reach the menu"
    )
    reply_number: str = Field(
        "+254700000000", min_length=1, description="Number workers text YES to"
    )
    max_listed_jobs: int = Field(
        3, ge=1, le=5, description="Jobs shown on the 'view job matches' screen"
    )

    @field_validator("service_code", "reply_number")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("Field cannot be empty or whitespace-only")
        return stripped


class MatchingConfig(BaseModel):
    """Matching engine settings."""

    max_workers_per_job: int = Field(
        3, ge=1, le=50, description="Maximum workers matched and notified per job"
    )


class NotificationConfig(BaseModel):
    """SMS notification settings."""

    default_country_code: Optional[str] = Field(
        "254", description="Dialling code applied to local numbers starting with 0"
    )
    max_concurrency: int = Field(
        5, ge=1, le=50, description="Parallel SMS sends per batch"
    )
    request_timeout: int = Field(
        30, ge=1, le=300, description="SMS gateway HTTP timeout (seconds)"
    )
    sandbox: bool = Field(False, description="Use the Africa's Talking sandbox endpoint")
    reconcile_interval: Optional[str] = Field(
        None,
        description="Re-send pending notifications on this interval (e.g. '15m'); off when unset",
    )
    reconcile_batch_size: int = Field(
        100, ge=1, le=1000, description="Pending matches processed per reconciliation run"
    )

    # Computed field
    reconcile_interval_seconds: Optional[int] = None

    @field_validator("default_country_code")
    @classmethod
    def validate_country_code(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        cleaned = v.strip().lstrip("+")
        if not cleaned:
            return None
        if not cleaned.isdigit():
            raise ValueError(f"default_country_code must be digits, got: {v}")
        return cleaned

    @field_validator("reconcile_interval")
    @classmethod
    def validate_reconcile_interval(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        try:
            validate_duration_range(parse_duration(v))
        except DurationParseError as e:
            raise ValueError(str(e)) from e
        return v.strip()

    @model_validator(mode="after")
    def compute_reconcile_seconds(self):
        """Store the parsed reconcile interval for the scheduler."""
        if self.reconcile_interval:
            self.reconcile_interval_seconds = parse_duration(self.reconcile_interval)
        return self


class ServerConfig(BaseModel):
    """HTTP server bind settings."""

    host: str = Field("0.0.0.0", min_length=1)
    port: int = Field(8000, ge=1, le=65535)


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = Field(LogLevel.INFO, description="Log level")
    format: LogFormat = Field(
        LogFormat.KEY_VALUE, description="Log output format (json or key-value)"
    )

    model_config = {"use_enum_values": True}


class AppConfig(BaseModel):
    """Root configuration object for the Yaya service."""

    dialog: DialogConfig = Field(default_factory=DialogConfig)
    matching: MatchingConfig = Field(default_factory=MatchingConfig)
    notifications: NotificationConfig = Field(default_factory=NotificationConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
