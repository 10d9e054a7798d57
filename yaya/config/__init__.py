"""Configuration management for the Yaya service."""

from .duration import DurationParseError, parse_duration, validate_duration_range
from .environment import EnvironmentConfig, load_environment_config
from .exceptions import ConfigurationError
from .loader import load_config
from .models import (
    AppConfig,
    DialogConfig,
    LogFormat,
    LoggingConfig,
    LogLevel,
    MatchingConfig,
    NotificationConfig,
    ServerConfig,
)

__all__ = [
    "load_config",
    "load_environment_config",
    "parse_duration",
    "validate_duration_range",
    "AppConfig",
    "DialogConfig",
    "MatchingConfig",
    "NotificationConfig",
    "ServerConfig",
    "LoggingConfig",
    "EnvironmentConfig",
    "LogLevel",
    "LogFormat",
    "ConfigurationError",
    "DurationParseError",
]
