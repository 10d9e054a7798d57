"""Configuration loader for the Yaya service."""

from pathlib import Path
from typing import Optional

import yaml
from pydantic import ValidationError

from yaya.logging import get_logger

from .environment import EnvironmentConfig, load_environment_config
from .exceptions import ConfigurationError
from .models import AppConfig
from .validators import check_for_warnings, emit_warnings

logger = get_logger(__name__, component="config")

DEFAULT_CONFIG_CANDIDATES = [
    Path("config.yaml"),
    Path("config") / "config.yaml",
]


def load_config(config_path: Optional[Path] = None) -> tuple[AppConfig, EnvironmentConfig]:
    """
    Load and validate configuration from a YAML file and environment variables.

    Config file lookup:
    1. Use config_path if given (it must exist)
    2. Try config.yaml in the current directory
    3. Try ./config/config.yaml
    4. Fall back to built-in defaults

    Args:
        config_path: Optional path to configuration file

    Returns:
        Tuple of (AppConfig, EnvironmentConfig) with validated configuration

    Raises:
        ConfigurationError: If configuration is invalid or an explicit file is missing
    """
    config_file = _find_config_file(config_path)

    if config_file is None:
        logger.info(
            "No configuration file found, using defaults",
            extra={"event": "config.defaults_used"},
        )
        config_dict = {}
    else:
        config_dict = _read_yaml(config_file)

    warning_messages = check_for_warnings(config_dict)
    if warning_messages:
        emit_warnings(warning_messages)

    try:
        app_config = AppConfig.model_validate(config_dict)
    except ValidationError as e:
        raise ConfigurationError(
            "Configuration validation failed",
            source=str(config_file) if config_file else "defaults",
            errors=_format_validation_errors(e),
            suggestions=[
                "Review config.example.yaml for correct format",
                "Verify field types match the expected schema",
            ],
        ) from e

    try:
        env_config = load_environment_config()
    except ConfigurationError:
        raise
    except Exception as e:
        raise ConfigurationError(
            f"Failed to load environment configuration: {e}",
            source="environment",
            suggestions=["Copy .env.example to .env and fill in your credentials"],
        ) from e

    return app_config, env_config


def _read_yaml(config_file: Path) -> dict:
    try:
        with open(config_file, "r") as f:
            config_dict = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Failed to parse YAML configuration: {e}",
            source=str(config_file),
            suggestions=[
                "Check YAML syntax in your config file",
                "Ensure proper indentation (use spaces, not tabs)",
            ],
        ) from e
    except OSError as e:
        raise ConfigurationError(
            f"Failed to read configuration file: {e}",
            source=str(config_file),
            suggestions=[f"Ensure {config_file} is readable"],
        ) from e

    if config_dict is None:
        return {}

    if not isinstance(config_dict, dict):
        raise ConfigurationError(
            "Configuration file must contain a mapping at the top level",
            source=str(config_file),
            suggestions=["Review config.example.yaml for correct format"],
        )

    return config_dict


def _format_validation_errors(error: ValidationError) -> list[str]:
    errors = []
    for item in error.errors():
        field_path = " -> ".join(str(loc) for loc in item["loc"])
        error_type = item["type"]

        if error_type in ["string_type", "int_type", "bool_type"]:
            expected_type = error_type.replace("_type", "")
            errors.append(
                f"Invalid type for '{field_path}': expected {expected_type}, got {item.get('input')}"
            )
        elif "enum" in error_type:
            errors.append(f"Invalid value for '{field_path}': {item['msg']}")
        else:
            errors.append(f"{field_path}: {item['msg']}")
    return errors


def _find_config_file(config_path: Optional[Path] = None) -> Optional[Path]:
    """
    Resolve the configuration file to read.

    Returns:
        Path to the configuration file, or None when no default file exists

    Raises:
        ConfigurationError: If an explicit path does not exist
    """
    if config_path:
        if not config_path.exists():
            raise ConfigurationError(
                f"Specified configuration file not found: {config_path}",
                suggestions=[
                    f"Ensure {config_path} exists",
                    "Omit --config to run with built-in defaults",
                ],
            )
        return config_path

    for candidate in DEFAULT_CONFIG_CANDIDATES:
        if candidate.exists():
            return candidate

    return None
