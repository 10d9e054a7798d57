"""Non-fatal checks on the raw configuration dictionary."""

import warnings
from typing import Any, Dict, List

KNOWN_SECTIONS = {"dialog", "matching", "notifications", "server", "logging"}


def check_for_warnings(config_dict: Dict[str, Any]) -> List[str]:
    """Return warnings for settings that are valid but probably unintended."""
    warning_messages = []

    for key in sorted(set(config_dict) - KNOWN_SECTIONS):
        warning_messages.append(f"Unknown configuration section '{key}' will be ignored")

    matching = config_dict.get("matching") or {}
    if isinstance(matching, dict):
        max_workers = matching.get("max_workers_per_job", 3)
        if isinstance(max_workers, int) and max_workers > 10:
            warning_messages.append(
                f"max_workers_per_job={max_workers} sends many SMS per job posting"
            )

    notifications = config_dict.get("notifications") or {}
    if isinstance(notifications, dict):
        if notifications.get("sandbox") is False and notifications.get("reconcile_interval"):
            warning_messages.append(
                "reconcile_interval re-sends unsent notifications on live SMS credit"
            )

    return warning_messages


def emit_warnings(warning_messages: List[str]) -> None:
    """Emit each message through the warnings module."""
    for message in warning_messages:
        warnings.warn(message, UserWarning, stacklevel=2)
