"""Structured logging helpers shared by every component."""

import logging
from typing import Optional


class ComponentLoggerAdapter(logging.LoggerAdapter):
    """LoggerAdapter that merges a default component with per-call extra fields."""

    def process(self, msg, kwargs):
        """Merge adapter extra with call extra (call extra wins)."""
        extra = kwargs.get("extra", {})
        kwargs["extra"] = {**self.extra, **extra}
        return msg, kwargs


def get_logger(name: str, component: Optional[str] = None):
    """Get a logger, optionally tagging every record with a component field.

    Args:
        name: Logger name (typically __name__)
        component: Optional component identifier (e.g. "dialog", "notification")

    Returns:
        Logger or ComponentLoggerAdapter instance

    Example:
        >>> logger = get_logger(__name__, component="dialog")
        >>> logger.info("Step handled", extra={"event": "dialog.step.handled"})
    """
    logger = logging.getLogger(name)

    if component:
        return ComponentLoggerAdapter(logger, {"component": component})

    return logger


def mask_phone(phone: Optional[str]) -> str:
    """Mask a phone number for logs, keeping the first 4 and last 2 characters."""
    if not phone or len(phone) <= 6:
        return "***"
    return phone[:4] + "***" + phone[-2:]
