"""Data models and exceptions for the notification service."""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


class NotificationError(Exception):
    """Base exception for notification-related errors."""

    pass


class NotificationTemplateError(NotificationError):
    """Raised when template rendering fails due to configuration or missing variables."""

    pass


class GatewayDeliveryError(NotificationError):
    """Raised when the SMS gateway cannot be reached or rejects a request."""

    pass


@dataclass
class GatewayResult:
    """Outcome of a single gateway send.

    Attributes:
        success: True if the provider accepted the message for every recipient
        provider_result: Provider response body, when one was received
        error: Error message if the send failed
    """

    success: bool
    provider_result: Optional[Dict[str, Any]] = None
    error: Optional[str] = None


@dataclass
class NotificationResult:
    """Result of attempting to notify the worker of one match.

    Attributes:
        match_id: Match the notification was for
        status: Outcome status (sent, failed, not_found)
        error: Optional error message if delivery failed
        provider_result: Gateway response for sent messages
        marked_sent: False if the send succeeded but recording it did not
    """

    match_id: int
    status: str  # "sent", "failed", "not_found"
    error: Optional[str] = None
    provider_result: Optional[Dict[str, Any]] = None
    marked_sent: bool = False

    def is_success(self) -> bool:
        """True if the SMS was accepted by the gateway."""
        return self.status == "sent"


@dataclass
class BulkNotificationSummary:
    """Counts over a batch of NotificationResult objects."""

    results: list = field(default_factory=list)

    @property
    def sent(self) -> int:
        return sum(1 for r in self.results if r.status == "sent")

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if r.status == "failed")

    @property
    def not_found(self) -> int:
        return sum(1 for r in self.results if r.status == "not_found")
