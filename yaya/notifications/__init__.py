"""SMS notifications for job matches."""

from .gateway import AfricasTalkingGateway, MessageGateway
from .models import (
    BulkNotificationSummary,
    GatewayDeliveryError,
    GatewayResult,
    NotificationError,
    NotificationResult,
    NotificationTemplateError,
)
from .service import NotificationService
from .templates import SmsTemplateRenderer, build_job_match_context

__all__ = [
    "NotificationService",
    "MessageGateway",
    "AfricasTalkingGateway",
    "SmsTemplateRenderer",
    "build_job_match_context",
    "NotificationResult",
    "GatewayResult",
    "BulkNotificationSummary",
    "NotificationError",
    "NotificationTemplateError",
    "GatewayDeliveryError",
]
