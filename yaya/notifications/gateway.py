"""Outbound SMS gateways.

MessageGateway is the port the notification service depends on.
AfricasTalkingGateway implements it over the Africa's Talking messaging REST
API. Gateways never raise for delivery problems; they report them in the
returned GatewayResult.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import requests

from yaya.logging import get_logger, mask_phone

from .models import GatewayDeliveryError, GatewayResult

logger = get_logger(__name__, component="gateway")

LIVE_SMS_URL = "https://api.africastalking.com/version1/messaging"
SANDBOX_SMS_URL = "https://api.sandbox.africastalking.com/version1/messaging"

# Per-recipient status codes meaning the message was accepted
ACCEPTED_STATUS_CODES = {100, 101, 102}


class MessageGateway(ABC):
    """Port for sending a text message to one phone number."""

    @abstractmethod
    def send(self, to: str, message: str) -> GatewayResult:
        """Send ``message`` to the normalised number ``to``."""


class AfricasTalkingGateway(MessageGateway):
    """Sends SMS through the Africa's Talking messaging API.

    Missing credentials are not an error at construction time: every send
    then fails with "Credentials not configured".
    """

    def __init__(
        self,
        username: Optional[str],
        api_key: Optional[str],
        sender_id: Optional[str] = None,
        sandbox: bool = False,
        timeout: int = 30,
        session: Optional[requests.Session] = None,
    ):
        self.username = username
        self.api_key = api_key
        self.sender_id = sender_id
        self.url = SANDBOX_SMS_URL if sandbox or username == "sandbox" else LIVE_SMS_URL
        self.timeout = timeout
        self._session = session or requests.Session()

        if not self.credentials_configured:
            logger.warning(
                "Africa's Talking credentials not configured, SMS will not be sent",
                extra={"event": "gateway.credentials_missing"},
            )

    @property
    def credentials_configured(self) -> bool:
        return bool(self.username and self.api_key)

    def send(self, to: str, message: str) -> GatewayResult:
        if not self.credentials_configured:
            return GatewayResult(success=False, error="Credentials not configured")

        try:
            body = self._post(to, message)
        except GatewayDeliveryError as e:
            logger.error(
                f"SMS delivery failed: {e}",
                extra={"event": "gateway.send.failed", "to": mask_phone(to)},
            )
            return GatewayResult(success=False, error=str(e))

        error = self._recipient_error(body)
        if error:
            logger.warning(
                f"SMS rejected by provider: {error}",
                extra={"event": "gateway.send.rejected", "to": mask_phone(to)},
            )
            return GatewayResult(success=False, provider_result=body, error=error)

        logger.info(
            "SMS accepted by provider",
            extra={"event": "gateway.send.accepted", "to": mask_phone(to)},
        )
        return GatewayResult(success=True, provider_result=body)

    def _post(self, to: str, message: str) -> Dict[str, Any]:
        """POST one message and return the parsed JSON body.

        Raises:
            GatewayDeliveryError: On connection errors, timeouts, HTTP errors or
                a non-JSON response
        """
        data = {"username": self.username, "to": to, "message": message}
        if self.sender_id:
            data["from"] = self.sender_id

        headers = {"apiKey": self.api_key, "Accept": "application/json"}

        try:
            response = self._session.post(
                self.url, data=data, headers=headers, timeout=self.timeout
            )
        except requests.exceptions.Timeout as e:
            raise GatewayDeliveryError(f"Request timed out after {self.timeout}s") from e
        except requests.exceptions.RequestException as e:
            raise GatewayDeliveryError(f"Request failed: {e}") from e

        if response.status_code not in (200, 201):
            raise GatewayDeliveryError(
                f"HTTP {response.status_code}: {response.text[:200]}"
            )

        try:
            return response.json()
        except ValueError as e:
            raise GatewayDeliveryError(f"Invalid JSON response: {e}") from e

    @staticmethod
    def _recipient_error(body: Dict[str, Any]) -> Optional[str]:
        """Return an error message unless every recipient was accepted."""
        message_data = body.get("SMSMessageData") if isinstance(body, dict) else None
        if not isinstance(message_data, dict):
            return "Malformed provider response"

        recipients = message_data.get("Recipients") or []
        if not recipients:
            return message_data.get("Message") or "No recipients accepted"

        for recipient in recipients:
            if recipient.get("statusCode") not in ACCEPTED_STATUS_CODES and recipient.get("status") != "Success":
                return recipient.get("status") or "Recipient rejected"
        return None
