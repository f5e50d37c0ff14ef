"""Email delivery backends."""

from typing import Optional

import resend

from ..core.context import CancellationToken
from ..core.exceptions import ConfigurationError, IntegrationError
from ..core.logging import get_logger

logger = get_logger(__name__)


class MockEmailClient:
    """Logs emails instead of delivering them."""

    def send(self, token: CancellationToken, to: str, subject: str, body: str) -> None:
        logger.info(f"Mock email sent to={to} subject={subject!r} body_length={len(body)}")


class ResendEmailClient:
    """Delivers emails through the Resend API."""

    def __init__(self, api_key: Optional[str], from_email: Optional[str]):
        if not api_key:
            raise ConfigurationError("Resend API key is not configured", config_key="resend_api_key")
        if not from_email:
            raise ConfigurationError("Email sender address is not configured", config_key="email_from")
        self.api_key = api_key
        self.from_email = from_email

    def send(self, token: CancellationToken, to: str, subject: str, body: str) -> None:
        """
        Send a plain-text email.

        Raises:
            IntegrationError: If Resend rejects the message
        """
        token.raise_if_cancelled()
        resend.api_key = self.api_key
        payload = {
            "from": self.from_email,
            "to": [to],
            "subject": subject,
            "text": body,
        }
        try:
            email = resend.Emails.send(payload)
        except resend.exceptions.ResendError as e:
            raise IntegrationError(f"Resend API error: {e}", service="email") from e

        logger.info(f"Email sent to={to} id={email.get('id', '')}")
