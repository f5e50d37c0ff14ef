"""SMS delivery backends."""

from ..core.context import CancellationToken
from ..core.logging import get_logger

logger = get_logger(__name__)


class MockSMSClient:
    """Logs text messages instead of delivering them."""

    def send(self, token: CancellationToken, phone: str, message: str) -> None:
        logger.info(f"Mock SMS sent phone={phone} message_length={len(message)}")
