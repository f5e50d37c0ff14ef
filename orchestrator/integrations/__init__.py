"""Clients for the external services workflow nodes talk to."""

from .email import MockEmailClient, ResendEmailClient
from .flood import FloodResult, OpenMeteoFloodClient, classify_risk
from .sms import MockSMSClient
from .weather import CITY_COORDINATES, OpenMeteoClient

__all__ = [
    "CITY_COORDINATES",
    "FloodResult",
    "MockEmailClient",
    "MockSMSClient",
    "OpenMeteoClient",
    "OpenMeteoFloodClient",
    "ResendEmailClient",
    "classify_risk",
]
