"""Node handlers and the default handler registry."""

from typing import Optional

from ..core.registry import HandlerRegistry
from .base import NodeHandler
from .condition import OPERATORS, ConditionHandler, evaluate_condition
from .flood import FloodFn, FloodHandler
from .form import FormHandler
from .lifecycle import EndHandler, StartHandler
from .notifications import EmailFn, EmailHandler, SMSFn, SMSHandler
from .weather import WeatherFn, WeatherHandler


def build_default_registry(
    weather_fn: Optional[WeatherFn] = None,
    email_fn: Optional[EmailFn] = None,
    sms_fn: Optional[SMSFn] = None,
    flood_fn: Optional[FloodFn] = None
) -> HandlerRegistry:
    """
    Build a registry with every built-in node handler.

    Args:
        weather_fn: Temperature lookup used by ``integration`` nodes
        email_fn: Email sender used by ``email`` nodes
        sms_fn: SMS sender used by ``sms`` nodes
        flood_fn: Flood risk lookup used by ``flood`` nodes

    Returns:
        HandlerRegistry: A fresh registry
    """
    registry = HandlerRegistry()
    registry.register(StartHandler())
    registry.register(FormHandler())
    registry.register(WeatherHandler(weather_fn))
    registry.register(ConditionHandler())
    registry.register(EmailHandler(email_fn))
    registry.register(SMSHandler(sms_fn))
    registry.register(FloodHandler(flood_fn))
    registry.register(EndHandler())
    return registry


__all__ = [
    "OPERATORS",
    "ConditionHandler",
    "EmailFn",
    "EmailHandler",
    "EndHandler",
    "FloodFn",
    "FloodHandler",
    "FormHandler",
    "NodeHandler",
    "SMSFn",
    "SMSHandler",
    "StartHandler",
    "WeatherFn",
    "WeatherHandler",
    "build_default_registry",
    "evaluate_condition",
]
