"""Email and SMS notification node handlers."""

import time
from typing import Callable, Dict, Optional

from ..core.context import CancellationToken, ExecutionContext
from ..core.graph import Node
from ..models.core import ExecutionStep, isoformat_utc
from .base import NodeHandler, render_template

EmailFn = Callable[[CancellationToken, str, str, str], None]
SMSFn = Callable[[CancellationToken, str, str], None]

DEFAULT_EMAIL_SUBJECT = "Weather Alert"


def _alert_values(context: ExecutionContext) -> Dict[str, str]:
    return {
        "name": context.get_string("form.name"),
        "city": context.get_string("form.city"),
        "temperature": f"{context.get_float('weather.temperature'):.1f}",
    }


def default_alert_message(values: Dict[str, str]) -> str:
    return (
        f"Hi {values['name']}, weather alert for {values['city']}! "
        f"Temperature is {values['temperature']}°C!"
    )


class EmailHandler(NodeHandler):
    """Sends a weather alert email to ``form.email``.

    When no email function is configured the message is composed but not
    sent, which keeps preview workflows runnable.
    """

    node_type = "email"

    def __init__(self, email_fn: Optional[EmailFn] = None):
        self.email_fn = email_fn

    def execute(self, context: ExecutionContext, node: Node) -> ExecutionStep:
        started = time.perf_counter()

        to = context.get_string("form.email")
        if not to:
            raise self.fail(node, "recipient email not provided in form data")

        metadata = self.parse_metadata(node)
        values = _alert_values(context)

        subject = metadata.get("subject") or DEFAULT_EMAIL_SUBJECT
        subject = render_template(str(subject), values)
        body = default_alert_message(values)

        if self.email_fn is not None:
            self.call_external(context, node, "send email", self.email_fn, to, subject, body)

        output = {
            "message": "Alert email sent",
            "emailContent": {
                "to": to,
                "subject": subject,
                "body": body,
                "timestamp": isoformat_utc(),
            },
        }
        return self.completed_step(context, node, output, started)


class SMSHandler(NodeHandler):
    """Sends a weather alert text message to ``form.phone``."""

    node_type = "sms"

    def __init__(self, sms_fn: Optional[SMSFn] = None):
        self.sms_fn = sms_fn

    def execute(self, context: ExecutionContext, node: Node) -> ExecutionStep:
        started = time.perf_counter()

        phone = context.get_string("form.phone")
        if not phone:
            raise self.fail(node, "recipient phone not provided in form data")

        metadata = self.parse_metadata(node)
        values = _alert_values(context)

        template = metadata.get("template")
        if template:
            message = render_template(str(template), values)
        else:
            message = default_alert_message(values)

        if self.sms_fn is None:
            raise self.fail(node, "SMS client not configured")

        self.call_external(context, node, "send SMS", self.sms_fn, phone, message)

        output = {
            "message": "SMS sent",
            "smsContent": {
                "to": phone,
                "message": message,
                "timestamp": isoformat_utc(),
            },
        }
        return self.completed_step(context, node, output, started)
