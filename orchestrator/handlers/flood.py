"""Flood risk integration node handler."""

import time
from typing import Callable, Optional

from ..core.context import CancellationToken, ExecutionContext
from ..core.graph import Node
from ..integrations.flood import DEFAULT_FLOOD_ENDPOINT, FloodResult
from ..models.core import ExecutionStep
from .base import NodeHandler

FloodFn = Callable[[CancellationToken, str], FloodResult]


class FloodHandler(NodeHandler):
    """Looks up river discharge for ``form.city`` and classifies the flood risk.

    Writes ``flood.discharge`` and ``flood.riskLevel``.
    """

    node_type = "flood"

    def __init__(self, flood_fn: Optional[FloodFn] = None, endpoint: str = DEFAULT_FLOOD_ENDPOINT):
        self.flood_fn = flood_fn
        self.endpoint = endpoint

    def execute(self, context: ExecutionContext, node: Node) -> ExecutionStep:
        started = time.perf_counter()

        city = context.get_string("form.city")
        if not city:
            raise self.fail(node, "city not provided in form data")

        if self.flood_fn is None:
            raise self.fail(node, "flood client not configured")

        result = self.call_external(
            context, node, f"fetch flood data for {city}", self.flood_fn, city
        )

        context.set("flood.discharge", result.discharge)
        context.set("flood.riskLevel", result.risk_level)

        output = {
            "message": f"Fetched flood data for {city}: {result.risk_level} risk",
            "apiResponse": {
                "endpoint": self.endpoint,
                "method": "GET",
                "statusCode": 200,
                "data": {
                    "discharge": result.discharge,
                    "riskLevel": result.risk_level,
                    "city": city,
                },
            },
        }
        return self.completed_step(context, node, output, started)
