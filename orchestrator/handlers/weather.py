"""Weather integration node handler."""

import time
from typing import Callable, Optional

from ..core.context import CancellationToken, ExecutionContext
from ..core.graph import Node
from ..models.core import ExecutionStep
from .base import NodeHandler

WeatherFn = Callable[[CancellationToken, str], float]

DEFAULT_WEATHER_ENDPOINT = "https://api.open-meteo.com/v1/forecast"


class WeatherHandler(NodeHandler):
    """Looks up the current temperature for ``form.city``.

    Writes the result to ``weather.temperature`` for downstream condition and
    notification nodes.
    """

    node_type = "integration"

    def __init__(self, weather_fn: Optional[WeatherFn] = None, endpoint: str = DEFAULT_WEATHER_ENDPOINT):
        self.weather_fn = weather_fn
        self.endpoint = endpoint

    def execute(self, context: ExecutionContext, node: Node) -> ExecutionStep:
        started = time.perf_counter()

        city = context.get_string("form.city")
        if not city:
            raise self.fail(node, "city not provided in form data")

        if self.weather_fn is None:
            raise self.fail(node, "weather client not configured")

        result = self.call_external(
            context, node, f"fetch weather for {city}", self.weather_fn, city
        )
        if isinstance(result, bool) or not isinstance(result, (int, float)):
            raise self.fail(node, f"weather lookup for {city} returned a non-numeric temperature")
        temperature = float(result)

        context.set("weather.temperature", temperature)

        output = {
            "message": f"Fetched weather data for {city}",
            "apiResponse": {
                "endpoint": self.endpoint,
                "method": "GET",
                "statusCode": 200,
                "data": {
                    "temperature": temperature,
                    "city": city,
                },
            },
        }
        return self.completed_step(context, node, output, started)
