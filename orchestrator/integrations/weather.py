"""Open-Meteo current weather client."""

from typing import Dict, Optional, Tuple

import requests

from ..core.context import CancellationToken
from ..core.exceptions import IntegrationError
from ..core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_WEATHER_BASE_URL = "https://api.open-meteo.com"

CITY_COORDINATES: Dict[str, Tuple[float, float]] = {
    "Sydney": (-33.8688, 151.2093),
    "Melbourne": (-37.8136, 144.9631),
    "Brisbane": (-27.4698, 153.0251),
    "Perth": (-31.9505, 115.8605),
    "Adelaide": (-34.9285, 138.6007),
}


def effective_timeout(token: Optional[CancellationToken], default: float) -> float:
    """HTTP timeout bounded by whatever is left of the execution deadline."""
    if token is None:
        return default
    remaining = token.remaining()
    if remaining is None:
        return default
    return min(default, remaining)


class OpenMeteoClient:
    """Fetches current temperatures from the Open-Meteo forecast API."""

    def __init__(
        self,
        base_url: str = DEFAULT_WEATHER_BASE_URL,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/v1/forecast"

    def get_current_temperature(self, latitude: float, longitude: float, timeout: Optional[float] = None) -> float:
        """
        Fetch the current temperature at a coordinate.

        Args:
            latitude: Latitude in decimal degrees
            longitude: Longitude in decimal degrees
            timeout: Request timeout in seconds, defaults to the client timeout

        Returns:
            float: Temperature in degrees Celsius

        Raises:
            IntegrationError: If the request fails or the response is malformed
        """
        url = (
            f"{self.endpoint}?latitude={latitude:.4f}&longitude={longitude:.4f}"
            "&current_weather=true"
        )
        logger.debug(f"Calling weather API: {url}")

        try:
            response = self.session.get(url, timeout=timeout or self.timeout)
        except requests.RequestException as e:
            raise IntegrationError(f"fetch weather: {e}", service="weather") from e

        if response.status_code != 200:
            raise IntegrationError(
                f"unexpected status: {response.status_code}",
                service="weather",
                details={"status_code": response.status_code}
            )

        try:
            payload = response.json()
            temperature = payload["current_weather"]["temperature"]
            return float(temperature)
        except (ValueError, KeyError, TypeError) as e:
            raise IntegrationError(f"decode response: {e}", service="weather") from e

    def get_temperature_for_city(self, token: CancellationToken, city: str) -> float:
        """
        Fetch the current temperature of a known city.

        Matches the ``WeatherFn`` signature expected by the weather node handler.

        Raises:
            IntegrationError: If the city is unknown or the lookup fails
        """
        coords = CITY_COORDINATES.get(city)
        if coords is None:
            raise IntegrationError(f"unknown city: {city}", service="weather")
        latitude, longitude = coords
        return self.get_current_temperature(
            latitude, longitude, timeout=effective_timeout(token, self.timeout)
        )
