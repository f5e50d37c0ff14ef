"""Open-Meteo flood API client and risk classification."""

from dataclasses import dataclass
from typing import Optional

import requests

from ..core.context import CancellationToken
from ..core.exceptions import IntegrationError
from ..core.logging import get_logger
from .weather import CITY_COORDINATES, effective_timeout

logger = get_logger(__name__)

DEFAULT_FLOOD_ENDPOINT = "https://flood-api.open-meteo.com/v1/flood"

HIGH_RISK_DISCHARGE = 500.0
MODERATE_RISK_DISCHARGE = 100.0


@dataclass(frozen=True)
class FloodResult:
    """River discharge in m³/s and its risk level (low, moderate or high)."""
    discharge: float
    risk_level: str


def classify_risk(discharge: float) -> str:
    if discharge > HIGH_RISK_DISCHARGE:
        return "high"
    if discharge > MODERATE_RISK_DISCHARGE:
        return "moderate"
    return "low"


class OpenMeteoFloodClient:
    """Fetches daily river discharge forecasts from the Open-Meteo flood API."""

    def __init__(
        self,
        endpoint: str = DEFAULT_FLOOD_ENDPOINT,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None
    ):
        self.endpoint = endpoint
        self.timeout = timeout
        self.session = session or requests.Session()

    def get_flood_risk(self, latitude: float, longitude: float, timeout: Optional[float] = None) -> FloodResult:
        """
        Fetch today's river discharge at a coordinate and classify it.

        Raises:
            IntegrationError: If the request fails or the response is malformed
        """
        url = (
            f"{self.endpoint}?latitude={latitude:f}&longitude={longitude:f}"
            "&daily=river_discharge"
        )
        logger.debug(f"Calling flood API: {url}")

        try:
            response = self.session.get(url, timeout=timeout or self.timeout)
        except requests.RequestException as e:
            raise IntegrationError(f"flood API request failed: {e}", service="flood") from e

        if response.status_code != 200:
            raise IntegrationError(
                f"flood API returned {response.status_code}: {response.text}",
                service="flood",
                details={"status_code": response.status_code}
            )

        try:
            payload = response.json()
            readings = (payload.get("daily") or {}).get("river_discharge") or []
        except (ValueError, AttributeError) as e:
            raise IntegrationError(f"failed to parse flood response: {e}", service="flood") from e

        discharge = float(readings[0]) if readings and readings[0] is not None else 0.0
        return FloodResult(discharge=discharge, risk_level=classify_risk(discharge))

    def get_flood_risk_for_city(self, token: CancellationToken, city: str) -> FloodResult:
        """Flood risk for a known city, matching the ``FloodFn`` signature."""
        coords = CITY_COORDINATES.get(city)
        if coords is None:
            raise IntegrationError(f"unknown city: {city}", service="flood")
        latitude, longitude = coords
        return self.get_flood_risk(latitude, longitude, timeout=effective_timeout(token, self.timeout))
