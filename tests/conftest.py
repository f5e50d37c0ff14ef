"""Pytest configuration and fixtures."""

import json
from typing import Any, Dict, List, Optional

import pytest

from orchestrator.core.graph import Edge, Node, build_graph
from orchestrator.handlers import build_default_registry
from orchestrator.integrations.flood import FloodResult, classify_risk
from orchestrator.storage.database import drop_tables, init_database, reset_database_engine
from orchestrator.storage.repository import WorkflowRepository
from orchestrator.storage.seed import seed_weather_workflow


class StubWeather:
    """Weather function returning a fixed temperature and recording lookups."""

    def __init__(self, temperature: float = 30.0, error: Optional[Exception] = None):
        self.temperature = temperature
        self.error = error
        self.cities: List[str] = []

    def __call__(self, token, city: str) -> float:
        self.cities.append(city)
        if self.error:
            raise self.error
        return self.temperature


class StubEmail:
    """Email function recording every message it is asked to send."""

    def __init__(self, error: Optional[Exception] = None):
        self.error = error
        self.sent: List[Dict[str, str]] = []

    def __call__(self, token, to: str, subject: str, body: str) -> None:
        if self.error:
            raise self.error
        self.sent.append({"to": to, "subject": subject, "body": body})


class StubSMS:
    """SMS function recording every message it is asked to send."""

    def __init__(self, error: Optional[Exception] = None):
        self.error = error
        self.sent: List[Dict[str, str]] = []

    def __call__(self, token, phone: str, message: str) -> None:
        if self.error:
            raise self.error
        self.sent.append({"phone": phone, "message": message})


class StubFlood:
    """Flood function returning a fixed discharge."""

    def __init__(self, discharge: float = 42.0):
        self.discharge = discharge

    def __call__(self, token, city: str) -> FloodResult:
        return FloodResult(discharge=self.discharge, risk_level=classify_risk(self.discharge))


def metadata(**values: Any) -> bytes:
    return json.dumps(values).encode("utf-8")


@pytest.fixture
def weather_stub():
    return StubWeather(temperature=30.0)


@pytest.fixture
def email_stub():
    return StubEmail()


@pytest.fixture
def sms_stub():
    return StubSMS()


@pytest.fixture
def flood_stub():
    return StubFlood()


@pytest.fixture
def registry(weather_stub, email_stub, sms_stub, flood_stub):
    """Default registry wired with stub collaborators."""
    return build_default_registry(
        weather_fn=weather_stub,
        email_fn=email_stub,
        sms_fn=sms_stub,
        flood_fn=flood_stub,
    )


@pytest.fixture
def weather_graph():
    """Factory for the start -> form -> integration -> condition -> email|end graph."""

    def _build(operator: str = "greater_than", threshold: float = 25.0):
        nodes = [
            Node("start", "start"),
            Node("form", "form"),
            Node("weather-api", "integration"),
            Node("condition", "condition", metadata(operator=operator, threshold=threshold)),
            Node("email", "email", metadata(subject="Weather Alert")),
            Node("end", "end"),
        ]
        edges = [
            Edge("start", "form"),
            Edge("form", "weather-api"),
            Edge("weather-api", "condition"),
            Edge("condition", "email", "true"),
            Edge("condition", "end", "false"),
            Edge("email", "end"),
        ]
        return build_graph(nodes, edges)

    return _build


@pytest.fixture
def form_state():
    """Initial state as submitted by the execute endpoint."""
    return {
        "form.name": "Alice",
        "form.email": "alice@example.com",
        "form.city": "Sydney",
        "form.phone": "+61400000000",
    }


@pytest.fixture
def test_db():
    """Fresh in-memory database for each test."""
    init_database("sqlite:///:memory:")
    yield
    drop_tables()
    reset_database_engine()


@pytest.fixture
def repository(test_db):
    return WorkflowRepository()


@pytest.fixture
def seeded_repository(repository):
    """Repository holding the sample weather workflow."""
    seed_weather_workflow(repository)
    return repository
