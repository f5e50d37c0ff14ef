"""Tests for the REST API."""

import uuid

import pytest
from fastapi.testclient import TestClient

from conftest import StubEmail, StubFlood, StubSMS, StubWeather
from orchestrator.config import get_testing_config
from orchestrator.factory import Collaborators, create_app
from orchestrator.storage.seed import WEATHER_WORKFLOW_ID

WORKFLOW_URL = f"/api/v1/workflows/{WEATHER_WORKFLOW_ID}"


@pytest.fixture
def weather():
    return StubWeather(temperature=30.0)


@pytest.fixture
def email():
    return StubEmail()


@pytest.fixture
def client(weather, email):
    """Test client for an application wired with stub collaborators."""
    collaborators = Collaborators(
        weather_fn=weather,
        email_fn=email,
        sms_fn=StubSMS(),
        flood_fn=StubFlood(),
    )
    app = create_app(get_testing_config(), collaborators)
    with TestClient(app) as test_client:
        yield test_client


def execute_payload(operator="greater_than", threshold=25):
    return {
        "formData": {"name": "Alice", "email": "alice@example.com", "city": "Sydney"},
        "condition": {"operator": operator, "threshold": threshold},
    }


class TestHealthEndpoints:
    """Test cases for health endpoints."""

    def test_root(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert "running" in response.json()["message"]

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["service"] == "workflow-orchestrator"

    def test_request_id_header(self, client):
        response = client.get("/health", headers={"X-Request-ID": "req-42"})

        assert response.headers["X-Request-ID"] == "req-42"
        assert "X-Response-Time" in response.headers


class TestWorkflowEndpoints:
    """Test cases for workflow definition endpoints."""

    def test_get_workflow(self, client):
        response = client.get(WORKFLOW_URL)

        assert response.status_code == 200
        data = response.json()
        assert data["id"] == WEATHER_WORKFLOW_ID
        assert [n["id"] for n in data["nodes"]] == [
            "start", "form", "weather-api", "condition", "email", "end",
        ]
        assert data["nodes"][0]["position"] == {"x": -160.0, "y": 300.0}
        assert data["nodes"][1]["data"]["label"] == "User Input"
        assert data["edges"][3]["sourceHandle"] == "true"
        assert data["edges"][3]["labelStyle"]["fontWeight"] == "bold"

    def test_invalid_workflow_id(self, client):
        response = client.get("/api/v1/workflows/not-a-uuid")

        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "InvalidID"

    def test_missing_workflow(self, client):
        response = client.get(f"/api/v1/workflows/{uuid.uuid4()}")

        assert response.status_code == 404
        assert response.json()["detail"]["error"] == "WorkflowNotFoundError"


class TestExecuteEndpoint:
    """Test cases for workflow execution."""

    def test_alert_branch(self, client, email):
        response = client.post(f"{WORKFLOW_URL}/execute", json=execute_payload())

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "completed"
        assert data["workflowId"] == WEATHER_WORKFLOW_ID
        assert [s["nodeId"] for s in data["steps"]] == [
            "start", "form", "weather-api", "condition", "email", "end",
        ]
        assert data["steps"][3]["output"]["conditionResult"]["result"] is True
        assert "error" not in data
        assert "error" not in data["steps"][0]
        assert email.sent[0]["to"] == "alice@example.com"

    def test_no_alert_branch(self, client, weather, email):
        weather.temperature = 12.0

        response = client.post(f"{WORKFLOW_URL}/execute", json=execute_payload())

        data = response.json()
        assert data["status"] == "completed"
        assert [s["nodeType"] for s in data["steps"]] == [
            "start", "form", "integration", "condition", "end",
        ]
        assert email.sent == []

    def test_operator_in_form_data(self, client):
        payload = {
            "formData": {
                "name": "Bo", "email": "bo@example.com", "city": "Perth",
                "operator": "less_than", "threshold": 50,
            }
        }

        response = client.post(f"{WORKFLOW_URL}/execute", json=payload)

        condition = response.json()["steps"][3]["output"]["conditionResult"]
        assert condition["operator"] == "less_than"
        assert condition["result"] is True

    def test_handler_failure_returns_failed_status(self, client, weather):
        weather.error = RuntimeError("service unavailable")

        response = client.post(f"{WORKFLOW_URL}/execute", json=execute_payload())

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "failed"
        assert data["error"] == "failed to fetch weather for Sydney: service unavailable"
        assert data["steps"][-1]["status"] == "failed"
        assert data["steps"][-1]["nodeId"] == "weather-api"

    def test_invalid_body(self, client):
        response = client.post(f"{WORKFLOW_URL}/execute", json={"condition": {"operator": "greater_than"}})

        assert response.status_code == 422

    def test_missing_workflow(self, client):
        response = client.post(f"/api/v1/workflows/{uuid.uuid4()}/execute", json=execute_payload())

        assert response.status_code == 404


class TestExecutionHistory:
    """Test cases for execution history endpoints."""

    def test_list_and_get(self, client):
        first = client.post(f"{WORKFLOW_URL}/execute", json=execute_payload()).json()
        second = client.post(f"{WORKFLOW_URL}/execute", json=execute_payload(threshold=40)).json()

        listing = client.get(f"{WORKFLOW_URL}/executions")

        assert listing.status_code == 200
        ids = [e["id"] for e in listing.json()["executions"]]
        assert set(ids) == {first["executionId"], second["executionId"]}

        detail = client.get(f"/api/v1/executions/{second['executionId']}")
        assert detail.status_code == 200
        data = detail.json()
        assert data["workflowId"] == WEATHER_WORKFLOW_ID
        assert data["status"] == "completed"
        assert len(data["steps"]) == 5
        assert data["finalContext"]["form.city"] == "Sydney"

    def test_stored_trace_matches_execute_response(self, client, weather):
        completed = client.post(f"{WORKFLOW_URL}/execute", json=execute_payload()).json()
        weather.error = RuntimeError("service unavailable")
        failed = client.post(f"{WORKFLOW_URL}/execute", json=execute_payload()).json()

        assert completed["status"] == "completed"
        assert failed["status"] == "failed"
        for run in (completed, failed):
            detail = client.get(f"/api/v1/executions/{run['executionId']}").json()
            assert detail["steps"] == run["steps"]
            assert detail["status"] == run["status"]
            assert detail.get("error") == run.get("error")

    def test_empty_history(self, client):
        response = client.get(f"{WORKFLOW_URL}/executions")

        assert response.json() == {"executions": []}

    def test_missing_execution(self, client):
        response = client.get(f"/api/v1/executions/{uuid.uuid4()}")

        assert response.status_code == 404
        assert response.json()["detail"]["error"] == "ExecutionNotFoundError"

    def test_invalid_execution_id(self, client):
        assert client.get("/api/v1/executions/abc").status_code == 400


class TestMetadataEndpoints:
    """Test cases for node type and city listings."""

    def test_node_types(self, client):
        response = client.get("/api/v1/node-types")

        assert response.status_code == 200
        assert "condition" in response.json()["nodeTypes"]
        assert len(response.json()["nodeTypes"]) == 8

    def test_cities(self, client):
        response = client.get("/api/v1/cities")

        names = [city["name"] for city in response.json()["cities"]]
        assert names == ["Sydney", "Melbourne", "Brisbane", "Perth", "Adelaide"]
