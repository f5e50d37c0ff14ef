"""Tests for the workflow service."""

import pytest

from conftest import StubWeather
from orchestrator.core.exceptions import GraphValidationError, WorkflowNotFoundError
from orchestrator.core.executor import Executor
from orchestrator.core.workflow_service import WorkflowService
from orchestrator.handlers import build_default_registry
from orchestrator.models.core import ExecuteWorkflowRequest, ExecutionStatusEnum
from orchestrator.storage.seed import WEATHER_WORKFLOW_ID


@pytest.fixture
def service(seeded_repository, registry):
    return WorkflowService(seeded_repository, Executor(registry), execution_timeout=10)


def make_request(operator="greater_than", threshold=25.0):
    return ExecuteWorkflowRequest.model_validate({
        "formData": {"name": "Alice", "email": "alice@example.com", "city": "Sydney"},
        "condition": {"operator": operator, "threshold": threshold},
    })


class TestWorkflowService:
    """Test cases for WorkflowService."""

    def test_get_workflow(self, service):
        workflow = service.get_workflow(WEATHER_WORKFLOW_ID)

        assert len(workflow.nodes) == 6
        assert len(workflow.edges) == 6
        assert workflow.nodes[0].position.x == -160
        assert workflow.edges[3].source_handle == "true"

    def test_load_graph(self, service):
        graph = service.load_graph(WEATHER_WORKFLOW_ID)

        assert graph.start_node == "start"
        labels = [e.branch_label for e in graph.outgoing_edges("condition")]
        assert labels == ["true", "false"]
        assert graph.outgoing_edges("start")[0].branch_label is None

    def test_load_graph_without_start(self, service, seeded_repository):
        workflow_id = seeded_repository.create_workflow(
            name="Headless",
            nodes=[{"node_id": "f", "node_type": "form"}],
            edges=[],
        )

        with pytest.raises(GraphValidationError) as exc_info:
            service.load_graph(workflow_id)
        assert exc_info.value.context["workflow_id"] == workflow_id

    def test_execute_alert_path(self, service, email_stub):
        response = service.execute_workflow(WEATHER_WORKFLOW_ID, make_request())

        assert response.status == ExecutionStatusEnum.COMPLETED
        assert [s.node_id for s in response.steps] == [
            "start", "form", "weather-api", "condition", "email", "end",
        ]
        assert response.start_time.endswith("Z")
        assert len(email_stub.sent) == 1

    def test_execute_records_history(self, service):
        response = service.execute_workflow(WEATHER_WORKFLOW_ID, make_request(threshold=40.0))

        detail = service.get_execution(response.execution_id)
        assert detail.status == ExecutionStatusEnum.COMPLETED
        assert [s.node_id for s in detail.steps] == ["start", "form", "weather-api", "condition", "end"]
        assert detail.final_context["weather.temperature"] == 30.0

        history = service.list_executions(WEATHER_WORKFLOW_ID)
        assert [e.id for e in history] == [response.execution_id]

    def test_failed_execution_is_recorded(self, seeded_repository):
        registry = build_default_registry(weather_fn=StubWeather(error=RuntimeError("offline")))
        service = WorkflowService(seeded_repository, Executor(registry))

        response = service.execute_workflow(WEATHER_WORKFLOW_ID, make_request())

        assert response.status == ExecutionStatusEnum.FAILED
        assert response.error == "failed to fetch weather for Sydney: offline"
        detail = service.get_execution(response.execution_id)
        assert detail.error == response.error
        assert detail.steps[-1].error == response.error

    def test_missing_operator_fails_condition(self, service):
        request = ExecuteWorkflowRequest.model_validate({"formData": {"city": "Sydney", "email": "a@b.c"}})

        response = service.execute_workflow(WEATHER_WORKFLOW_ID, request)

        assert response.status == ExecutionStatusEnum.FAILED
        assert response.steps[-1].node_id == "condition"
        assert response.error == "condition operator not specified"

    def test_unknown_workflow(self, service):
        with pytest.raises(WorkflowNotFoundError):
            service.execute_workflow("missing", make_request())
        with pytest.raises(WorkflowNotFoundError):
            service.list_executions("missing")
