"""Tests for workflow storage."""

from datetime import datetime, timedelta, timezone

import pytest

from orchestrator.core.exceptions import ExecutionNotFoundError, StorageError, WorkflowNotFoundError
from orchestrator.storage.seed import WEATHER_WORKFLOW_ID, WEATHER_WORKFLOW_NAME, seed_weather_workflow


class TestWorkflowStorage:
    """Test cases for workflow definitions."""

    def test_seeded_workflow(self, seeded_repository):
        workflow = seeded_repository.get_workflow(WEATHER_WORKFLOW_ID)

        assert workflow.name == WEATHER_WORKFLOW_NAME
        assert seeded_repository.workflow_exists(WEATHER_WORKFLOW_ID)

    def test_seed_is_idempotent(self, seeded_repository):
        assert seed_weather_workflow(seeded_repository) == WEATHER_WORKFLOW_ID
        assert len(seeded_repository.get_nodes(WEATHER_WORKFLOW_ID)) == 6

    def test_nodes_in_insertion_order(self, seeded_repository):
        nodes = seeded_repository.get_nodes(WEATHER_WORKFLOW_ID)

        assert [n.node_id for n in nodes] == ["start", "form", "weather-api", "condition", "email", "end"]
        assert nodes[4].node_metadata["subject"] == "Weather Alert"

    def test_edges_in_insertion_order(self, seeded_repository):
        edges = seeded_repository.get_edges(WEATHER_WORKFLOW_ID)

        assert [e.edge_id for e in edges] == ["e1", "e2", "e3", "e4", "e5", "e6"]
        assert edges[3].source_handle == "true"
        assert edges[4].source_handle == "false"
        assert edges[0].animated is True
        assert edges[0].edge_type == "smoothstep"

    def test_create_workflow_generates_id(self, repository):
        workflow_id = repository.create_workflow(
            name="Minimal",
            nodes=[
                {"node_id": "s", "node_type": "start"},
                {"node_id": "e", "node_type": "end"},
            ],
            edges=[{"edge_id": "e1", "source_id": "s", "target_id": "e"}],
        )

        assert repository.get_workflow(workflow_id).name == "Minimal"
        assert [n.node_id for n in repository.get_nodes(workflow_id)] == ["s", "e"]

    def test_duplicate_node_ids_rejected(self, repository):
        with pytest.raises(StorageError):
            repository.create_workflow(
                name="Broken",
                nodes=[
                    {"node_id": "s", "node_type": "start"},
                    {"node_id": "s", "node_type": "end"},
                ],
                edges=[],
            )

    def test_missing_workflow(self, repository):
        with pytest.raises(WorkflowNotFoundError) as exc_info:
            repository.get_workflow("nope")

        assert exc_info.value.context["workflow_id"] == "nope"
        assert not repository.workflow_exists("nope")


class TestExecutionStorage:
    """Test cases for execution history."""

    def test_create_and_get(self, seeded_repository):
        execution_id = seeded_repository.create_execution(
            workflow_id=WEATHER_WORKFLOW_ID,
            status="completed",
            execution_trace=[{"stepNumber": 1, "nodeType": "start"}],
            final_context={"form.city": "Sydney"},
            total_duration=12,
        )

        execution = seeded_repository.get_execution(execution_id)

        assert execution.status == "completed"
        assert execution.execution_trace == [{"stepNumber": 1, "nodeType": "start"}]
        assert execution.final_context == {"form.city": "Sydney"}
        assert execution.total_duration == 12
        assert execution.error_message is None

    def test_explicit_id(self, seeded_repository):
        execution_id = seeded_repository.create_execution(
            workflow_id=WEATHER_WORKFLOW_ID,
            status="failed",
            execution_trace=[],
            error_message="boom",
            execution_id="fixed-id",
        )

        assert execution_id == "fixed-id"
        assert seeded_repository.get_execution("fixed-id").error_message == "boom"

    def test_list_newest_first(self, seeded_repository):
        base = datetime(2024, 1, 1, tzinfo=timezone.utc)
        for offset, name in [(0, "first"), (2, "third"), (1, "second")]:
            seeded_repository.create_execution(
                workflow_id=WEATHER_WORKFLOW_ID,
                status="completed",
                execution_trace=[],
                executed_at=base + timedelta(minutes=offset),
                execution_id=name,
            )

        executions = seeded_repository.list_executions(WEATHER_WORKFLOW_ID)

        assert [e.id for e in executions] == ["third", "second", "first"]

    def test_list_limit(self, seeded_repository):
        for _ in range(3):
            seeded_repository.create_execution(
                workflow_id=WEATHER_WORKFLOW_ID, status="completed", execution_trace=[]
            )

        assert len(seeded_repository.list_executions(WEATHER_WORKFLOW_ID, limit=2)) == 2

    def test_list_empty(self, seeded_repository):
        assert seeded_repository.list_executions(WEATHER_WORKFLOW_ID) == []

    def test_missing_execution(self, repository):
        with pytest.raises(ExecutionNotFoundError):
            repository.get_execution("nope")
