"""Workflow service tying storage, graph building and execution together."""

import json
import uuid
from typing import List, Optional

from ..models.core import (
    EdgeResponse,
    ExecuteWorkflowRequest,
    ExecutionDetail,
    ExecutionResponse,
    ExecutionStep,
    ExecutionSummary,
    NodeData,
    NodePosition,
    NodeResponse,
    WorkflowResponse,
    isoformat_utc,
)
from ..storage.models import WorkflowEdgeModel, WorkflowExecutionModel, WorkflowNodeModel
from ..storage.repository import WorkflowRepository
from .context import CancellationToken
from .exceptions import GraphValidationError
from .executor import Executor
from .graph import Edge, Graph, Node, build_graph
from .logging import get_logger, logging_context

logger = get_logger(__name__)


def node_from_row(row: WorkflowNodeModel) -> Node:
    """Convert a stored node into a graph node with a JSON metadata blob."""
    metadata = row.node_metadata or {}
    return Node(id=row.node_id, type=row.node_type, metadata=json.dumps(metadata).encode("utf-8"))


def edge_from_row(row: WorkflowEdgeModel) -> Edge:
    return Edge(source_id=row.source_id, target_id=row.target_id, branch_label=row.source_handle or None)


class WorkflowService:
    """Loads workflows, executes them and records their history."""

    def __init__(
        self,
        repository: WorkflowRepository,
        executor: Executor,
        execution_timeout: Optional[float] = None
    ):
        """
        Args:
            repository: Storage for workflows and executions
            executor: Executor used for every run
            execution_timeout: Deadline in seconds for a single run, or None
        """
        self.repository = repository
        self.executor = executor
        self.execution_timeout = execution_timeout

    def get_workflow(self, workflow_id: str) -> WorkflowResponse:
        """
        Load a workflow definition shaped for the canvas.

        Raises:
            WorkflowNotFoundError: If the workflow does not exist
            StorageError: If storage fails
        """
        workflow = self.repository.get_workflow(workflow_id)
        nodes = self.repository.get_nodes(workflow_id)
        edges = self.repository.get_edges(workflow_id)

        return WorkflowResponse(
            id=workflow.id,
            name=workflow.name,
            description=workflow.description or "",
            nodes=[
                NodeResponse(
                    id=row.node_id,
                    type=row.node_type,
                    position=NodePosition(x=row.x_pos or 0.0, y=row.y_pos or 0.0),
                    data=NodeData(
                        label=row.label or "",
                        description=row.description or "",
                        metadata=row.node_metadata or {},
                    ),
                )
                for row in nodes
            ],
            edges=[
                EdgeResponse(
                    id=row.edge_id,
                    source=row.source_id,
                    target=row.target_id,
                    type=row.edge_type or "smoothstep",
                    source_handle=row.source_handle,
                    animated=bool(row.animated),
                    style=row.style,
                    label=row.label,
                    label_style=row.label_style,
                )
                for row in edges
            ],
        )

    def load_graph(self, workflow_id: str) -> Graph:
        """
        Build the executable graph of a stored workflow.

        Raises:
            WorkflowNotFoundError: If the workflow does not exist
            GraphValidationError: If the workflow has no start node
        """
        self.repository.get_workflow(workflow_id)
        nodes = [node_from_row(row) for row in self.repository.get_nodes(workflow_id)]
        edges = [edge_from_row(row) for row in self.repository.get_edges(workflow_id)]

        try:
            return build_graph(nodes, edges)
        except GraphValidationError as e:
            raise e.add_context(workflow_id=workflow_id)

    def execute_workflow(self, workflow_id: str, request: ExecuteWorkflowRequest) -> ExecutionResponse:
        """
        Execute a stored workflow and record the outcome.

        Handler failures do not raise: they come back as a ``failed`` response
        whose last step carries the error.

        Args:
            workflow_id: ID of the workflow to run
            request: User input and condition parameters

        Returns:
            ExecutionResponse: The execution trace and timing

        Raises:
            WorkflowNotFoundError: If the workflow does not exist
            GraphValidationError: If the workflow has no start node
            StorageError: If loading or recording fails
        """
        graph = self.load_graph(workflow_id)
        execution_id = str(uuid.uuid4())
        token = CancellationToken(self.execution_timeout)

        with logging_context(execution_id=execution_id, workflow_id=workflow_id):
            logger.info(f"Executing workflow {workflow_id} as {execution_id}")
            result = self.executor.execute(graph, request.to_initial_state(), token)

            error_message = result.error.message if result.error else None
            self.repository.create_execution(
                workflow_id=workflow_id,
                status=result.status.value,
                execution_trace=[step.to_wire() for step in result.steps],
                final_context=result.final_state,
                error_message=error_message,
                total_duration=result.total_duration_ms,
                executed_at=result.started_at,
                execution_id=execution_id,
            )

        return ExecutionResponse(
            execution_id=execution_id,
            workflow_id=workflow_id,
            status=result.status,
            start_time=isoformat_utc(result.started_at),
            end_time=isoformat_utc(result.finished_at),
            total_duration=result.total_duration_ms,
            steps=result.steps,
            error=error_message,
        )

    def list_executions(self, workflow_id: str) -> List[ExecutionSummary]:
        """
        Execution history of a workflow, newest first.

        Raises:
            WorkflowNotFoundError: If the workflow does not exist
        """
        self.repository.get_workflow(workflow_id)
        return [
            ExecutionSummary(
                id=row.id,
                workflow_id=row.workflow_id,
                status=row.status,
                executed_at=isoformat_utc(row.executed_at),
                error=row.error_message,
            )
            for row in self.repository.list_executions(workflow_id)
        ]

    def get_execution(self, execution_id: str) -> ExecutionDetail:
        """
        Raises:
            ExecutionNotFoundError: If the execution does not exist
        """
        row: WorkflowExecutionModel = self.repository.get_execution(execution_id)
        return ExecutionDetail(
            id=row.id,
            workflow_id=row.workflow_id,
            status=row.status,
            executed_at=isoformat_utc(row.executed_at),
            error=row.error_message,
            steps=[ExecutionStep.model_validate(step) for step in row.execution_trace or []],
            final_context=row.final_context or {},
        )
