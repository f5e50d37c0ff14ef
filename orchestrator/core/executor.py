"""Executor that walks a workflow graph and runs node handlers."""

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Set

from ..models.core import ExecutionStatusEnum, ExecutionStep, StepStatus, isoformat_utc
from .context import CancellationToken, ExecutionContext
from .exceptions import (
    AmbiguousBranchError,
    CycleDetectedError,
    HandlerExecutionError,
    NoStartNodeError,
    NodeNotFoundError,
    UnknownNodeTypeError,
    WorkflowEngineError,
)
from .graph import END_NODE_TYPE, Graph, Node
from .logging import get_logger, log_with_context
from .registry import HandlerRegistry

logger = get_logger(__name__)

TRUE_BRANCH = "true"
FALSE_BRANCH = "false"


@dataclass
class ExecutionResult:
    """Outcome of one executor run.

    ``steps`` holds every step recorded before the run stopped, including the
    failed step when a handler raised. ``error`` is set whenever the run did
    not reach a terminal node normally.
    """
    steps: List[ExecutionStep] = field(default_factory=list)
    error: Optional[WorkflowEngineError] = None
    final_state: Dict[str, Any] = field(default_factory=dict)
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def succeeded(self) -> bool:
        return self.error is None

    @property
    def status(self) -> ExecutionStatusEnum:
        return ExecutionStatusEnum.COMPLETED if self.succeeded else ExecutionStatusEnum.FAILED

    @property
    def total_duration_ms(self) -> int:
        return max(0, int((self.finished_at - self.started_at).total_seconds() * 1000))

    def raise_for_error(self) -> None:
        """Re-raise the error that halted the run, if any."""
        if self.error is not None:
            raise self.error


class Executor:
    """Runs a workflow graph from its start node to a terminal node.

    Traversal is single-threaded and visits each node at most once. Handlers
    are looked up per node type in the registry, so one executor can serve
    many graphs and many concurrent ``execute`` calls.
    """

    def __init__(self, registry: HandlerRegistry, strict_branching: bool = False):
        """
        Args:
            registry: Handlers keyed by node type
            strict_branching: Fail condition nodes whose result has no
                matching labeled edge instead of following the first edge
        """
        self.registry = registry
        self.strict_branching = strict_branching

    def execute(
        self,
        graph: Graph,
        initial_state: Optional[Mapping[str, Any]] = None,
        cancellation: Optional[CancellationToken] = None
    ) -> ExecutionResult:
        """
        Execute a workflow graph.

        Args:
            graph: The graph to walk
            initial_state: Values copied into the execution context before the
                start node runs
            cancellation: Token checked by I/O handlers; a fresh token with no
                deadline is used when omitted

        Returns:
            ExecutionResult: The ordered steps and any error that halted the run

        Raises:
            NoStartNodeError: If the graph has no start node
            TypeError: If ``initial_state`` holds an unsupported value
        """
        if not graph.start_node:
            raise NoStartNodeError()

        context = ExecutionContext(cancellation)
        for key, value in (initial_state or {}).items():
            context.set(key, value)

        result = ExecutionResult(started_at=context.started_at)
        visited: Set[str] = set()
        current: Optional[str] = graph.start_node

        while current:
            if current in visited:
                result.error = CycleDetectedError(current)
                break
            visited.add(current)

            node = graph.get_node(current)
            if node is None:
                result.error = NodeNotFoundError(current)
                break

            handler = self.registry.get(node.type)
            if handler is None:
                result.error = UnknownNodeTypeError(node.type, node_id=node.id)
                break

            step_number = context.next_step()
            started = time.perf_counter()
            try:
                step = handler.execute(context, node)
            except WorkflowEngineError as e:
                result.error = e.add_context(node_id=node.id, node_type=node.type)
            except Exception as e:
                logger.exception(f"Unexpected error in {node.type} handler for node {node.id}")
                result.error = HandlerExecutionError(str(e), node_id=node.id, node_type=node.type)

            if result.error is not None:
                result.steps.append(self._failed_step(node, step_number, started, result.error))
                break

            result.steps.append(step)
            log_with_context(
                logger, logging.DEBUG, f"Completed step {step.step_number} at node {node.id}",
                node_id=node.id, node_type=node.type, duration_ms=step.duration
            )

            if node.type == END_NODE_TYPE:
                break

            try:
                current = self._next_node(graph, node, step)
            except AmbiguousBranchError as e:
                result.error = e
                break

        result.final_state = context.snapshot()
        result.finished_at = datetime.now(timezone.utc)

        if result.error is not None:
            logger.warning(
                f"Execution halted after {len(result.steps)} steps: {result.error.message}"
            )
        else:
            logger.info(f"Execution completed in {len(result.steps)} steps")

        return result

    def _next_node(self, graph: Graph, node: Node, step: ExecutionStep) -> Optional[str]:
        """Pick the id of the node to visit after ``node``, or None to stop."""
        edges = graph.outgoing_edges(node.id)
        if not edges:
            return None

        branch = step.condition_result
        if branch is None:
            return edges[0].target_id

        label = TRUE_BRANCH if branch else FALSE_BRANCH
        for edge in edges:
            if edge.branch_label == label:
                return edge.target_id

        if self.strict_branching:
            raise AmbiguousBranchError(node.id, label)

        logger.warning(
            f"No edge labeled '{label}' from condition node {node.id}; "
            f"following first edge to {edges[0].target_id}"
        )
        return edges[0].target_id

    @staticmethod
    def _failed_step(
        node: Node,
        step_number: int,
        started: float,
        error: WorkflowEngineError
    ) -> ExecutionStep:
        return ExecutionStep(
            step_number=step_number,
            node_id=node.id,
            node_type=node.type,
            status=StepStatus.FAILED,
            duration=max(0, int((time.perf_counter() - started) * 1000)),
            output={},
            timestamp=isoformat_utc(),
            error=error.message,
        )
