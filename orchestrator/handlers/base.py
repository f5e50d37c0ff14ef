"""Base class for workflow node handlers."""

import json
import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict

from ..core.context import ExecutionContext
from ..core.exceptions import HandlerExecutionError
from ..core.graph import Node
from ..models.core import ExecutionStep, StepStatus, isoformat_utc


class NodeHandler(ABC):
    """Executes one kind of workflow node.

    Subclasses set ``node_type`` and implement ``execute``. Handlers hold no
    per-execution state; everything they read or write goes through the
    ``ExecutionContext`` so one instance can serve concurrent executions.
    """

    node_type: str = ""

    @abstractmethod
    def execute(self, context: ExecutionContext, node: Node) -> ExecutionStep:
        """
        Run the node and describe the outcome.

        Args:
            context: State of the current execution
            node: The node being visited

        Returns:
            ExecutionStep: A completed step carrying the handler's output

        Raises:
            HandlerExecutionError: If the node cannot complete
        """

    def fail(self, node: Node, message: str) -> HandlerExecutionError:
        """Build a handler error tagged with the node it came from."""
        return HandlerExecutionError(message, node_id=node.id, node_type=node.type)

    def call_external(
        self,
        context: ExecutionContext,
        node: Node,
        action: str,
        fn: Callable[..., Any],
        *args: Any
    ) -> Any:
        """
        Invoke an injected collaborator with the execution's cancellation token.

        Cancellation is checked before and after the call so a slow
        collaborator cannot push the execution past its deadline unnoticed.

        Args:
            context: State of the current execution
            node: The node making the call
            action: Short description used in the error message, e.g. "send email"
            fn: Collaborator taking the token as its first argument
            *args: Remaining collaborator arguments

        Returns:
            Whatever the collaborator returns

        Raises:
            ExecutionCancelledError: If the token fires before or after the call
            HandlerExecutionError: If the collaborator raises
        """
        context.check_cancelled()
        try:
            result = fn(context.cancellation, *args)
        except HandlerExecutionError:
            raise
        except Exception as e:
            raise self.fail(node, f"failed to {action}: {e}") from e
        context.check_cancelled()
        return result

    def parse_metadata(self, node: Node) -> Dict[str, Any]:
        """
        Decode a node's metadata blob.

        Raises:
            HandlerExecutionError: If the blob is not a JSON object
        """
        if not node.metadata:
            return {}
        try:
            metadata = json.loads(node.metadata)
        except (TypeError, ValueError) as e:
            raise self.fail(node, f"failed to parse {node.type} metadata: {e}")
        if metadata is None:
            return {}
        if not isinstance(metadata, dict):
            raise self.fail(node, f"{node.type} metadata must be a JSON object")
        return metadata

    def completed_step(
        self,
        context: ExecutionContext,
        node: Node,
        output: Dict[str, Any],
        started: float
    ) -> ExecutionStep:
        """Build the completed step for this node.

        ``started`` is a ``time.perf_counter()`` reading taken when the
        handler began.
        """
        return ExecutionStep(
            step_number=context.step_number,
            node_id=node.id,
            node_type=node.type,
            status=StepStatus.COMPLETED,
            duration=elapsed_ms(started),
            output=output,
            timestamp=isoformat_utc(),
        )


def elapsed_ms(started: float) -> int:
    """Milliseconds since a ``time.perf_counter()`` reading."""
    return max(0, int((time.perf_counter() - started) * 1000))


def render_template(template: str, values: Dict[str, Any]) -> str:
    """Substitute ``{{name}}`` style placeholders with values."""
    rendered = template
    for key, value in values.items():
        rendered = rendered.replace("{{" + key + "}}", str(value))
    return rendered
