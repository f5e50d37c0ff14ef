"""Start and end node handlers."""

import time

from ..core.context import ExecutionContext
from ..core.graph import END_NODE_TYPE, START_NODE_TYPE, Node
from ..models.core import ExecutionStep
from .base import NodeHandler


class StartHandler(NodeHandler):
    """Entry point of every workflow."""

    node_type = START_NODE_TYPE

    def execute(self, context: ExecutionContext, node: Node) -> ExecutionStep:
        started = time.perf_counter()
        return self.completed_step(context, node, {"message": "Workflow started"}, started)


class EndHandler(NodeHandler):
    """Terminal node; traversal stops after it."""

    node_type = END_NODE_TYPE

    def execute(self, context: ExecutionContext, node: Node) -> ExecutionStep:
        started = time.perf_counter()
        return self.completed_step(context, node, {"message": "Workflow completed"}, started)
