"""Form node handler."""

import time

from ..core.context import ExecutionContext
from ..core.graph import Node
from ..models.core import ExecutionStep
from .base import NodeHandler


class FormHandler(NodeHandler):
    """Echoes the user input submitted with the execution request.

    The values are seeded into the context as ``form.name``, ``form.email``
    and ``form.city`` before traversal starts.
    """

    node_type = "form"

    def execute(self, context: ExecutionContext, node: Node) -> ExecutionStep:
        started = time.perf_counter()
        form_data = {
            "name": context.get_string("form.name"),
            "email": context.get_string("form.email"),
            "city": context.get_string("form.city"),
        }
        output = {
            "message": "User input collected",
            "formData": form_data,
        }
        return self.completed_step(context, node, output, started)
