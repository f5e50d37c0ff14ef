"""Condition node handler and comparison operators."""

import operator
import time
from typing import Any, Dict

from ..core.context import ExecutionContext
from ..core.graph import Node
from ..models.core import ExecutionStep
from .base import NodeHandler

OPERATORS = {
    "greater_than": operator.gt,
    "less_than": operator.lt,
    "equals": operator.eq,
    "equal_to": operator.eq,
    "greater_than_or_equal": operator.ge,
    "less_than_or_equal": operator.le,
}


def evaluate_condition(value: float, operator_name: str, threshold: float) -> bool:
    """
    Compare a value against a threshold.

    Equality is exact float equality.

    Args:
        value: Left-hand side, e.g. the measured temperature
        operator_name: One of the keys of ``OPERATORS``
        threshold: Right-hand side

    Returns:
        bool: The comparison result

    Raises:
        ValueError: If the operator is not recognized
    """
    try:
        compare = OPERATORS[operator_name]
    except KeyError:
        raise ValueError(f"unsupported operator: {operator_name!r}") from None
    return compare(value, threshold)


class ConditionHandler(NodeHandler):
    """Compares ``weather.temperature`` against a threshold.

    The operator and threshold come from the node metadata; when the metadata
    leaves them out, the ``condition.operator`` and ``condition.threshold``
    supplied with the execution request are used instead. The result drives
    which labeled edge the executor follows.
    """

    node_type = "condition"

    def execute(self, context: ExecutionContext, node: Node) -> ExecutionStep:
        started = time.perf_counter()

        metadata = self.parse_metadata(node)
        operator_name = self._resolve_operator(context, node, metadata)
        threshold = self._resolve_threshold(context, node, metadata)
        temperature = context.get_float("weather.temperature")

        try:
            result = evaluate_condition(temperature, operator_name, threshold)
        except ValueError as e:
            raise self.fail(node, str(e)) from e

        output = {
            "message": (
                f"Condition evaluated: temperature {temperature:.1f}°C "
                f"{operator_name} {threshold:.1f}°C"
            ),
            "conditionResult": {
                "expression": f"temperature {operator_name} {threshold:.1f}",
                "result": result,
                "temperature": temperature,
                "operator": operator_name,
                "threshold": threshold,
            },
        }
        return self.completed_step(context, node, output, started)

    def _resolve_operator(self, context: ExecutionContext, node: Node, metadata: Dict[str, Any]) -> str:
        operator_name = metadata.get("operator")
        if not operator_name:
            operator_name = context.get_string("condition.operator")
        if not isinstance(operator_name, str) or not operator_name:
            raise self.fail(node, "condition operator not specified")
        return operator_name

    def _resolve_threshold(self, context: ExecutionContext, node: Node, metadata: Dict[str, Any]) -> float:
        if "threshold" not in metadata:
            return context.get_float("condition.threshold")

        threshold = metadata["threshold"]
        # JSON numbers only; bool is an int subclass and strings are not coerced
        if isinstance(threshold, bool) or not isinstance(threshold, (int, float)):
            raise self.fail(node, f"condition threshold must be a number, got {threshold!r}")
        return float(threshold)
