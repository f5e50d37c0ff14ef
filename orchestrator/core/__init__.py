"""Core workflow engine components."""

from .context import CancellationToken, ExecutionContext
from .exceptions import (
    AmbiguousBranchError,
    ConfigurationError,
    CycleDetectedError,
    ExecutionCancelledError,
    ExecutionNotFoundError,
    GraphValidationError,
    HandlerExecutionError,
    IntegrationError,
    NoStartNodeError,
    NodeNotFoundError,
    StorageError,
    TraversalError,
    UnknownNodeTypeError,
    WorkflowEngineError,
    WorkflowNotFoundError,
)
from .executor import ExecutionResult, Executor
from .graph import Edge, Graph, Node, build_graph
from .logging import get_logger, setup_logging
from .registry import HandlerRegistry

__all__ = [
    "AmbiguousBranchError",
    "CancellationToken",
    "ConfigurationError",
    "CycleDetectedError",
    "Edge",
    "ExecutionCancelledError",
    "ExecutionContext",
    "ExecutionNotFoundError",
    "ExecutionResult",
    "Executor",
    "Graph",
    "GraphValidationError",
    "HandlerExecutionError",
    "HandlerRegistry",
    "IntegrationError",
    "Node",
    "NoStartNodeError",
    "NodeNotFoundError",
    "StorageError",
    "TraversalError",
    "UnknownNodeTypeError",
    "WorkflowEngineError",
    "WorkflowNotFoundError",
    "build_graph",
    "get_logger",
    "setup_logging",
]
