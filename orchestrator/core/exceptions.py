"""Custom exceptions for the workflow orchestrator with detailed error information."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional


class ErrorSeverity(Enum):
    """Error severity levels for categorizing exceptions."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCategory(Enum):
    """Categories of errors for better classification."""
    VALIDATION = "validation"
    TRAVERSAL = "traversal"
    EXECUTION = "execution"
    INTEGRATION = "integration"
    STORAGE = "storage"
    CONFIGURATION = "configuration"


class WorkflowEngineError(Exception):
    """Base exception for all workflow orchestrator errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        category: ErrorCategory = ErrorCategory.EXECUTION,
        details: Optional[Dict[str, Any]] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.severity = severity
        self.category = category
        self.details = details or {}
        self.context = context or {}
        self.timestamp = datetime.now(timezone.utc)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging and API responses."""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "severity": self.severity.value,
            "category": self.category.value,
            "details": self.details,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "exception_type": self.__class__.__name__
        }

    def add_context(self, **kwargs):
        """Add additional context to the exception."""
        self.context.update(kwargs)
        return self

    def add_details(self, **kwargs):
        """Add additional details to the exception."""
        self.details.update(kwargs)
        return self


class GraphValidationError(WorkflowEngineError):
    """Raised when a workflow graph cannot be built or is structurally invalid."""

    def __init__(self, message: str, workflow_id: Optional[str] = None, **kwargs):
        kwargs.setdefault("severity", ErrorSeverity.MEDIUM)
        kwargs.setdefault("category", ErrorCategory.VALIDATION)
        super().__init__(message, **kwargs)
        if workflow_id:
            self.add_context(workflow_id=workflow_id)


class NoStartNodeError(GraphValidationError):
    """Raised when a graph has no node of type ``start``."""

    def __init__(self, message: str = "graph has no start node", **kwargs):
        super().__init__(message, **kwargs)


class TraversalError(WorkflowEngineError):
    """Base class for failures detected while walking the graph."""

    def __init__(self, message: str, node_id: Optional[str] = None, **kwargs):
        kwargs.setdefault("severity", ErrorSeverity.HIGH)
        kwargs.setdefault("category", ErrorCategory.TRAVERSAL)
        super().__init__(message, **kwargs)
        self.node_id = node_id
        if node_id:
            self.add_context(node_id=node_id)


class CycleDetectedError(TraversalError):
    """Raised when traversal reaches a node it already visited in the same run."""

    def __init__(self, node_id: str, **kwargs):
        super().__init__(f"cycle detected at node {node_id}", node_id=node_id, **kwargs)


class NodeNotFoundError(TraversalError):
    """Raised when an edge points at a node id that is not in the graph."""

    def __init__(self, node_id: str, **kwargs):
        super().__init__(f"node not found: {node_id}", node_id=node_id, **kwargs)


class UnknownNodeTypeError(TraversalError):
    """Raised when no handler is registered for a node's type."""

    def __init__(self, node_type: str, node_id: Optional[str] = None, **kwargs):
        super().__init__(f"no handler for node type: {node_type}", node_id=node_id, **kwargs)
        self.node_type = node_type
        self.add_details(node_type=node_type)


class AmbiguousBranchError(TraversalError):
    """Raised in strict branching mode when no edge carries the computed branch label."""

    def __init__(self, node_id: str, branch_label: str, **kwargs):
        super().__init__(
            f"no outgoing edge labeled '{branch_label}' from condition node {node_id}",
            node_id=node_id,
            **kwargs
        )
        self.branch_label = branch_label
        self.add_details(branch_label=branch_label)


class HandlerExecutionError(WorkflowEngineError):
    """Raised by a node handler when it cannot complete its step."""

    def __init__(
        self,
        message: str,
        node_id: Optional[str] = None,
        node_type: Optional[str] = None,
        **kwargs
    ):
        kwargs.setdefault("severity", ErrorSeverity.HIGH)
        kwargs.setdefault("category", ErrorCategory.EXECUTION)
        super().__init__(message, **kwargs)
        self.node_id = node_id
        self.node_type = node_type
        if node_id:
            self.add_context(node_id=node_id)
        if node_type:
            self.add_context(node_type=node_type)


class ExecutionCancelledError(HandlerExecutionError):
    """Raised when an execution's cancellation token fires or its deadline passes."""

    def __init__(self, message: str = "execution cancelled", **kwargs):
        super().__init__(message, **kwargs)


class IntegrationError(WorkflowEngineError):
    """Raised when an external collaborator (weather, flood, email, SMS) fails."""

    def __init__(self, message: str, service: Optional[str] = None, **kwargs):
        kwargs.setdefault("severity", ErrorSeverity.MEDIUM)
        kwargs.setdefault("category", ErrorCategory.INTEGRATION)
        super().__init__(message, **kwargs)
        if service:
            self.add_context(service=service)


class StorageError(WorkflowEngineError):
    """Raised when storage operations fail."""

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        table: Optional[str] = None,
        **kwargs
    ):
        kwargs.setdefault("severity", ErrorSeverity.HIGH)
        kwargs.setdefault("category", ErrorCategory.STORAGE)
        super().__init__(message, **kwargs)
        if operation:
            self.add_context(operation=operation)
        if table:
            self.add_context(table=table)


class WorkflowNotFoundError(StorageError):
    """Raised when a workflow id has no stored definition."""

    def __init__(self, workflow_id: str, **kwargs):
        super().__init__(f"workflow {workflow_id} not found", table="workflows", **kwargs)
        self.add_context(workflow_id=workflow_id)


class ExecutionNotFoundError(StorageError):
    """Raised when an execution id has no stored record."""

    def __init__(self, execution_id: str, **kwargs):
        super().__init__(
            f"execution {execution_id} not found", table="workflow_executions", **kwargs
        )
        self.add_context(execution_id=execution_id)


class ConfigurationError(WorkflowEngineError):
    """Raised when configuration is invalid or missing."""

    def __init__(self, message: str, config_key: Optional[str] = None, **kwargs):
        kwargs.setdefault("severity", ErrorSeverity.HIGH)
        kwargs.setdefault("category", ErrorCategory.CONFIGURATION)
        super().__init__(message, **kwargs)
        if config_key:
            self.add_context(config_key=config_key)


def create_error_response(error: WorkflowEngineError) -> Dict[str, Any]:
    """Create a standardized error response from a WorkflowEngineError."""
    return {
        "error": error.error_code,
        "message": error.message,
        "details": {
            **error.details,
            "severity": error.severity.value,
            "category": error.category.value,
            "timestamp": error.timestamp.isoformat()
        },
        "context": error.context
    }


def get_status_code_for_error(error: WorkflowEngineError) -> int:
    """Map a workflow engine error to the HTTP status code the API returns."""
    if isinstance(error, (WorkflowNotFoundError, ExecutionNotFoundError)):
        return 404
    if isinstance(error, GraphValidationError):
        return 400
    if isinstance(error, IntegrationError):
        return 502
    return 500
