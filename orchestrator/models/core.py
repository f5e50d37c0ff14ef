"""Core Pydantic models for the workflow orchestrator."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


def isoformat_utc(moment: Optional[datetime] = None) -> str:
    """Render a timestamp as second-precision ISO-8601 in UTC."""
    moment = moment or datetime.now(timezone.utc)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")


class CamelModel(BaseModel):
    """Base model whose wire format uses camelCase keys."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class StepStatus(str, Enum):
    """Outcome of a single visited node."""
    COMPLETED = "completed"
    FAILED = "failed"


class ExecutionStatusEnum(str, Enum):
    """Outcome of a whole workflow execution."""
    COMPLETED = "completed"
    FAILED = "failed"


class ExecutionStep(CamelModel):
    """Immutable record produced once per visited node."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    step_number: int = Field(..., ge=0, description="Position of the step in the trace, starting at 1")
    node_id: str = Field("", description="ID of the visited node")
    node_type: str = Field(..., description="Type tag of the visited node")
    status: StepStatus = Field(..., description="Whether the handler completed or failed")
    duration: int = Field(0, ge=0, description="Handler duration in milliseconds")
    output: Dict[str, Any] = Field(default_factory=dict, description="Handler-specific payload")
    timestamp: str = Field(..., description="ISO-8601 timestamp of the step")
    error: Optional[str] = Field(None, description="Error message when the step failed")

    def to_wire(self) -> Dict[str, Any]:
        """Serialize to the JSON shape returned to API clients."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    @property
    def condition_result(self) -> Optional[bool]:
        """Boolean result carried by a condition step, if any."""
        payload = self.output.get("conditionResult")
        if isinstance(payload, dict) and isinstance(payload.get("result"), bool):
            return payload["result"]
        return None


class FormData(CamelModel):
    """User input submitted with an execution request."""
    name: str = Field("", description="Recipient name")
    email: str = Field("", description="Recipient email address")
    city: str = Field("", description="City to look up weather for")
    phone: str = Field("", description="Recipient phone number for SMS nodes")
    operator: Optional[str] = Field(None, description="Comparison operator for condition nodes")
    threshold: Optional[float] = Field(None, description="Threshold for condition nodes")

    @field_validator("name", "email", "city", "phone")
    @classmethod
    def strip_whitespace(cls, value):
        """Trim surrounding whitespace from text inputs."""
        return value.strip() if isinstance(value, str) else value


class ConditionInput(CamelModel):
    """Condition parameters supplied by the caller."""
    operator: str = Field(..., description="Comparison operator, e.g. greater_than")
    threshold: float = Field(..., description="Value the temperature is compared against")


class ExecuteWorkflowRequest(CamelModel):
    """Request body for executing a workflow."""
    form_data: FormData = Field(default_factory=FormData, description="User input values")
    condition: Optional[ConditionInput] = Field(None, description="Condition parameters")

    def to_initial_state(self) -> Dict[str, Any]:
        """Flatten the request into execution context state keys."""
        state: Dict[str, Any] = {
            "form.name": self.form_data.name,
            "form.email": self.form_data.email,
            "form.city": self.form_data.city,
            "form.phone": self.form_data.phone,
        }

        operator = self.condition.operator if self.condition else self.form_data.operator
        threshold = self.condition.threshold if self.condition else self.form_data.threshold
        if operator:
            state["condition.operator"] = operator
        if threshold is not None:
            state["condition.threshold"] = float(threshold)

        return state


class ExecutionResponse(CamelModel):
    """Response for a workflow execution."""
    execution_id: str = Field(..., description="Unique identifier of the execution")
    workflow_id: str = Field(..., description="ID of the executed workflow")
    status: ExecutionStatusEnum = Field(..., description="Overall execution outcome")
    start_time: str = Field(..., description="ISO-8601 start time")
    end_time: str = Field(..., description="ISO-8601 end time")
    total_duration: int = Field(0, ge=0, description="Total duration in milliseconds")
    steps: List[ExecutionStep] = Field(default_factory=list, description="Ordered execution trace")
    error: Optional[str] = Field(None, description="Error that halted the execution")


class ExecutionSummary(CamelModel):
    """Summary of a stored execution for history listings."""
    id: str
    workflow_id: str
    status: ExecutionStatusEnum
    executed_at: str
    error: Optional[str] = None


class ExecutionDetail(ExecutionSummary):
    """Stored execution including its trace and final context."""
    steps: List[ExecutionStep] = Field(default_factory=list)
    final_context: Dict[str, Any] = Field(default_factory=dict)


class ExecutionsListResponse(CamelModel):
    """Execution history of a workflow, newest first."""
    executions: List[ExecutionSummary] = Field(default_factory=list)


class NodePosition(CamelModel):
    """Canvas coordinates of a node."""
    x: float = 0.0
    y: float = 0.0


class NodeData(CamelModel):
    """Display and configuration data of a node."""
    label: str = ""
    description: str = ""
    metadata: Dict[str, Any] = Field(default_factory=dict)


class NodeResponse(CamelModel):
    """A node as rendered by the workflow canvas."""
    id: str
    type: str
    position: NodePosition = Field(default_factory=NodePosition)
    data: NodeData = Field(default_factory=NodeData)


class EdgeResponse(CamelModel):
    """An edge as rendered by the workflow canvas."""
    id: str
    source: str
    target: str
    type: str = ""
    source_handle: Optional[str] = None
    animated: bool = False
    style: Optional[Dict[str, Any]] = None
    label: Optional[str] = None
    label_style: Optional[Dict[str, Any]] = None


class WorkflowResponse(CamelModel):
    """A workflow definition with its nodes and edges."""
    id: str
    name: str = ""
    description: str = ""
    nodes: List[NodeResponse] = Field(default_factory=list)
    edges: List[EdgeResponse] = Field(default_factory=list)
