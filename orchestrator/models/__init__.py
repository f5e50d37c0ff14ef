"""Data models for the workflow orchestrator."""

from .core import (
    ConditionInput,
    EdgeResponse,
    ExecuteWorkflowRequest,
    ExecutionDetail,
    ExecutionResponse,
    ExecutionStatusEnum,
    ExecutionStep,
    ExecutionSummary,
    ExecutionsListResponse,
    FormData,
    NodeResponse,
    StepStatus,
    WorkflowResponse,
)

__all__ = [
    "ConditionInput",
    "EdgeResponse",
    "ExecuteWorkflowRequest",
    "ExecutionDetail",
    "ExecutionResponse",
    "ExecutionStatusEnum",
    "ExecutionStep",
    "ExecutionSummary",
    "ExecutionsListResponse",
    "FormData",
    "NodeResponse",
    "StepStatus",
    "WorkflowResponse",
]
