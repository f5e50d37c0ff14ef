"""FastAPI REST endpoints for the workflow orchestrator."""

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from ..core.exceptions import WorkflowEngineError, create_error_response, get_status_code_for_error
from ..core.logging import get_logger
from ..core.registry import HandlerRegistry
from ..core.workflow_service import WorkflowService
from ..integrations.weather import CITY_COORDINATES
from ..models.core import (
    CamelModel,
    ExecuteWorkflowRequest,
    ExecutionDetail,
    ExecutionResponse,
    ExecutionsListResponse,
    WorkflowResponse,
)

logger = get_logger(__name__)

# Create router
router = APIRouter(prefix="/api/v1", tags=["workflow"])

# Global instances (initialized by the application lifespan)
_workflow_service: Optional[WorkflowService] = None
_handler_registry: Optional[HandlerRegistry] = None


def init_dependencies(workflow_service: WorkflowService, handler_registry: HandlerRegistry):
    """Initialize the global dependencies."""
    global _workflow_service, _handler_registry
    _workflow_service = workflow_service
    _handler_registry = handler_registry


def get_workflow_service() -> WorkflowService:
    """Dependency to get the workflow service."""
    if _workflow_service is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Workflow service not initialized"
        )
    return _workflow_service


def get_handler_registry() -> HandlerRegistry:
    """Dependency to get the handler registry."""
    if _handler_registry is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Handler registry not initialized"
        )
    return _handler_registry


class NodeTypesResponse(CamelModel):
    """Node types the executor can run."""
    node_types: List[str] = Field(..., description="Registered node types")


class City(BaseModel):
    """A city supported by the weather integration."""
    name: str
    latitude: float
    longitude: float


class CitiesResponse(BaseModel):
    """Cities supported by the weather integration."""
    cities: List[City] = Field(default_factory=list)


def _validate_id(value: str, kind: str) -> str:
    """Reject identifiers that are not UUIDs with a 400 response."""
    try:
        uuid.UUID(value)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "error": "InvalidID",
                "message": f"Invalid {kind} ID format",
                "details": {f"{kind}_id": value}
            }
        )
    return value


def _raise_http_error(e: WorkflowEngineError, action: str) -> None:
    status_code = get_status_code_for_error(e)
    if status_code >= 500:
        logger.error(f"Error while {action}: {e.message}")
    else:
        logger.warning(f"Rejected request while {action}: {e.message}")
    raise HTTPException(status_code=status_code, detail=create_error_response(e))


# Endpoints

@router.get(
    "/workflows/{workflow_id}",
    response_model=WorkflowResponse,
    summary="Get a workflow definition",
    description="Retrieve a workflow with its nodes and edges in canvas format"
)
async def get_workflow(
    workflow_id: str,
    service: WorkflowService = Depends(get_workflow_service)
) -> WorkflowResponse:
    """
    Get a workflow definition.

    Raises:
        HTTPException: 400 for a malformed ID, 404 if the workflow does not exist
    """
    _validate_id(workflow_id, "workflow")
    try:
        return service.get_workflow(workflow_id)
    except WorkflowEngineError as e:
        _raise_http_error(e, f"loading workflow {workflow_id}")


@router.post(
    "/workflows/{workflow_id}/execute",
    response_model=ExecutionResponse,
    response_model_exclude_none=True,
    summary="Execute a workflow",
    description="Run a workflow synchronously with the submitted form data and return its trace"
)
def execute_workflow(
    workflow_id: str,
    request: ExecuteWorkflowRequest,
    service: WorkflowService = Depends(get_workflow_service)
) -> ExecutionResponse:
    """
    Execute a workflow.

    A handler failure still returns 200 with ``status`` set to ``failed``;
    the last step carries the error message.

    Raises:
        HTTPException: 400 for a malformed ID or invalid graph, 404 if the
            workflow does not exist, 500 if storage fails
    """
    _validate_id(workflow_id, "workflow")
    try:
        response = service.execute_workflow(workflow_id, request)
    except WorkflowEngineError as e:
        _raise_http_error(e, f"executing workflow {workflow_id}")

    logger.info(
        f"Workflow {workflow_id} execution {response.execution_id} finished "
        f"with status {response.status.value} in {response.total_duration}ms"
    )
    return response


@router.get(
    "/workflows/{workflow_id}/executions",
    response_model=ExecutionsListResponse,
    response_model_exclude_none=True,
    summary="List workflow executions",
    description="Retrieve the execution history of a workflow, newest first"
)
async def list_executions(
    workflow_id: str,
    service: WorkflowService = Depends(get_workflow_service)
) -> ExecutionsListResponse:
    _validate_id(workflow_id, "workflow")
    try:
        return ExecutionsListResponse(executions=service.list_executions(workflow_id))
    except WorkflowEngineError as e:
        _raise_http_error(e, f"listing executions of workflow {workflow_id}")


@router.get(
    "/executions/{execution_id}",
    response_model=ExecutionDetail,
    response_model_exclude_none=True,
    summary="Get an execution",
    description="Retrieve a stored execution with its trace and final context"
)
async def get_execution(
    execution_id: str,
    service: WorkflowService = Depends(get_workflow_service)
) -> ExecutionDetail:
    _validate_id(execution_id, "execution")
    try:
        return service.get_execution(execution_id)
    except WorkflowEngineError as e:
        _raise_http_error(e, f"loading execution {execution_id}")


@router.get(
    "/node-types",
    response_model=NodeTypesResponse,
    summary="List node types",
    description="List the node types the executor has handlers for"
)
async def list_node_types(
    registry: HandlerRegistry = Depends(get_handler_registry)
) -> NodeTypesResponse:
    return NodeTypesResponse(node_types=registry.node_types())


@router.get(
    "/cities",
    response_model=CitiesResponse,
    summary="List supported cities",
    description="List the cities the weather integration can look up"
)
async def list_cities() -> CitiesResponse:
    return CitiesResponse(
        cities=[
            City(name=name, latitude=lat, longitude=lon)
            for name, (lat, lon) in CITY_COORDINATES.items()
        ]
    )
