"""Persistence of workflow definitions and execution history."""

import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import ExecutionNotFoundError, StorageError, WorkflowNotFoundError
from ..core.logging import get_logger
from .database import session_scope
from .models import WorkflowEdgeModel, WorkflowExecutionModel, WorkflowModel, WorkflowNodeModel

logger = get_logger(__name__)


class WorkflowRepository:
    """Reads and writes workflows, their nodes and edges, and execution records."""

    def __init__(self, db_session: Optional[Session] = None):
        """Initialize the repository with an optional database session.

        Without a session, each operation opens and closes its own.
        """
        self._db_session = db_session

    @contextmanager
    def _session(self) -> Iterator[Session]:
        if self._db_session is not None:
            yield self._db_session
            return
        with session_scope() as db:
            yield db

    def get_workflow(self, workflow_id: str) -> WorkflowModel:
        """
        Retrieve a workflow by its ID.

        Raises:
            WorkflowNotFoundError: If no workflow has this ID
            StorageError: If the query fails
        """
        try:
            with self._session() as db:
                workflow = db.query(WorkflowModel).filter(WorkflowModel.id == workflow_id).first()
        except SQLAlchemyError as e:
            logger.error(f"Database error while loading workflow {workflow_id}: {e}")
            raise StorageError(f"Failed to load workflow: {e}", operation="get_workflow", table="workflows")

        if workflow is None:
            raise WorkflowNotFoundError(workflow_id)
        return workflow

    def workflow_exists(self, workflow_id: str) -> bool:
        try:
            with self._session() as db:
                return db.query(WorkflowModel.id).filter(WorkflowModel.id == workflow_id).first() is not None
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to check workflow: {e}", operation="workflow_exists", table="workflows")

    def get_nodes(self, workflow_id: str) -> List[WorkflowNodeModel]:
        """Nodes of a workflow in insertion order."""
        try:
            with self._session() as db:
                return (
                    db.query(WorkflowNodeModel)
                    .filter(WorkflowNodeModel.workflow_id == workflow_id)
                    .order_by(WorkflowNodeModel.id)
                    .all()
                )
        except SQLAlchemyError as e:
            logger.error(f"Database error while loading nodes of {workflow_id}: {e}")
            raise StorageError(f"Failed to load nodes: {e}", operation="get_nodes", table="workflow_nodes")

    def get_edges(self, workflow_id: str) -> List[WorkflowEdgeModel]:
        """Edges of a workflow in insertion order."""
        try:
            with self._session() as db:
                return (
                    db.query(WorkflowEdgeModel)
                    .filter(WorkflowEdgeModel.workflow_id == workflow_id)
                    .order_by(WorkflowEdgeModel.id)
                    .all()
                )
        except SQLAlchemyError as e:
            logger.error(f"Database error while loading edges of {workflow_id}: {e}")
            raise StorageError(f"Failed to load edges: {e}", operation="get_edges", table="workflow_edges")

    def create_workflow(
        self,
        name: str,
        nodes: Sequence[Dict[str, Any]],
        edges: Sequence[Dict[str, Any]],
        workflow_id: Optional[str] = None,
        description: str = ""
    ) -> str:
        """
        Store a workflow together with its nodes and edges.

        Args:
            name: Display name
            nodes: Column values for ``WorkflowNodeModel`` rows
            edges: Column values for ``WorkflowEdgeModel`` rows, in traversal order
            workflow_id: ID to use, generated when omitted
            description: Optional description

        Returns:
            str: The workflow ID

        Raises:
            StorageError: If the insert fails
        """
        workflow_id = workflow_id or str(uuid.uuid4())

        try:
            with self._session() as db:
                workflow = WorkflowModel(id=workflow_id, name=name, description=description)
                workflow.nodes = [WorkflowNodeModel(**node) for node in nodes]
                workflow.edges = [WorkflowEdgeModel(**edge) for edge in edges]
                db.add(workflow)
                try:
                    db.commit()
                except SQLAlchemyError:
                    db.rollback()
                    raise
        except SQLAlchemyError as e:
            logger.error(f"Database error while creating workflow '{name}': {e}")
            raise StorageError(f"Failed to store workflow: {e}", operation="create_workflow", table="workflows")

        logger.info(f"Created workflow '{name}' with ID: {workflow_id}")
        return workflow_id

    def create_execution(
        self,
        workflow_id: str,
        status: str,
        execution_trace: List[Dict[str, Any]],
        final_context: Optional[Dict[str, Any]] = None,
        error_message: Optional[str] = None,
        total_duration: int = 0,
        executed_at: Optional[datetime] = None,
        execution_id: Optional[str] = None
    ) -> str:
        """
        Record a finished execution.

        Returns:
            str: The execution ID

        Raises:
            StorageError: If the insert fails
        """
        execution_id = execution_id or str(uuid.uuid4())

        try:
            with self._session() as db:
                execution = WorkflowExecutionModel(
                    id=execution_id,
                    workflow_id=workflow_id,
                    status=status,
                    executed_at=executed_at or datetime.now(timezone.utc),
                    total_duration=total_duration,
                    final_context=final_context or {},
                    execution_trace=execution_trace,
                    error_message=error_message
                )
                db.add(execution)
                try:
                    db.commit()
                except SQLAlchemyError:
                    db.rollback()
                    raise
        except SQLAlchemyError as e:
            logger.error(f"Database error while storing execution {execution_id}: {e}")
            raise StorageError(
                f"Failed to store execution: {e}",
                operation="create_execution",
                table="workflow_executions"
            )

        logger.debug(f"Stored execution {execution_id} of workflow {workflow_id} ({status})")
        return execution_id

    def get_execution(self, execution_id: str) -> WorkflowExecutionModel:
        """
        Raises:
            ExecutionNotFoundError: If no execution has this ID
            StorageError: If the query fails
        """
        try:
            with self._session() as db:
                execution = (
                    db.query(WorkflowExecutionModel)
                    .filter(WorkflowExecutionModel.id == execution_id)
                    .first()
                )
        except SQLAlchemyError as e:
            raise StorageError(
                f"Failed to load execution: {e}",
                operation="get_execution",
                table="workflow_executions"
            )

        if execution is None:
            raise ExecutionNotFoundError(execution_id)
        return execution

    def list_executions(self, workflow_id: str, limit: int = 50) -> List[WorkflowExecutionModel]:
        """Executions of a workflow, newest first."""
        try:
            with self._session() as db:
                return (
                    db.query(WorkflowExecutionModel)
                    .filter(WorkflowExecutionModel.workflow_id == workflow_id)
                    .order_by(WorkflowExecutionModel.executed_at.desc())
                    .limit(limit)
                    .all()
                )
        except SQLAlchemyError as e:
            raise StorageError(
                f"Failed to list executions: {e}",
                operation="list_executions",
                table="workflow_executions"
            )
