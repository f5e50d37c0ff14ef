"""Database models and storage layer."""

from .database import Base, create_tables, drop_tables, init_database, session_scope
from .models import WorkflowEdgeModel, WorkflowExecutionModel, WorkflowModel, WorkflowNodeModel
from .repository import WorkflowRepository
from .seed import WEATHER_WORKFLOW_ID, seed_weather_workflow

__all__ = [
    "Base",
    "WEATHER_WORKFLOW_ID",
    "WorkflowEdgeModel",
    "WorkflowExecutionModel",
    "WorkflowModel",
    "WorkflowNodeModel",
    "WorkflowRepository",
    "create_tables",
    "drop_tables",
    "init_database",
    "seed_weather_workflow",
    "session_scope",
]
