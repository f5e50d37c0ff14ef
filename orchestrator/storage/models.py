"""SQLAlchemy database models for the workflow orchestrator."""

from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from .database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class WorkflowModel(Base):
    """Database model for workflow definitions."""
    __tablename__ = "workflows"

    id = Column(String(36), primary_key=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, default="")
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    nodes = relationship(
        "WorkflowNodeModel", back_populates="workflow",
        cascade="all, delete-orphan", order_by="WorkflowNodeModel.id"
    )
    edges = relationship(
        "WorkflowEdgeModel", back_populates="workflow",
        cascade="all, delete-orphan", order_by="WorkflowEdgeModel.id"
    )
    executions = relationship(
        "WorkflowExecutionModel", back_populates="workflow", cascade="all, delete-orphan"
    )


class WorkflowNodeModel(Base):
    """A node placed on a workflow canvas."""
    __tablename__ = "workflow_nodes"
    __table_args__ = (UniqueConstraint("workflow_id", "node_id", name="uq_workflow_node"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    workflow_id = Column(String(36), ForeignKey("workflows.id", ondelete="CASCADE"), nullable=False, index=True)
    node_id = Column(String(100), nullable=False)
    node_type = Column(String(50), nullable=False)
    label = Column(String(255), default="")
    description = Column(Text, default="")
    x_pos = Column(Float, nullable=False, default=0.0)
    y_pos = Column(Float, nullable=False, default=0.0)
    node_metadata = Column("metadata", JSON, default=dict)

    workflow = relationship("WorkflowModel", back_populates="nodes")


class WorkflowEdgeModel(Base):
    """A connection between two nodes of a workflow.

    Rows are returned in insertion order, which is the order traversal tries
    a node's outgoing edges.
    """
    __tablename__ = "workflow_edges"
    __table_args__ = (UniqueConstraint("workflow_id", "edge_id", name="uq_workflow_edge"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    workflow_id = Column(String(36), ForeignKey("workflows.id", ondelete="CASCADE"), nullable=False, index=True)
    edge_id = Column(String(100), nullable=False)
    source_id = Column(String(100), nullable=False)
    target_id = Column(String(100), nullable=False)
    source_handle = Column(String(50))  # "true", "false" or null
    edge_type = Column(String(50), default="smoothstep")
    animated = Column(Boolean, default=True)
    label = Column(String(255))
    style = Column(JSON)
    label_style = Column(JSON)

    workflow = relationship("WorkflowModel", back_populates="edges")


class WorkflowExecutionModel(Base):
    """Database model for completed workflow executions."""
    __tablename__ = "workflow_executions"

    id = Column(String(36), primary_key=True)
    workflow_id = Column(String(36), ForeignKey("workflows.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(String(20), nullable=False)  # completed, failed
    executed_at = Column(DateTime(timezone=True), default=_utcnow, index=True)
    total_duration = Column(Integer, default=0)  # milliseconds
    final_context = Column(JSON)
    execution_trace = Column(JSON)  # List of serialized execution steps
    error_message = Column(Text)

    workflow = relationship("WorkflowModel", back_populates="executions")
