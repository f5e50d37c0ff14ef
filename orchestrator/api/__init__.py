"""HTTP API for the workflow orchestrator."""

from .endpoints import init_dependencies, router

__all__ = ["init_dependencies", "router"]
