"""Workflow orchestrator: executes declarative node graphs step by step."""

__version__ = "1.0.0"
