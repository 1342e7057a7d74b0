"""Pydantic models for the workflow generator."""
from stepflow.models.workflow import (
    Actor,
    Approach,
    ConnectionTarget,
    GeneratedGraph,
    GenerationOptions,
    GraphNode,
    NodeConnections,
    NodeRole,
    Platform,
    WorkflowStep,
)

__all__ = [
    "Actor",
    "Approach",
    "ConnectionTarget",
    "GeneratedGraph",
    "GenerationOptions",
    "GraphNode",
    "NodeConnections",
    "NodeRole",
    "Platform",
    "WorkflowStep",
]
