"""Workflow renderers."""
from stepflow.render.mermaid import (
    normalize_mermaid,
    sanitize_mermaid,
    steps_to_mermaid,
    workflow_to_mermaid,
)
from stepflow.render.text import print_workflow, print_workflow_compact, workflow_to_text

__all__ = [
    "normalize_mermaid",
    "sanitize_mermaid",
    "steps_to_mermaid",
    "workflow_to_mermaid",
    "print_workflow",
    "print_workflow_compact",
    "workflow_to_text",
]
