"""Workflow explanation parsing."""
from stepflow.workflow.parser import find_duplicate_indices, parse_workflow_steps

__all__ = ["find_duplicate_indices", "parse_workflow_steps"]
