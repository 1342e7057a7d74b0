"""n8n integration modules."""
from stepflow.n8n.client import N8NClient, N8NClientError
from stepflow.n8n.generator import (
    DuplicateStepError,
    EmptyWorkflowError,
    WorkflowGenerationError,
    WorkflowGenerator,
    generate_n8n_workflow,
    validate_workflow,
)
from stepflow.n8n.templates import NODE_TEMPLATES, get_template

__all__ = [
    "N8NClient",
    "N8NClientError",
    "DuplicateStepError",
    "EmptyWorkflowError",
    "WorkflowGenerationError",
    "WorkflowGenerator",
    "generate_n8n_workflow",
    "validate_workflow",
    "NODE_TEMPLATES",
    "get_template",
]
