"""API route modules."""
from stepflow.api import diagrams, n8n, templates, workflows

__all__ = ["diagrams", "n8n", "templates", "workflows"]
