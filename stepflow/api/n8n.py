"""n8n API endpoints for handing generated workflows to n8n."""
import json
import re
from typing import Optional

import structlog
from fastapi import APIRouter, HTTPException
from fastapi.responses import Response
from pydantic import BaseModel, Field

from stepflow.config import get_settings
from stepflow.models.workflow import GeneratedGraph, coerce_graph
from stepflow.n8n.client import N8NClient, N8NClientError

logger = structlog.get_logger()

router = APIRouter()

WHITESPACE = re.compile(r"\s+")


class PushToN8NRequest(BaseModel):
    """Request to push a workflow to n8n."""

    workflow: dict = Field(..., description="A generated workflow or n8n workflow JSON")
    workflow_name: Optional[str] = Field(None, description="Override the workflow name")
    activate: bool = Field(False, description="Whether to activate the workflow after creation")


class PushToN8NResponse(BaseModel):
    """Response from pushing to n8n."""

    success: bool
    n8n_workflow_id: Optional[str] = None
    n8n_workflow_url: Optional[str] = None
    message: str


class N8NStatusResponse(BaseModel):
    """Response for n8n connection status."""

    configured: bool
    connected: bool
    base_url: Optional[str] = None
    message: str


class ExportRequest(BaseModel):
    """Request to download a workflow as an n8n import file."""

    workflow: dict = Field(..., description="A generated workflow or n8n workflow JSON")


def _load_graph(workflow: dict) -> GeneratedGraph:
    graph = coerce_graph(workflow)
    if graph is None:
        raise HTTPException(status_code=422, detail="Workflow is not a valid n8n workflow")
    return graph


def export_filename(name: str) -> str:
    """Download file name for a workflow."""
    return WHITESPACE.sub("_", name) + ".json"


@router.get("/n8n/status", response_model=N8NStatusResponse)
async def check_n8n_status() -> N8NStatusResponse:
    """Check if n8n is configured and accessible."""
    settings = get_settings()

    if not settings.n8n_base_url:
        return N8NStatusResponse(
            configured=False,
            connected=False,
            message="n8n base URL not configured. Set N8N_BASE_URL in environment.",
        )

    base_url = settings.n8n_editor_url()

    if not settings.has_n8n_api_key():
        return N8NStatusResponse(
            configured=True,
            connected=False,
            base_url=base_url,
            message="n8n API key not configured. Export workflows and import them manually.",
        )

    try:
        client = N8NClient()
        # Try to list workflows to verify connection
        await client.list_workflows(limit=1)

        return N8NStatusResponse(
            configured=True,
            connected=True,
            base_url=base_url,
            message="Connected to n8n successfully",
        )
    except N8NClientError as e:
        logger.error("n8n_connection_error", error=str(e), status_code=e.status_code)
        return N8NStatusResponse(
            configured=True,
            connected=False,
            base_url=base_url,
            message=f"Failed to connect to n8n: {str(e)}",
        )


@router.post("/n8n/push", response_model=PushToN8NResponse)
async def push_to_n8n(request: PushToN8NRequest) -> PushToN8NResponse:
    """
    Push a workflow to n8n.

    Creates a new workflow in n8n from the generated graph.
    Optionally activates the workflow after creation.
    """
    settings = get_settings()

    if not settings.has_n8n_api_key():
        raise HTTPException(
            status_code=400,
            detail="n8n API key not configured. Set N8N_API_KEY in environment.",
        )

    graph = _load_graph(request.workflow)
    # Tags are read-only in the n8n public API
    workflow_json = graph.to_n8n_json(include_tags=False)
    if request.workflow_name:
        workflow_json["name"] = request.workflow_name

    try:
        client = N8NClient()
        result = await client.create_workflow(workflow_json)

        n8n_workflow_id = result.get("id")
        logger.info("workflow_pushed_to_n8n", n8n_workflow_id=n8n_workflow_id)

        if request.activate and n8n_workflow_id:
            try:
                await client.activate_workflow(n8n_workflow_id)
                logger.info("workflow_activated", n8n_workflow_id=n8n_workflow_id)
            except N8NClientError as e:
                logger.warning("workflow_activation_failed", error=str(e))

        return PushToN8NResponse(
            success=True,
            n8n_workflow_id=n8n_workflow_id,
            n8n_workflow_url=f"{settings.n8n_editor_url()}/workflow/{n8n_workflow_id}",
            message="Workflow created successfully in n8n",
        )

    except N8NClientError as e:
        # Include the actual n8n error response for better debugging
        error_detail = str(e)
        if e.response_body:
            error_detail = f"{e}: {e.response_body}"
        logger.error("n8n_push_error", error=str(e), status_code=e.status_code, response_body=e.response_body)
        raise HTTPException(
            status_code=e.status_code or 502,
            detail=f"Failed to push to n8n: {error_detail}",
        )


@router.post("/n8n/export")
async def export_workflow(request: ExportRequest) -> Response:
    """Download a workflow as a JSON file for manual import into n8n."""
    graph = _load_graph(request.workflow)
    filename = export_filename(graph.name)

    logger.info("workflow_exported", filename=filename, node_count=len(graph.nodes))

    return Response(
        content=json.dumps(graph.to_n8n_json(), indent=2),
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
