"""Workflow API endpoints - parse, generate and render workflows."""
from typing import Optional

import structlog
from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field, ValidationError

from stepflow.models.workflow import GeneratedGraph, GenerationOptions, WorkflowStep
from stepflow.n8n.generator import WorkflowGenerationError, WorkflowGenerator, validate_workflow
from stepflow.render import print_workflow, workflow_to_mermaid, workflow_to_text
from stepflow.workflow.parser import parse_workflow_steps

logger = structlog.get_logger()

router = APIRouter()


class ParseRequest(BaseModel):
    """Request body for step parsing."""

    explanation: str = Field(..., description="Numbered workflow explanation", max_length=20000)


class ParseResponse(BaseModel):
    """Parsed steps in index order."""

    steps: list[WorkflowStep]


class GenerateRequest(BaseModel):
    """Request body for workflow generation."""

    explanation: str = Field(
        ...,
        description="Numbered workflow explanation, e.g. 'Step 1: Call customer (Human)'",
        max_length=20000,
    )
    platform: Optional[str] = Field(None, description="Target platform, e.g. 'MS 365' or 'Google' (unset = Generic)")
    approach: Optional[str] = Field(None, description="Automated, Hybrid or Assisted (default Automated)")
    workflow_name: Optional[str] = Field(None, description="Override the workflow name")


class GenerateResponse(BaseModel):
    """Generated workflow with its previews."""

    workflow: GeneratedGraph
    n8n_json: dict
    mermaid: str
    text: str
    step_count: int
    validation_errors: list[str] = []


class RenderRequest(BaseModel):
    """Request body for rendering an existing workflow."""

    workflow: dict = Field(..., description="A generated workflow or n8n workflow JSON")


class RenderResponse(BaseModel):
    """Renderings of a workflow."""

    mermaid: str
    text: str
    summary: str


@router.post("/workflows/parse", response_model=ParseResponse)
async def parse_workflow(request: ParseRequest) -> ParseResponse:
    """Parse a workflow explanation into typed steps."""
    steps = parse_workflow_steps(request.explanation)
    return ParseResponse(steps=steps)


@router.post("/workflows/generate", response_model=GenerateResponse)
async def generate_workflow(request: GenerateRequest) -> GenerateResponse:
    """
    Generate an n8n workflow from a numbered explanation.

    AI steps become an analysis node plus a transform node. Human steps
    become a notification node, followed by an approval webhook for the
    Hybrid and Assisted approaches.
    """
    try:
        options = GenerationOptions(platform=request.platform, approach=request.approach)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors(include_url=False, include_context=False))

    logger.info(
        "generate_request",
        platform=options.platform_label,
        approach=options.approach.value,
        explanation_length=len(request.explanation),
    )

    try:
        generator = WorkflowGenerator(workflow_name=request.workflow_name)
        graph = generator.generate(request.explanation, options)
    except WorkflowGenerationError as e:
        logger.warning("generate_rejected", error=str(e))
        raise HTTPException(status_code=422, detail=str(e))

    text = workflow_to_text(graph)

    return GenerateResponse(
        workflow=graph,
        n8n_json=graph.to_n8n_json(),
        mermaid=workflow_to_mermaid(graph),
        text=text,
        step_count=len(text.splitlines()),
        validation_errors=validate_workflow(graph),
    )


@router.post("/workflows/render", response_model=RenderResponse)
async def render_workflow(request: RenderRequest) -> RenderResponse:
    """Render a workflow as Mermaid, step text and a console summary."""
    return RenderResponse(
        mermaid=workflow_to_mermaid(request.workflow),
        text=workflow_to_text(request.workflow),
        summary=print_workflow(request.workflow),
    )
