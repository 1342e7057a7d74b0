"""Diagram API endpoints - Mermaid straight from text."""
from typing import Literal

from fastapi import APIRouter
from pydantic import BaseModel, Field

from stepflow.render.mermaid import normalize_mermaid, steps_to_mermaid

router = APIRouter()

Direction = Literal["TD", "LR"]


class StepsDiagramRequest(BaseModel):
    """Request body for a diagram built from step text."""

    text: str = Field(..., description="Workflow explanation", max_length=20000)
    direction: Direction = Field("TD", description="Flowchart direction")


class SanitizeRequest(BaseModel):
    """Request body for cleaning Mermaid code."""

    code: str = Field(..., description="Mermaid code, possibly fenced or malformed", max_length=50000)
    direction: Direction = Field("TD", description="Flowchart direction")


class DiagramResponse(BaseModel):
    """Mermaid flowchart code."""

    mermaid: str


@router.post("/diagrams/from-steps", response_model=DiagramResponse)
async def diagram_from_steps(request: StepsDiagramRequest) -> DiagramResponse:
    """Build a basic flowchart from step text without generating a workflow."""
    return DiagramResponse(mermaid=steps_to_mermaid(request.text, request.direction))


@router.post("/diagrams/sanitize", response_model=DiagramResponse)
async def sanitize_diagram(request: SanitizeRequest) -> DiagramResponse:
    """Clean up Mermaid code so it parses."""
    return DiagramResponse(mermaid=normalize_mermaid(request.code, request.direction))
