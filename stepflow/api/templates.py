"""Node template API endpoints - browse the catalog and build single nodes."""
from typing import Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from stepflow.models.workflow import NodeRole
from stepflow.n8n.templates import NODE_TEMPLATES, NodeTemplate, create_base_node, get_template

router = APIRouter()


class TemplateInfo(BaseModel):
    """A catalog entry with its default parameters."""

    key: str
    type: str
    type_version: int
    name: str
    description: str
    role: Optional[NodeRole] = None
    parameters: dict


class BuildNodeRequest(BaseModel):
    """Request to build one n8n node from a template."""

    node_id: str = Field(..., description="Node id in the target workflow")
    name: Optional[str] = Field(None, description="Node name (defaults to the template name)")
    position: tuple[int, int] = Field((100, 300), description="Canvas position (x, y)")
    parameters: dict = Field(default_factory=dict, description="Top-level parameter overrides")


def _template_info(template: NodeTemplate) -> TemplateInfo:
    return TemplateInfo(
        key=template.key,
        type=template.type,
        type_version=template.type_version,
        name=template.name,
        description=template.description,
        role=template.role,
        parameters=template.build_parameters(),
    )


@router.get("/templates", response_model=list[TemplateInfo])
async def list_templates() -> list[TemplateInfo]:
    """List every node template in the catalog."""
    return [_template_info(template) for template in NODE_TEMPLATES.values()]


@router.get("/templates/{key}", response_model=TemplateInfo)
async def get_template_info(key: str) -> TemplateInfo:
    """Get one node template."""
    template = get_template(key)
    if template is None:
        raise HTTPException(status_code=404, detail=f"Unknown node template: {key}")
    return _template_info(template)


@router.post("/templates/{key}/node")
async def build_template_node(key: str, request: BuildNodeRequest) -> dict:
    """Build a node in n8n import format from a template."""
    template = get_template(key)
    if template is None:
        raise HTTPException(status_code=404, detail=f"Unknown node template: {key}")

    node = create_base_node(
        request.node_id,
        request.name or template.name,
        template.type,
        request.position,
        template.build_parameters(**request.parameters),
        role=template.role,
    )
    return node.to_n8n()
