"""Workflow models - parsed steps and the generated n8n graph.

Two layers live here:
- WorkflowStep: one numbered line of a workflow explanation
- GeneratedGraph: the n8n-compatible node/connection graph built from steps

Graph nodes carry an explicit NodeRole so renderers never have to recover
meaning from display names. Nodes loaded from plain n8n JSON get a role
inferred from their legacy name prefix or node type.
"""
from enum import Enum
from typing import Any, Iterator, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator


class Actor(str, Enum):
    """Who performs a workflow step."""
    HUMAN = "human"
    AI = "ai"


class Platform(str, Enum):
    """Target automation environment embedded in node metadata."""
    MS365 = "MS 365"
    GOOGLE = "Google"
    ASSISTANT = "Assistant"
    CUSTOM = "Custom"
    COMBO = "Combo"
    PROMPT = "Prompt"


class Approach(str, Enum):
    """Degree of human involvement in the generated automation."""
    AUTOMATED = "Automated"
    HYBRID = "Hybrid"
    ASSISTED = "Assisted"


class NodeRole(str, Enum):
    """Structural role of a node in a generated graph."""
    TRIGGER = "trigger"
    AI = "ai"
    TRANSFORM = "transform"
    NOTIFY = "notify"
    APPROVAL = "approval"
    RESPONSE = "response"
    ERROR = "error"


GENERIC_PLATFORM_LABEL = "Generic"

# Approaches that wait for a synchronous human sign-off
APPROVAL_APPROACHES = frozenset({Approach.HYBRID, Approach.ASSISTED})

# Display-name prefixes used by the generator, per role
NAME_PREFIXES: dict[NodeRole, str] = {
    NodeRole.AI: "AI Analysis: ",
    NodeRole.TRANSFORM: "Process AI Response: ",
    NodeRole.NOTIFY: "Notify Human: ",
    NodeRole.APPROVAL: "Human Approval: ",
}


def infer_role(name: str, node_type: str = "") -> Optional[NodeRole]:
    """Best-effort role for a node that was not built by the generator."""
    for role, prefix in NAME_PREFIXES.items():
        if name.startswith(prefix):
            return role
    if name.startswith("Workflow Trigger"):
        return NodeRole.TRIGGER
    if name == "Error Handler":
        return NodeRole.ERROR
    if node_type == "n8n-nodes-base.respondToWebhook":
        return NodeRole.RESPONSE
    return None


class WorkflowStep(BaseModel):
    """A single parsed step of a workflow explanation."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="'step' + 1-based number from the text")
    label: str = Field(..., min_length=1, description="Step text without marker or actor tag")
    actor: Actor = Field(Actor.AI, description="Who performs the step")
    index: int = Field(..., description="0-based order (number in the text minus one)")


class GenerationOptions(BaseModel):
    """Platform/approach selection threaded through graph generation."""

    model_config = ConfigDict(frozen=True)

    platform: Optional[Platform] = Field(None, description="Target platform; unset means generic")
    approach: Approach = Field(Approach.AUTOMATED, description="Human involvement level")

    @field_validator("platform", mode="before")
    @classmethod
    def normalize_platform(cls, v: Any) -> Any:
        """Accept 'MS365' and case variants; treat blank as unset."""
        if isinstance(v, str):
            cleaned = v.strip()
            if not cleaned:
                return None
            compact = cleaned.replace(" ", "").lower()
            for platform in Platform:
                if platform.value.replace(" ", "").lower() == compact:
                    return platform
        return v

    @field_validator("approach", mode="before")
    @classmethod
    def normalize_approach(cls, v: Any) -> Any:
        """Treat a missing approach as Automated; match case-insensitively."""
        if v is None:
            return Approach.AUTOMATED
        if isinstance(v, str):
            cleaned = v.strip().lower()
            if not cleaned:
                return Approach.AUTOMATED
            for approach in Approach:
                if approach.value.lower() == cleaned:
                    return approach
        return v

    @property
    def platform_label(self) -> str:
        """Platform name used in node names and metadata."""
        return self.platform.value if self.platform else GENERIC_PLATFORM_LABEL

    @property
    def requires_approval(self) -> bool:
        """Whether human steps get an approval gate."""
        return self.approach in APPROVAL_APPROACHES


class GraphNode(BaseModel):
    """A node in a generated n8n graph."""

    # Unknown n8n keys (credentials, webhookId, disabled, notes, ...) are kept
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="allow")

    id: str = Field(..., description="Unique node identifier within the graph")
    name: str = Field(..., description="Human-readable node name")
    type: str = Field(..., description="n8n node type string")
    type_version: Union[int, float] = Field(1, alias="typeVersion", description="n8n node type version, e.g. 1 or 4.2")
    position: tuple[Union[int, float], Union[int, float]] = Field((0, 0), description="Canvas position (x, y)")
    parameters: dict = Field(default_factory=dict, description="n8n node parameters")

    # Structured metadata, not part of the n8n export
    role: Optional[NodeRole] = Field(None, description="Structural role in the graph")
    step_id: Optional[str] = Field(None, description="Originating step id")
    step_label: Optional[str] = Field(None, description="Originating step label")

    @model_validator(mode="before")
    @classmethod
    def fill_role(cls, data: Any) -> Any:
        """Infer a role for nodes loaded from plain n8n JSON."""
        if isinstance(data, dict) and data.get("role") is None:
            role = infer_role(str(data.get("name", "")), str(data.get("type", "")))
            if role is not None:
                data = {**data, "role": role}
        return data

    def to_n8n(self) -> dict:
        """Node in n8n import format."""
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "typeVersion": self.type_version,
            "position": list(self.position),
            "parameters": self.parameters,
            **(self.model_extra or {}),
        }


class ConnectionTarget(BaseModel):
    """One outgoing link from a node output to a target node input."""

    node: str = Field(..., description="Target node id")
    type: str = Field("main", description="Target input name")
    index: int = Field(0, description="Target input index")


class NodeConnections(BaseModel):
    """Outgoing connections of a node, grouped by output index."""

    main: list[list[ConnectionTarget]] = Field(
        default_factory=list,
        description="Targets per output port",
    )


def _default_settings() -> dict:
    return {"saveExecutionProgress": True, "executionOrder": "v1"}


def _default_tags() -> list[dict]:
    return [{"name": "generated"}, {"name": "workflow"}]


class GeneratedGraph(BaseModel):
    """An n8n-compatible workflow graph.

    Connections map a source node id to its grouped targets. Graphs built by
    the generator form a single chain from the trigger to the response, with
    the error handler present but unconnected.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field("Generated Workflow", description="Workflow name")
    nodes: list[GraphNode] = Field(default_factory=list, description="Nodes in emission order")
    connections: dict[str, NodeConnections] = Field(
        default_factory=dict,
        description="Source node id -> outgoing connections",
    )
    settings: dict = Field(default_factory=_default_settings, description="n8n workflow settings")
    tags: list[dict] = Field(default_factory=_default_tags, description="n8n tags")

    def get_node(self, node_id: str) -> Optional[GraphNode]:
        """Get a node by its ID."""
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def resolve(self, ref: str) -> Optional[GraphNode]:
        """Node referenced by id, or by name as n8n editor exports do."""
        node = self.get_node(ref)
        if node is not None:
            return node
        for candidate in self.nodes:
            if candidate.name == ref:
                return candidate
        return None

    def nodes_with_role(self, role: NodeRole) -> list[GraphNode]:
        """All nodes carrying a given role."""
        return [node for node in self.nodes if node.role == role]

    @property
    def trigger(self) -> Optional[GraphNode]:
        """The first trigger node, if any."""
        triggers = self.nodes_with_role(NodeRole.TRIGGER)
        return triggers[0] if triggers else None

    def successors(self, node_id: str) -> list[str]:
        """Target ids of every outgoing connection of a node."""
        outgoing = self.connections.get(node_id)
        if not outgoing:
            return []
        return [target.node for group in outgoing.main for target in group]

    def predecessors(self, node_id: str) -> list[str]:
        """Source ids of every connection into a node."""
        return [
            source_id
            for source_id, outgoing in self.connections.items()
            for group in outgoing.main
            for target in group
            if target.node == node_id
        ]

    def edge_count(self) -> int:
        """Total number of connection targets."""
        return sum(len(group) for outgoing in self.connections.values() for group in outgoing.main)

    def iter_chain(self) -> Iterator[GraphNode]:
        """Walk the first-output chain starting at the trigger.

        Stops at a node without outgoing connections, at a reference to an
        unknown node, or when a node would be visited twice.
        """
        current = self.trigger
        visited: set[str] = set()
        while current is not None and current.id not in visited:
            visited.add(current.id)
            yield current
            outgoing = self.connections.get(current.id) or self.connections.get(current.name)
            if not outgoing or not outgoing.main or not outgoing.main[0]:
                return
            current = self.resolve(outgoing.main[0][0].node)

    def to_n8n_json(self, include_tags: bool = True) -> dict:
        """Export in n8n workflow import format.

        The n8n public API treats tags as read-only, so pushes drop them.
        """
        workflow = {
            "name": self.name,
            "nodes": [node.to_n8n() for node in self.nodes],
            "connections": {
                source_id: outgoing.model_dump(mode="json")
                for source_id, outgoing in self.connections.items()
            },
            "settings": dict(self.settings),
        }
        if include_tags:
            workflow["tags"] = [dict(tag) for tag in self.tags]
        return workflow


def coerce_graph(workflow: Any) -> Optional[GeneratedGraph]:
    """Load a graph from a model or n8n-style dict; None if it does not fit."""
    if isinstance(workflow, GeneratedGraph):
        return workflow
    if not isinstance(workflow, dict):
        return None
    try:
        return GeneratedGraph.model_validate(workflow)
    except ValidationError:
        return None
