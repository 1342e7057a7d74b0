"""Text renderings of generated workflows."""
import re
from typing import Any, Optional

from stepflow.models.workflow import NAME_PREFIXES, GeneratedGraph, GraphNode, NodeRole, coerce_graph

# Nodes that stand for a whole step in step text
STEP_ROLES: dict[NodeRole, str] = {
    NodeRole.AI: "(AI)",
    NodeRole.NOTIFY: "(Human)",
}

PLATFORM_SUFFIX = re.compile(r"\s*\([^()]*\)$")

ROLE_ICONS: dict[NodeRole, str] = {
    NodeRole.TRIGGER: "⚡",
    NodeRole.AI: "🤖",
    NodeRole.TRANSFORM: "🔄",
    NodeRole.NOTIFY: "💬",
    NodeRole.APPROVAL: "✋",
    NodeRole.RESPONSE: "📤",
    NodeRole.ERROR: "⚠️",
}


def _step_label(node: GraphNode) -> str:
    if node.step_label:
        return node.step_label
    prefix = NAME_PREFIXES.get(node.role) if node.role else None
    if prefix and node.name.startswith(prefix):
        return PLATFORM_SUFFIX.sub("", node.name[len(prefix):]).strip()
    return node.name


def workflow_to_text(workflow: Any) -> str:
    """Reconstruct numbered step text from a workflow graph.

    Walks the chain from the trigger and emits one line per step, so the
    output has as many lines as the explanation had steps:

        Step 1: Call customer (Human)
        Step 2: Summarize notes (AI)

    Returns an empty string when the graph has no trigger.
    """
    graph = coerce_graph(workflow)
    if graph is None:
        return ""

    steps = []
    for node in graph.iter_chain():
        tag = STEP_ROLES.get(node.role) if node.role else None
        if tag:
            steps.append(f"{_step_label(node)} {tag}")

    return "\n".join(f"Step {i}: {step}" for i, step in enumerate(steps, 1))


def _get_node_icon(node: GraphNode) -> str:
    return ROLE_ICONS.get(node.role, "⚙️") if node.role else "⚙️"


def _format_param_value(value, max_len: int = 50) -> str:
    """Format a parameter value for display."""
    if isinstance(value, str):
        if len(value) > max_len:
            return f'"{value[:max_len]}..."'
        return f'"{value}"'
    elif isinstance(value, dict):
        return f"{{...}} ({len(value)} keys)"
    elif isinstance(value, list):
        return f"[...] ({len(value)} items)"
    else:
        return str(value)


def print_workflow(workflow: Any, include_params: bool = False) -> str:
    """
    Convert a workflow graph to a console summary.

    Args:
        workflow: GeneratedGraph or n8n-style dict
        include_params: Include node parameters in output (default: False)

    Returns:
        Formatted string representation of the workflow
    """
    graph: Optional[GeneratedGraph] = coerce_graph(workflow)
    if graph is None:
        return "(Unreadable workflow)"

    lines = []

    lines.append("=" * 60)
    lines.append(f"  WORKFLOW: {graph.name}")
    lines.append("=" * 60)
    tags = ", ".join(str(tag.get("name", "")) for tag in graph.tags)
    lines.append(f"  Tags: {tags or 'none'}")
    lines.append("")

    lines.append("  NODES:")
    lines.append("  " + "-" * 56)

    for i, node in enumerate(graph.nodes, 1):
        short_type = node.type.replace("n8n-nodes-base.", "").replace("n8n-nodes-", "")
        x, y = node.position

        lines.append(f"  {_get_node_icon(node)} [{i}] {node.name}")
        lines.append(f"       Type: {short_type} (v{node.type_version})")
        lines.append(f"       Position: ({x}, {y})")

        if include_params and node.parameters:
            lines.append("       Parameters:")
            for key, value in node.parameters.items():
                lines.append(f"         • {key}: {_format_param_value(value)}")

        lines.append("")

    lines.append("  FLOW:")
    lines.append("  " + "-" * 56)

    chain = list(graph.iter_chain())
    if len(chain) > 1:
        for i, node in enumerate(chain):
            lines.append(f"  {_get_node_icon(node)} {node.name}")
            if i < len(chain) - 1:
                lines.append("    └──→ ")
    else:
        lines.append("  (No connections defined)")

    detached = [node for node in graph.nodes if node.id not in {n.id for n in chain}]
    if chain and detached:
        lines.append("")
        lines.append("  DETACHED:")
        lines.append("  " + "-" * 56)
        for node in detached:
            lines.append(f"  {_get_node_icon(node)} {node.name}")

    lines.append("")
    lines.append("=" * 60)

    return "\n".join(lines)


def print_workflow_compact(workflow: Any) -> str:
    """
    Print a compact one-line flow of the success path.

    Args:
        workflow: GeneratedGraph or n8n-style dict

    Returns:
        Compact string representation
    """
    graph = coerce_graph(workflow)
    if graph is None:
        return ""

    flow_parts = [f"{_get_node_icon(node)} {node.name}" for node in graph.iter_chain()]
    return "\n".join([f"📋 {graph.name}", "", " → ".join(flow_parts)])
