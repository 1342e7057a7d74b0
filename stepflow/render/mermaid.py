"""Mermaid flowchart rendering for workflows.

- workflow_to_mermaid: a generated graph as a left-to-right flowchart
- steps_to_mermaid: a quick flowchart straight from step text
- sanitize_mermaid / normalize_mermaid: clean up Mermaid written by an LLM

None of these raise on unexpected input; they degrade to a bare header.
"""
import re
from typing import Any

import structlog

from stepflow.models.workflow import NodeRole, coerce_graph

logger = structlog.get_logger()

AI_CLASS_DEF = "classDef ai fill:#bfdbfe,stroke:#1d4ed8,color:#111827,stroke-width:2px"
HUMAN_CLASS_DEF = "classDef human fill:#fde68a,stroke:#b45309,color:#111827,stroke-width:2px"
AI_CLASS_DEF_THIN = "classDef ai fill:#bfdbfe,stroke:#1d4ed8,color:#111827,stroke-width:1px"
HUMAN_CLASS_DEF_THIN = "classDef human fill:#fde68a,stroke:#b45309,color:#111827,stroke-width:1px"

DIRECTIONS = ("TD", "TB", "LR", "RL", "BT")
MAX_LABEL_LENGTH = 160

ROLE_CLASSES: dict[NodeRole, str] = {
    NodeRole.AI: "ai",
    NodeRole.TRANSFORM: "ai",
    NodeRole.NOTIFY: "human",
    NodeRole.APPROVAL: "human",
}

UNSAFE_ID_CHARS = re.compile(r"[^a-zA-Z0-9]")
LABEL_BRACKETS = re.compile(r"[\[\]]")
STEP_LINE = re.compile(r"^(Step\s*\d+\s*:|\d+\.|\d+\))", re.IGNORECASE)
STEP_PREFIX = re.compile(r"^Step\s*\d+\s*:\s*", re.IGNORECASE)
NUMBER_PREFIX = re.compile(r"^\d+[.)]\s*")
AI_HINT = re.compile(r"(\(ai\)|\bai\b|\[ai\]|\(a\)|\[a\])", re.IGNORECASE)
HUMAN_HINT = re.compile(r"(\(human\)|\bhuman\b|\[human\]|\(h\)|\[h\])", re.IGNORECASE)

CODE_FENCE_OPEN = re.compile(r"^```[a-zA-Z]*\n?")
CODE_FENCE_CLOSE = re.compile(r"```\s*$")
NODE_DEF = re.compile(r"([A-Za-z0-9_]+)\s*\[(.*?)\]")
EDGE_SPLIT = re.compile(r"\s*-->\s*")


def sanitize_id(node_id: str) -> str:
    """Identifier-safe token for a node id."""
    return UNSAFE_ID_CHARS.sub("_", node_id)


def _label(text: str) -> str:
    return LABEL_BRACKETS.sub("", text).replace('"', "#quot;")


def _direction(direction: str) -> str:
    normalized = (direction or "").upper()
    if normalized not in DIRECTIONS:
        logger.warning("mermaid_unknown_direction", direction=direction)
        return "TD"
    return normalized


def workflow_to_mermaid(workflow: Any) -> str:
    """Render a workflow graph as a left-to-right Mermaid flowchart.

    Nodes are styled by role: AI and transform nodes get the ``ai`` class,
    notification and approval nodes the ``human`` class.
    """
    lines = ["graph LR", AI_CLASS_DEF, HUMAN_CLASS_DEF]

    graph = coerce_graph(workflow)
    if graph is None:
        logger.warning("mermaid_unrenderable_workflow")
        return "\n".join(lines)

    for node in graph.nodes:
        node_class = ROLE_CLASSES.get(node.role) if node.role else None
        suffix = f":::{node_class}" if node_class else ""
        lines.append(f'{sanitize_id(node.id)}["{_label(node.name)}"]{suffix}')

    def node_ref(ref: str) -> str:
        node = graph.resolve(ref)
        return sanitize_id(node.id if node else ref)

    for source_id, outgoing in graph.connections.items():
        for group in outgoing.main:
            for target in group:
                lines.append(f"{node_ref(source_id)} --> {node_ref(target.node)}")

    return "\n".join(lines)


def steps_to_mermaid(text: str, direction: str = "TD") -> str:
    """Build a basic flowchart straight from step text.

    Numbered step lines become nodes S1, S2, ... in order; when no line is
    numbered, every non-empty line is used. Role hints such as ``(AI)``,
    ``[human]`` or ``(h)`` pick the node class.
    """
    lines = [line.strip() for line in re.split(r"\n+", text or "")]
    lines = [line for line in lines if line]
    step_lines = [line for line in lines if STEP_LINE.match(line)]
    use_lines = step_lines or lines

    ids: list[str] = []
    nodes: list[str] = []
    class_lines: list[str] = []

    for i, line in enumerate(use_lines):
        node_id = f"S{i + 1}"
        ids.append(node_id)
        label = NUMBER_PREFIX.sub("", STEP_PREFIX.sub("", line)).strip()
        label = _label(label)[:MAX_LABEL_LENGTH]
        nodes.append(f'{node_id}["{label}"]')

        is_ai = bool(AI_HINT.search(line))
        is_human = bool(HUMAN_HINT.search(line))
        if is_ai and not is_human:
            class_lines.append(f"class {node_id} ai")
        elif is_human and not is_ai:
            class_lines.append(f"class {node_id} human")

    edges = [f"{a} --> {b}" for a, b in zip(ids, ids[1:])]

    return "\n".join([
        f"flowchart {_direction(direction)}",
        HUMAN_CLASS_DEF,
        AI_CLASS_DEF,
        *nodes,
        *edges,
        *dict.fromkeys(class_lines),
    ])


def _node_line(node_id: str, raw_label: str) -> tuple[str, str]:
    label = re.sub(r"""^["']|["']$""", "", raw_label.strip()).replace('\\"', '"')
    line = f'{node_id}["{label}"]'
    lowered = label.lower()
    if "(human)" in lowered:
        return line, f"class {node_id} human"
    if "(ai)" in lowered:
        return line, f"class {node_id} ai"
    return line, ""


def sanitize_mermaid(raw: str, direction: str = "TD") -> str:
    """Clean up LLM-produced Mermaid flowchart code.

    Strips code fences and any existing graph directive, re-emits the class
    definitions, quotes node labels and adds ``class X human|ai`` lines for
    labels ending in ``(Human)`` or ``(AI)``. Lines that are neither node
    definitions, edges nor class assignments are dropped.
    """
    if not raw:
        return ""

    code = CODE_FENCE_CLOSE.sub("", CODE_FENCE_OPEN.sub("", raw.strip()))
    lines = [line.strip() for line in code.split("\n")]
    lines = [
        line for line in lines
        if line and not line.startswith("graph") and not line.startswith("flowchart")
    ]

    cleaned = [f"flowchart {_direction(direction)}", HUMAN_CLASS_DEF_THIN, AI_CLASS_DEF_THIN]

    for line in lines:
        if "[" in line:
            parts = [part.strip() for part in line.split("-->")] if "-->" in line else [line]
            for part in parts:
                match = NODE_DEF.search(part)
                if not match:
                    continue
                node_line, class_line = _node_line(*match.groups())
                cleaned.append(node_line)
                if class_line:
                    cleaned.append(class_line)
            if "-->" in line:
                cleaned.append(" --> ".join(parts))
        elif line.startswith("class ") or "-->" in line:
            cleaned.append(line)

    return "\n".join(cleaned)


def normalize_mermaid(raw: str, direction: str = "TD") -> str:
    """Sanitize, then reduce every edge to bare ids and de-duplicate lines.

    Node definitions embedded in edge lines are hoisted onto their own lines
    and class definitions are kept at the top.
    """
    code = sanitize_mermaid(raw, direction)
    if not code:
        return ""

    lines = [line.strip() for line in re.split(r"[;\n]+", code)]
    lines = [line for line in lines if line]

    expanded: list[str] = []
    for line in lines:
        if "-->" in line and "[" in line:
            ids = []
            for part in EDGE_SPLIT.split(line):
                match = NODE_DEF.search(part)
                if match:
                    expanded.append(part)
                    ids.append(match.group(1))
                else:
                    ids.append(part)
            expanded.append(" --> ".join(ids))
        else:
            expanded.append(line)

    class_defs = [line for line in expanded if line.startswith("classDef")]
    body = [
        line for line in expanded
        if not line.startswith(("classDef", "flowchart", "graph"))
    ]

    cleaned_body = []
    for line in body:
        line = re.sub(r'\[\s*"', '["', line)
        line = re.sub(r'"\s*\]', '"]', line)
        line = re.sub(r"\s+-->\s+", " --> ", line)
        line = line.replace('\\"', '"')
        line = re.sub(r'([A-Za-z0-9_]+)\s*\[\s*([^\]"]+?)\s*\]', r'\1["\2"]', line)
        cleaned_body.append(line)

    return "\n".join(dict.fromkeys([
        f"flowchart {_direction(direction)}",
        *class_defs,
        *cleaned_body,
    ]))
