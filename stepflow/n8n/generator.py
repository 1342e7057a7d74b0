"""Generate n8n workflow graphs from numbered step explanations.

The generator handles:
- Parsing the explanation into steps
- Expanding each step into one or two nodes by actor and approach
- Wiring a single chain from the trigger to the final response
- Appending an unconnected error handler for external error routing
"""
from typing import Optional, Union

import structlog

from stepflow.config import Settings, get_settings
from stepflow.models.workflow import (
    Actor,
    GeneratedGraph,
    GenerationOptions,
    GraphNode,
    NodeRole,
    Platform,
    WorkflowStep,
)
from stepflow.n8n.templates import (
    HTTP_REQUEST_TYPE,
    NODE_TEMPLATES,
    ai_node_type,
    calculate_node_position,
    chain_connections,
    create_function_node,
    create_http_node,
    create_response_node,
    create_template_node,
    create_webhook_node,
    notification_node_type,
    platform_transform_code,
)
from stepflow.workflow.parser import find_duplicate_indices, parse_workflow_steps

logger = structlog.get_logger()

TRIGGER_NODE_ID = "workflow_trigger"
RESPONSE_NODE_ID = "workflow_response"
ERROR_NODE_ID = "error_handler"


class WorkflowGenerationError(Exception):
    """Base error for workflow generation failures."""


class EmptyWorkflowError(WorkflowGenerationError):
    """Raised when the explanation contains no parseable steps."""

    def __init__(self, message: str = "No workflow steps found in explanation"):
        super().__init__(message)


class DuplicateStepError(WorkflowGenerationError):
    """Raised when two steps claim the same number."""

    def __init__(self, indices: list[int]):
        numbers = ", ".join(str(index + 1) for index in indices)
        super().__init__(f"Duplicate step numbers in explanation: {numbers}")
        self.indices = indices


OptionsLike = Union[GenerationOptions, dict, None]


def _coerce_options(options: OptionsLike) -> GenerationOptions:
    if options is None:
        return GenerationOptions()
    if isinstance(options, GenerationOptions):
        return options
    return GenerationOptions.model_validate(options)


class WorkflowGenerator:
    """Builds GeneratedGraph instances from workflow explanations."""

    def __init__(self, workflow_name: Optional[str] = None, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.workflow_name = workflow_name or self.settings.workflow_name

    def generate(self, explanation: str, options: OptionsLike = None) -> GeneratedGraph:
        """Parse an explanation and build its workflow graph.

        Raises:
            EmptyWorkflowError: no step could be parsed from the explanation
            DuplicateStepError: two steps share a step number
        """
        steps = parse_workflow_steps(explanation)
        return self.generate_from_steps(steps, options)

    def generate_from_steps(self, steps: list[WorkflowStep], options: OptionsLike = None) -> GeneratedGraph:
        """Build a workflow graph from already parsed steps."""
        options = _coerce_options(options)

        if not steps:
            logger.warning("generate_empty_workflow")
            raise EmptyWorkflowError()

        duplicates = find_duplicate_indices(steps)
        if duplicates:
            logger.warning("generate_duplicate_steps", step_numbers=[i + 1 for i in duplicates])
            raise DuplicateStepError(duplicates)

        steps = sorted(steps, key=lambda step: step.index)

        logger.info(
            "generate_start",
            step_count=len(steps),
            platform=options.platform_label,
            approach=options.approach.value,
        )

        trigger = self._compile_trigger(options)
        nodes: list[GraphNode] = [trigger]
        chain: list[str] = [trigger.id]

        for stage, step in enumerate(steps):
            x, _ = self._stage_position(stage)
            if step.actor == Actor.AI:
                step_nodes = self._compile_ai_step(step, options, x)
            else:
                step_nodes = self._compile_human_step(step, options, x)
            nodes.extend(step_nodes)
            chain.extend(node.id for node in step_nodes)

        final_x, _ = self._stage_position(len(steps))
        response = self._compile_response(final_x)
        nodes.append(response)
        chain.append(response.id)

        # Present in the graph, never part of the success path
        nodes.append(self._compile_error_handler(final_x))

        graph = GeneratedGraph(
            name=self.workflow_name,
            nodes=nodes,
            connections=chain_connections(chain),
        )

        logger.info(
            "generate_complete",
            node_count=len(graph.nodes),
            connection_count=graph.edge_count(),
        )

        return graph

    def _stage_position(self, stage: int) -> tuple[int, int]:
        return calculate_node_position(
            stage,
            spacing=self.settings.layout_step_spacing,
            start_x=self.settings.layout_start_x,
            y=self.settings.layout_y,
        )

    def _compile_trigger(self, options: GenerationOptions) -> GraphNode:
        return create_webhook_node(
            TRIGGER_NODE_ID,
            f"Workflow Trigger ({options.platform_label})",
            (self.settings.layout_trigger_x, self.settings.layout_y),
            path="workflow/input",
            additionalFields={
                "platform": options.platform_label,
                "approach": options.approach.value,
            },
        )

    def _compile_ai_step(self, step: WorkflowStep, options: GenerationOptions, x: int) -> list[GraphNode]:
        """AI analysis followed by a transform that normalizes its output."""
        y = self.settings.layout_y
        platform = options.platform_label
        metadata = {"step_id": step.id, "step_label": step.label}
        name = f"AI Analysis: {step.label} ({platform})"

        if options.platform == Platform.ASSISTANT:
            ai_node = create_template_node(
                "ai_analysis",
                f"{step.id}_ai",
                name,
                (x, y),
                node_type=ai_node_type(options.platform),
                model=self.settings.assistant_model,
                systemMessage=f"You are an AI assistant helping with {platform} automation workflows.",
                **metadata,
            )
        else:
            ai_node = create_http_node(
                f"{step.id}_ai",
                name,
                (x, y),
                template_key="ai_analysis",
                **metadata,
            )

        if options.platform is not None:
            transform_code = platform_transform_code(platform)
        else:
            transform_code = NODE_TEMPLATES["data_transform"].build_parameters()["functionCode"]

        transform_node = create_function_node(
            f"{step.id}_transform",
            f"Process AI Response: {step.label} ({platform})",
            (x + self.settings.layout_inner_spacing, y),
            transform_code,
            role=NodeRole.TRANSFORM,
            **metadata,
        )

        return [ai_node, transform_node]

    def _compile_human_step(self, step: WorkflowStep, options: GenerationOptions, x: int) -> list[GraphNode]:
        """Notification, plus an approval gate for Hybrid/Assisted."""
        y = self.settings.layout_y
        platform = options.platform_label
        metadata = {"step_id": step.id, "step_label": step.label}
        name = f"Notify Human: {step.label} ({platform})"

        body = NODE_TEMPLATES["notification"].build_parameters()["bodyParametersJson"]
        body.update(
            platform=platform,
            approach=options.approach.value,
            requiresAction=options.requires_approval,
        )

        node_type = notification_node_type(options.platform)
        if node_type == HTTP_REQUEST_TYPE:
            notify_node = create_http_node(f"{step.id}_notify", name, (x, y), body=body, **metadata)
        else:
            notify_node = create_template_node(
                "notification",
                f"{step.id}_notify",
                name,
                (x, y),
                node_type=node_type,
                bodyParametersJson=body,
                **metadata,
            )

        if not options.requires_approval:
            return [notify_node]

        approval_node = create_webhook_node(
            f"{step.id}_approval",
            f"Human Approval: {step.label} ({platform})",
            (x + self.settings.layout_inner_spacing, y),
            path=f"workflow/approve/{step.id}",
            template_key="human_approval",
            additionalFields={
                "platform": platform,
                "approach": options.approach.value,
            },
            **metadata,
        )

        return [notify_node, approval_node]

    def _compile_response(self, x: int) -> GraphNode:
        return create_response_node(
            RESPONSE_NODE_ID,
            NODE_TEMPLATES["api_response"].name,
            (x, self.settings.layout_y),
        )

    def _compile_error_handler(self, x: int) -> GraphNode:
        template = NODE_TEMPLATES["error_handling"]
        return create_template_node(
            template.key,
            ERROR_NODE_ID,
            template.name,
            (x, self.settings.layout_y + self.settings.layout_error_offset_y),
        )


def generate_n8n_workflow(explanation: str, options: OptionsLike = None) -> GeneratedGraph:
    """Generate a workflow graph with default settings."""
    return WorkflowGenerator().generate(explanation, options)


def validate_workflow(graph: GeneratedGraph) -> list[str]:
    """Validate a generated graph.

    Returns list of validation errors (empty if valid).
    """
    errors = []

    if not graph.name:
        errors.append("Missing workflow name")

    if not graph.nodes:
        errors.append("Workflow has no nodes")
        return errors

    node_ids = set()
    for node in graph.nodes:
        if node.id in node_ids:
            errors.append(f"Duplicate node id: {node.id}")
        node_ids.add(node.id)

    for source_id, outgoing in graph.connections.items():
        if source_id not in node_ids:
            errors.append(f"Connection source not found: {source_id}")
        for group in outgoing.main:
            for target in group:
                if target.node not in node_ids:
                    errors.append(f"Connection target not found: {target.node}")

    for role in (NodeRole.TRIGGER, NodeRole.RESPONSE, NodeRole.ERROR):
        count = len(graph.nodes_with_role(role))
        if count != 1:
            errors.append(f"Expected exactly one {role.value} node, found {count}")

    for error_node in graph.nodes_with_role(NodeRole.ERROR):
        if graph.successors(error_node.id) or graph.predecessors(error_node.id):
            errors.append(f"Error handler must not be connected: {error_node.id}")

    chain = list(graph.iter_chain())
    if chain and chain[-1].role != NodeRole.RESPONSE:
        errors.append(f"Chain from trigger ends at {chain[-1].id}, not at the response")

    return errors
