"""Catalog of n8n node templates used by the workflow generator.

Each template describes one reusable node shape:
- Its n8n node type and version
- The structural role it plays in a generated graph
- A factory for its default parameters

Templates never hand out shared parameter objects. Every call to
``build_parameters`` constructs fresh defaults, so overriding values for one
node cannot leak into another graph.
"""
from dataclasses import dataclass
from typing import Callable, Optional

from stepflow.models.workflow import ConnectionTarget, GraphNode, NodeConnections, NodeRole, Platform

WEBHOOK_TYPE = "n8n-nodes-base.webhook"
HTTP_REQUEST_TYPE = "n8n-nodes-base.httpRequest"
FUNCTION_TYPE = "n8n-nodes-base.function"
RESPOND_TO_WEBHOOK_TYPE = "n8n-nodes-base.respondToWebhook"
OPENAI_TYPE = "n8n-nodes-base.openAi"
MICROSOFT_TEAMS_TYPE = "n8n-nodes-base.microsoftTeams"
GMAIL_TYPE = "n8n-nodes-base.gmail"
IF_TYPE = "n8n-nodes-base.if"
SET_TYPE = "n8n-nodes-base.set"


@dataclass(frozen=True)
class NodeTemplate:
    """A parametrized n8n node shape."""

    key: str
    type: str
    name: str
    description: str
    defaults: Callable[[], dict]
    role: Optional[NodeRole] = None
    type_version: int = 1

    def build_parameters(self, **overrides) -> dict:
        """Fresh default parameters with top-level overrides applied."""
        params = self.defaults()
        params.update(overrides)
        return params


# =============================================================================
# DEFAULT PARAMETER FACTORIES
# =============================================================================

def _webhook_input_parameters() -> dict:
    return {
        "path": "workflow/input",
        "httpMethod": "POST",
        "options": {
            "responseMode": "lastNode",
            "responseData": "json",
        },
        "authentication": "none",
    }


def _ai_analysis_parameters() -> dict:
    return {
        "authentication": "none",
        "url": "={{$env.AI_API_URL || 'https://api.openai.com/v1/chat/completions'}}",
        "options": {
            "allowUnauthorizedCerts": False,
            "jsonParameters": True,
        },
        "headerParametersUi": {
            "parameter": [
                {"name": "Authorization", "value": "Bearer {{$env.OPENAI_API_KEY}}"},
                {"name": "Content-Type", "value": "application/json"},
            ],
        },
        "bodyParametersJson": {
            "model": "{{$env.AI_MODEL || 'gpt-4-turbo'}}",
            "messages": [
                {
                    "role": "system",
                    "content": (
                        "You assist in workflow automation. Given input data, analyze and "
                        "provide suggestions in a structured JSON response."
                    ),
                },
                {"role": "user", "content": "{{$json.input}}"},
            ],
            "temperature": 0.7,
        },
    }


def _human_approval_parameters() -> dict:
    return {
        "path": "workflow/human-approval",
        "httpMethod": "POST",
        "options": {
            "responseMode": "lastNode",
            "responseData": "json",
        },
        "authentication": "none",
    }


PROCESS_DATA_CODE = """// Input data is available in $input
const items = $input.all();
const results = items.map(item => {
  // Process each item
  return {
    ...item.json,
    processed: true,
    timestamp: new Date().toISOString()
  };
});

return results;"""

ERROR_HANDLING_CODE = """// Error handling wrapper
try {
  const items = $input.all();
  // Process items
  return items;
} catch (error) {
  // Log error and return error response
  console.error('Workflow error:', error);
  return [{ json: {
    error: true,
    message: error.message,
    timestamp: new Date().toISOString()
  }}];
}"""

DATA_TRANSFORM_CODE = """// Transform data between steps
const inputData = $input.first().json;

return [{
  json: {
    // Add your transformation logic here
    ...inputData,
    transformed: true
  }
}];"""


def _api_response_parameters() -> dict:
    return {
        "keepOnlySet": True,
        "options": {},
        "responseCode": "={{$json.statusCode || 200}}",
        "responseData": "={{$json.data || { success: true }}}",
    }


def _if_condition_parameters() -> dict:
    return {
        "conditions": {
            "boolean": [
                {"value1": "={{$json.someCondition}}", "value2": True},
            ],
            "combinator": "AND",
            "mode": "allMatch",
        },
    }


def _notification_parameters() -> dict:
    return {
        "url": "={{$env.NOTIFICATION_WEBHOOK_URL}}",
        "headerParametersUi": {
            "parameter": [
                {"name": "Content-Type", "value": "application/json"},
            ],
        },
        "options": {"jsonParameters": True},
        "bodyParametersJson": {
            "message": "={{$json.notificationMessage}}",
            "timestamp": "={{$now}}",
            "workflowId": "={{$workflow.id}}",
            "executionId": "={{$execution.id}}",
        },
    }


def _set_values_parameters() -> dict:
    return {
        "values": {
            "boolean": [],
            "number": [{"name": "statusCode", "value": 200}],
            "string": [{"name": "status", "value": "success"}],
        },
        "options": {},
    }


# =============================================================================
# TEMPLATE CATALOG
# =============================================================================

NODE_TEMPLATES: dict[str, NodeTemplate] = {
    "webhook_input": NodeTemplate(
        key="webhook_input",
        type=WEBHOOK_TYPE,
        name="Webhook Input",
        description="Receive the workflow input over HTTP",
        defaults=_webhook_input_parameters,
        role=NodeRole.TRIGGER,
    ),
    "ai_analysis": NodeTemplate(
        key="ai_analysis",
        type=HTTP_REQUEST_TYPE,
        name="AI Analysis",
        description="Call a chat-completions endpoint with the step input",
        defaults=_ai_analysis_parameters,
        role=NodeRole.AI,
    ),
    "data_transform": NodeTemplate(
        key="data_transform",
        type=FUNCTION_TYPE,
        name="Process AI Response",
        description="Normalize the previous node's output",
        defaults=lambda: {"functionCode": DATA_TRANSFORM_CODE},
        role=NodeRole.TRANSFORM,
    ),
    "notification": NodeTemplate(
        key="notification",
        type=HTTP_REQUEST_TYPE,
        name="Notify Human",
        description="Send a notification to the person owning a step",
        defaults=_notification_parameters,
        role=NodeRole.NOTIFY,
    ),
    "human_approval": NodeTemplate(
        key="human_approval",
        type=WEBHOOK_TYPE,
        name="Human Approval",
        description="Wait for a human sign-off webhook",
        defaults=_human_approval_parameters,
        role=NodeRole.APPROVAL,
    ),
    "api_response": NodeTemplate(
        key="api_response",
        type=RESPOND_TO_WEBHOOK_TYPE,
        name="Final Response",
        description="Answer the triggering webhook",
        defaults=_api_response_parameters,
        role=NodeRole.RESPONSE,
    ),
    "error_handling": NodeTemplate(
        key="error_handling",
        type=FUNCTION_TYPE,
        name="Error Handler",
        description="Wrap failures into an error payload",
        defaults=lambda: {"functionCode": ERROR_HANDLING_CODE},
        role=NodeRole.ERROR,
    ),
    "process_data": NodeTemplate(
        key="process_data",
        type=FUNCTION_TYPE,
        name="Process Data",
        description="Mark every input item as processed",
        defaults=lambda: {"functionCode": PROCESS_DATA_CODE},
        role=NodeRole.TRANSFORM,
    ),
    "if_condition": NodeTemplate(
        key="if_condition",
        type=IF_TYPE,
        name="IF",
        description="Boolean branch on the input",
        defaults=_if_condition_parameters,
    ),
    "set_values": NodeTemplate(
        key="set_values",
        type=SET_TYPE,
        name="Set",
        description="Set a success status and status code",
        defaults=_set_values_parameters,
    ),
}


# =============================================================================
# PLATFORM ROUTING
# =============================================================================

NOTIFICATION_NODE_TYPES: dict[Platform, str] = {
    Platform.MS365: MICROSOFT_TEAMS_TYPE,
    Platform.GOOGLE: GMAIL_TYPE,
}


def get_template(key: str) -> Optional[NodeTemplate]:
    """Get a node template by its key."""
    return NODE_TEMPLATES.get(key)


def notification_node_type(platform: Optional[Platform]) -> str:
    """Messaging integration for human notifications on a platform."""
    return NOTIFICATION_NODE_TYPES.get(platform, HTTP_REQUEST_TYPE)


def ai_node_type(platform: Optional[Platform]) -> str:
    """Node type used for AI analysis on a platform."""
    return OPENAI_TYPE if platform == Platform.ASSISTANT else HTTP_REQUEST_TYPE


def platform_transform_code(platform_label: str) -> str:
    """Function code that stamps AI output with platform and timestamp."""
    return (
        f"// Platform-specific transformation for {platform_label}\n"
        "const inputData = $input.first().json;\n\n"
        "return [{\n"
        "  json: {\n"
        "    ...inputData,\n"
        f"    platform: '{platform_label}',\n"
        "    transformed: true,\n"
        "    timestamp: new Date().toISOString()\n"
        "  }\n"
        "}];"
    )


# =============================================================================
# NODE BUILDERS
# =============================================================================

def create_base_node(
    node_id: str,
    name: str,
    node_type: str,
    position: tuple[int, int],
    parameters: Optional[dict] = None,
    role: Optional[NodeRole] = None,
    step_id: Optional[str] = None,
    step_label: Optional[str] = None,
) -> GraphNode:
    """Build a graph node (typeVersion 1)."""
    return GraphNode(
        id=node_id,
        name=name,
        type=node_type,
        type_version=1,
        position=position,
        parameters=parameters if parameters is not None else {},
        role=role,
        step_id=step_id,
        step_label=step_label,
    )


def create_function_node(
    node_id: str,
    name: str,
    position: tuple[int, int],
    code: str,
    role: Optional[NodeRole] = None,
    **metadata,
) -> GraphNode:
    """Build a function node running custom JavaScript."""
    return create_base_node(
        node_id,
        name,
        FUNCTION_TYPE,
        position,
        {"functionCode": code},
        role=role,
        **metadata,
    )


def create_template_node(
    template_key: str,
    node_id: str,
    name: str,
    position: tuple[int, int],
    node_type: Optional[str] = None,
    role: Optional[NodeRole] = None,
    step_id: Optional[str] = None,
    step_label: Optional[str] = None,
    **overrides,
) -> GraphNode:
    """Build a node from a catalog template, with top-level parameter overrides.

    The node type and role default to the template's own.

    Raises:
        KeyError: no template is registered under ``template_key``
    """
    template = get_template(template_key)
    if template is None:
        raise KeyError(f"Unknown node template: {template_key}")
    return create_base_node(
        node_id,
        name,
        node_type or template.type,
        position,
        template.build_parameters(**overrides),
        role=role or template.role,
        step_id=step_id,
        step_label=step_label,
    )


def create_webhook_node(
    node_id: str,
    name: str,
    position: tuple[int, int],
    path: str,
    template_key: str = "webhook_input",
    **kwargs,
) -> GraphNode:
    """Build a POST webhook node listening on ``path``."""
    return create_template_node(template_key, node_id, name, position, path=path, **kwargs)


def create_http_node(
    node_id: str,
    name: str,
    position: tuple[int, int],
    url: Optional[str] = None,
    method: str = "POST",
    body: Optional[dict] = None,
    template_key: str = "notification",
    **kwargs,
) -> GraphNode:
    """Build an HTTP request node; url and body fall back to the template's."""
    overrides = {"requestMethod": method}
    if url is not None:
        overrides["url"] = url
    if body is not None:
        overrides["bodyParametersJson"] = body
    return create_template_node(
        template_key,
        node_id,
        name,
        position,
        node_type=HTTP_REQUEST_TYPE,
        **overrides,
        **kwargs,
    )


def create_response_node(
    node_id: str,
    name: str,
    position: tuple[int, int],
    response_data: Optional[str] = None,
    **kwargs,
) -> GraphNode:
    """Build the node that answers the triggering webhook."""
    if response_data is not None:
        kwargs["responseData"] = response_data
    return create_template_node("api_response", node_id, name, position, **kwargs)


def calculate_node_position(stage: int, spacing: int = 300, start_x: int = 100, y: int = 300) -> tuple[int, int]:
    """Left-to-right position of a logical stage."""
    return (start_x + stage * spacing, y)


def chain_connections(node_ids: list[str]) -> dict[str, NodeConnections]:
    """Connect each node to the next one on its single main output."""
    connections: dict[str, NodeConnections] = {}
    for source_id, target_id in zip(node_ids, node_ids[1:]):
        connections[source_id] = NodeConnections(
            main=[[ConnectionTarget(node=target_id, type="main", index=0)]],
        )
    return connections
