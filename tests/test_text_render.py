"""Tests for text renderings of generated workflows."""
import pytest

from stepflow.config import Settings
from stepflow.n8n.generator import WorkflowGenerator
from stepflow.render.text import print_workflow, print_workflow_compact, workflow_to_text
from stepflow.workflow.parser import parse_workflow_steps

EXPLANATION = """Step 1: Call customer (Human)
Step 2: Summarize notes (AI)
Step 3: Approve the proposal (Human)
Step 4: Send contract"""


@pytest.fixture
def generator():
    return WorkflowGenerator(settings=Settings())


def foreign_workflow() -> dict:
    """A workflow in plain n8n JSON, without role metadata."""
    return {
        "name": "Imported",
        "nodes": [
            {
                "id": "t",
                "name": "Workflow Trigger (Google)",
                "type": "n8n-nodes-base.webhook",
                "typeVersion": 1,
                "position": [100, 300],
                "parameters": {},
            },
            {
                "id": "a",
                "name": "AI Analysis: Read inbox (Google)",
                "type": "n8n-nodes-base.httpRequest",
                "typeVersion": 1,
                "position": [400, 300],
                "parameters": {},
            },
            {
                "id": "h",
                "name": "Notify Human: Reply to client (Google)",
                "type": "n8n-nodes-base.gmail",
                "typeVersion": 1,
                "position": [800, 300],
                "parameters": {},
            },
        ],
        "connections": {
            "t": {"main": [[{"node": "a", "type": "main", "index": 0}]]},
            "a": {"main": [[{"node": "h", "type": "main", "index": 0}]]},
        },
    }


class TestWorkflowToText:
    """Test suite for workflow_to_text."""

    def test_one_line_per_step(self, generator):
        for approach in ("Automated", "Hybrid", "Assisted"):
            graph = generator.generate(EXPLANATION, {"approach": approach})
            text = workflow_to_text(graph)

            assert text.splitlines() == [
                "Step 1: Call customer (Human)",
                "Step 2: Summarize notes (AI)",
                "Step 3: Approve the proposal (Human)",
                "Step 4: Send contract (AI)",
            ]

    def test_reparses_to_the_same_steps(self, generator):
        expected = parse_workflow_steps(EXPLANATION)
        text = workflow_to_text(generator.generate(EXPLANATION, {"platform": "MS365"}))
        reparsed = parse_workflow_steps(text)

        assert [(s.label, s.actor) for s in reparsed] == [(s.label, s.actor) for s in expected]

    def test_renumbers_gapped_steps(self, generator):
        graph = generator.generate("2. Review (Human)\n7. Classify")

        assert workflow_to_text(graph) == "Step 1: Review (Human)\nStep 2: Classify (AI)"

    def test_labels_with_parentheses_survive(self, generator):
        graph = generator.generate("1. Check totals (EUR only)", {"platform": "Google"})

        assert workflow_to_text(graph) == "Step 1: Check totals (EUR only) (AI)"

    def test_foreign_workflow_roles_from_names(self):
        text = workflow_to_text(foreign_workflow())

        assert text == "Step 1: Read inbox (AI)\nStep 2: Reply to client (Human)"

    def test_fractional_type_versions(self):
        workflow = foreign_workflow()
        workflow["nodes"][1]["typeVersion"] = 4.2
        workflow["nodes"][2]["typeVersion"] = 2.1

        assert workflow_to_text(workflow) == "Step 1: Read inbox (AI)\nStep 2: Reply to client (Human)"

    def test_name_keyed_connections(self):
        workflow = foreign_workflow()
        workflow["connections"] = {
            "Workflow Trigger (Google)": {
                "main": [[{"node": "AI Analysis: Read inbox (Google)", "type": "main", "index": 0}]],
            },
            "AI Analysis: Read inbox (Google)": {
                "main": [[{"node": "Notify Human: Reply to client (Google)", "type": "main", "index": 0}]],
            },
        }

        assert workflow_to_text(workflow) == "Step 1: Read inbox (AI)\nStep 2: Reply to client (Human)"

    def test_workflow_without_trigger(self):
        workflow = foreign_workflow()
        workflow["nodes"] = workflow["nodes"][1:]

        assert workflow_to_text(workflow) == ""

    @pytest.mark.parametrize("workflow", [None, "not a workflow", {"nodes": "oops"}])
    def test_unreadable_input(self, workflow):
        assert workflow_to_text(workflow) == ""

    def test_cyclic_connections_terminate(self):
        workflow = foreign_workflow()
        workflow["connections"]["h"] = {"main": [[{"node": "t", "type": "main", "index": 0}]]}

        assert len(workflow_to_text(workflow).splitlines()) == 2


class TestPrintWorkflow:
    """Test suite for the console summaries."""

    def test_summary_lists_nodes_and_flow(self, generator):
        graph = generator.generate(EXPLANATION, {"approach": "Hybrid"})
        output = print_workflow(graph)

        assert "WORKFLOW: Generated Workflow" in output
        assert "Tags: generated, workflow" in output
        assert "[1] Workflow Trigger (Generic)" in output
        assert "Type: webhook (v1)" in output
        assert "FLOW:" in output
        assert "DETACHED:" in output
        assert "Error Handler" in output.split("DETACHED:")[1]
        assert "Parameters:" not in output

    def test_summary_with_parameters(self, generator):
        output = print_workflow(generator.generate(EXPLANATION), include_params=True)

        assert "Parameters:" in output
        assert '• path: "workflow/input"' in output

    def test_summary_without_connections(self):
        workflow = foreign_workflow()
        workflow["connections"] = {}

        assert "(No connections defined)" in print_workflow(workflow)

    def test_unreadable_summary(self):
        assert print_workflow(None) == "(Unreadable workflow)"

    def test_compact(self, generator):
        output = print_workflow_compact(generator.generate("1. Classify (AI)"))

        lines = output.splitlines()
        assert lines[0] == "📋 Generated Workflow"
        assert lines[2].count(" → ") == 3
        assert "Error Handler" not in output
