"""Tests for Mermaid rendering and cleanup."""
import pytest

from stepflow.config import Settings
from stepflow.models.workflow import GeneratedGraph, GraphNode
from stepflow.n8n.generator import WorkflowGenerator
from stepflow.render.mermaid import (
    AI_CLASS_DEF,
    AI_CLASS_DEF_THIN,
    HUMAN_CLASS_DEF,
    HUMAN_CLASS_DEF_THIN,
    normalize_mermaid,
    sanitize_id,
    sanitize_mermaid,
    steps_to_mermaid,
    workflow_to_mermaid,
)

HEADER = ["graph LR", AI_CLASS_DEF, HUMAN_CLASS_DEF]


@pytest.fixture
def generator():
    return WorkflowGenerator(settings=Settings())


class TestWorkflowToMermaid:
    """Test suite for workflow_to_mermaid."""

    def test_generated_workflow(self, generator):
        graph = generator.generate("1. Review (Human)\n2. Classify (AI)", {"approach": "Hybrid"})
        lines = workflow_to_mermaid(graph).splitlines()

        assert lines[:3] == HEADER
        assert 'workflow_trigger["Workflow Trigger (Generic)"]' in lines
        assert 'step1_notify["Notify Human: Review (Generic)"]:::human' in lines
        assert 'step1_approval["Human Approval: Review (Generic)"]:::human' in lines
        assert 'step2_ai["AI Analysis: Classify (Generic)"]:::ai' in lines
        assert 'step2_transform["Process AI Response: Classify (Generic)"]:::ai' in lines
        assert 'workflow_response["Final Response"]' in lines
        assert 'error_handler["Error Handler"]' in lines

    def test_one_edge_per_connection(self, generator):
        graph = generator.generate("1. Review (Human)\n2. Classify (AI)")
        edges = [line for line in workflow_to_mermaid(graph).splitlines() if "-->" in line]

        assert edges == [
            "workflow_trigger --> step1_notify",
            "step1_notify --> step2_ai",
            "step2_ai --> step2_transform",
            "step2_transform --> workflow_response",
        ]
        assert len(edges) == graph.edge_count()

    def test_labels_are_escaped(self, generator):
        graph = generator.generate('1. Say "hi" to [team]')
        output = workflow_to_mermaid(graph)

        assert 'step1_ai["AI Analysis: Say #quot;hi#quot; to team (Generic)"]:::ai' in output

    def test_ids_are_sanitized(self):
        graph = GeneratedGraph(nodes=[
            GraphNode(id="node-1 a", name="First", type="n8n-nodes-base.set"),
        ])

        assert 'node_1_a["First"]' in workflow_to_mermaid(graph)

    def test_unclassified_roles_have_no_class(self, generator):
        output = workflow_to_mermaid(generator.generate("1. Classify"))

        trigger_line = next(line for line in output.splitlines() if line.startswith("workflow_trigger["))
        assert ":::" not in trigger_line

    def test_foreign_workflow_classes_from_names(self):
        workflow = {
            "nodes": [
                {"id": "x", "name": "AI Analysis: Sort mail (Google)", "type": "n8n-nodes-base.httpRequest"},
                {"id": "y", "name": "Something else", "type": "n8n-nodes-base.httpRequest"},
            ],
            "connections": {"x": {"main": [[{"node": "y"}]]}},
        }
        lines = workflow_to_mermaid(workflow).splitlines()

        assert 'x["AI Analysis: Sort mail (Google)"]:::ai' in lines
        assert 'y["Something else"]' in lines
        assert "x --> y" in lines

    def test_n8n_editor_export(self):
        workflow = {
            "name": "Editor export",
            "nodes": [
                {"id": "a1", "name": "Workflow Trigger (Google)", "type": "n8n-nodes-base.webhook",
                 "typeVersion": 2, "position": [0, 0], "parameters": {}},
                {"id": "b2", "name": "AI Analysis: Sort mail (Google)", "type": "n8n-nodes-base.httpRequest",
                 "typeVersion": 4.2, "position": [250, 0], "parameters": {}},
            ],
            "connections": {
                "Workflow Trigger (Google)": {
                    "main": [[{"node": "AI Analysis: Sort mail (Google)", "type": "main", "index": 0}]],
                },
            },
        }
        lines = workflow_to_mermaid(workflow).splitlines()

        assert 'b2["AI Analysis: Sort mail (Google)"]:::ai' in lines
        assert "a1 --> b2" in lines

    @pytest.mark.parametrize("workflow", [None, 42, {"nodes": [{"id": "missing-fields"}]}])
    def test_unrenderable_input_gives_header(self, workflow):
        assert workflow_to_mermaid(workflow).splitlines() == HEADER


class TestStepsToMermaid:
    """Test suite for steps_to_mermaid."""

    def test_numbered_steps(self):
        output = steps_to_mermaid("Step 1: Call customer (Human)\nStep 2: Summarize (AI)")

        assert output.splitlines() == [
            "flowchart TD",
            HUMAN_CLASS_DEF,
            AI_CLASS_DEF,
            'S1["Call customer (Human)"]',
            'S2["Summarize (AI)"]',
            "S1 --> S2",
            "class S1 human",
            "class S2 ai",
        ]

    def test_only_step_lines_when_numbered(self):
        output = steps_to_mermaid("Intro text\n1. First\n2) Second")

        assert 'S1["First"]' in output
        assert 'S2["Second"]' in output
        assert "Intro" not in output

    def test_falls_back_to_all_lines(self):
        output = steps_to_mermaid("Gather data\nSend report [h]")

        assert 'S1["Gather data"]' in output
        assert 'S2["Send report h"]' in output
        assert "class S2 human" in output
        assert "class S1" not in output

    def test_ambiguous_hint_gets_no_class(self):
        output = steps_to_mermaid("1. AI drafts, human edits")

        assert "class S1" not in output

    def test_direction(self):
        assert steps_to_mermaid("1. A", direction="LR").startswith("flowchart LR")
        assert steps_to_mermaid("1. A", direction="lr").startswith("flowchart LR")
        assert steps_to_mermaid("1. A", direction="sideways").startswith("flowchart TD")

    def test_long_labels_are_truncated(self):
        output = steps_to_mermaid("1. " + "x" * 500)

        assert f'S1["{"x" * 160}"]' in output.splitlines()

    def test_empty_text(self):
        assert steps_to_mermaid("").splitlines() == ["flowchart TD", HUMAN_CLASS_DEF, AI_CLASS_DEF]


class TestSanitizeMermaid:
    """Test suite for sanitize_mermaid and normalize_mermaid."""

    FENCED = (
        "```mermaid\n"
        "graph TD\n"
        "A[Start (Human)] --> B[Run (AI)]\n"
        "classDef human fill:#fff,stroke-width:1px\n"
        "note: not mermaid\n"
        "```"
    )

    def test_sanitize(self):
        assert sanitize_mermaid(self.FENCED).splitlines() == [
            "flowchart TD",
            HUMAN_CLASS_DEF_THIN,
            AI_CLASS_DEF_THIN,
            'A["Start (Human)"]',
            "class A human",
            'B["Run (AI)"]',
            "class B ai",
            "A[Start (Human)] --> B[Run (AI)]",
        ]

    def test_sanitize_keeps_plain_edges_and_classes(self):
        lines = sanitize_mermaid("A --> B\nclass A human", direction="LR").splitlines()

        assert lines[0] == "flowchart LR"
        assert "A --> B" in lines
        assert "class A human" in lines

    def test_sanitize_empty(self):
        assert sanitize_mermaid("") == ""
        assert normalize_mermaid("") == ""

    def test_normalize_hoists_nodes_out_of_edges(self):
        assert normalize_mermaid(self.FENCED).splitlines() == [
            "flowchart TD",
            HUMAN_CLASS_DEF_THIN,
            AI_CLASS_DEF_THIN,
            'A["Start (Human)"]',
            "class A human",
            'B["Run (AI)"]',
            "class B ai",
            "A --> B",
        ]

    def test_normalize_removes_duplicate_lines(self):
        code = "A[One] --> B[Two]\nA[One] --> B[Two]\nA --> B"
        lines = normalize_mermaid(code).splitlines()

        assert len(lines) == len(set(lines))
        assert lines.count("A --> B") == 1

    def test_normalize_quotes_labels(self):
        lines = normalize_mermaid('X[ "Padded" ] --> Y[Plain]').splitlines()

        assert 'X["Padded"]' in lines
        assert 'Y["Plain"]' in lines
        assert "X --> Y" in lines


class TestSanitizeId:

    def test_replaces_unsafe_characters(self):
        assert sanitize_id("step1_ai") == "step1_ai"
        assert sanitize_id("a-b.c d") == "a_b_c_d"
