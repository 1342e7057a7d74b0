"""Parse numbered workflow explanations into typed steps.

Accepted step markers (case-insensitive, "Step" optional):

    Step 1: Call the customer (Human)
    2. Summarize the call notes (AI)
    3) Draft a follow-up email

Lines without a marker are ignored. Steps keep the number written in the
text, so gaps and duplicates survive parsing unchanged.
"""
import re
from collections import Counter

import structlog

from stepflow.models.workflow import Actor, WorkflowStep

logger = structlog.get_logger()

STEP_PATTERN = re.compile(r"^(?:Step\s*)?(\d+)[.):]\s*(.+)$", re.IGNORECASE)
HUMAN_TAG = re.compile(r"\(human\)", re.IGNORECASE)
ACTOR_TAG = re.compile(r"\((?:human|ai)\)", re.IGNORECASE)
LINE_SPLIT = re.compile(r"\n+")


def parse_workflow_steps(text: str) -> list[WorkflowStep]:
    """Parse workflow explanation text into steps sorted by index."""
    steps: list[WorkflowStep] = []
    lines = [line.strip() for line in LINE_SPLIT.split(text or "")]
    lines = [line for line in lines if line]

    skipped = 0
    for line in lines:
        match = STEP_PATTERN.match(line)
        if not match:
            skipped += 1
            continue

        step_number, content = match.groups()
        index = int(step_number) - 1

        if HUMAN_TAG.search(content):
            actor = Actor.HUMAN
        else:
            # "(ai)" and untagged both mean AI
            actor = Actor.AI

        label = ACTOR_TAG.sub("", content, count=1).strip()
        if not label:
            skipped += 1
            continue

        steps.append(WorkflowStep(
            id=f"step{index + 1}",
            label=label,
            actor=actor,
            index=index,
        ))

    # sorted() is stable, so equal indices keep their text order
    steps = sorted(steps, key=lambda step: step.index)

    logger.debug(
        "workflow_steps_parsed",
        step_count=len(steps),
        skipped_lines=skipped,
    )
    return steps


def find_duplicate_indices(steps: list[WorkflowStep]) -> list[int]:
    """Indices claimed by more than one step, ascending."""
    counts = Counter(step.index for step in steps)
    return sorted(index for index, count in counts.items() if count > 1)
