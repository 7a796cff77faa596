"""MECE categorization of workflow steps.

Steps are grouped by their type, so every step lands in exactly one category
and the categories together cover the whole workflow.
"""

from __future__ import annotations

from typing import Dict, List

from quotaflow.core.models import StepType, Workflow, WorkflowStep
from quotaflow.core.results import MECEAnalysis, QuotaDriverCategory
from quotaflow.utils.logging import get_logger

logger = get_logger(__name__)


CATEGORY_NAMES: Dict[StepType, str] = {
    StepType.VIBE: "Vibe Operations",
    StepType.SPEC: "Spec Operations",
    StepType.DATA_RETRIEVAL: "Data Retrieval",
    StepType.PROCESSING: "Processing Operations",
    StepType.ANALYSIS: "Analysis Operations",
}

# Least structured types carry the most latent waste.
BASE_POTENTIAL: Dict[StepType, float] = {
    StepType.VIBE: 70.0,
    StepType.DATA_RETRIEVAL: 55.0,
    StepType.PROCESSING: 35.0,
    StepType.SPEC: 20.0,
    StepType.ANALYSIS: 20.0,
}

CROWDED_CATEGORY_SIZE = 3
# Added per member beyond the crowded size.
CROWDED_BONUS_PER_STEP = 5.0
MAX_POTENTIAL = 85.0


def optimization_potential(step_type: StepType, member_count: int) -> float:
    """Ordinal 0-100 score of how much waste a category is likely to hide."""
    potential = BASE_POTENTIAL[step_type]
    if member_count > CROWDED_CATEGORY_SIZE:
        # Many similar steps are a batching opportunity.
        potential += CROWDED_BONUS_PER_STEP * (member_count - CROWDED_CATEGORY_SIZE)
    return min(potential, MAX_POTENTIAL)


def apply_mece(workflow: Workflow) -> MECEAnalysis:
    """Partition a workflow's steps into exhaustive, exclusive categories."""
    members: Dict[StepType, List[WorkflowStep]] = {step_type: [] for step_type in CATEGORY_NAMES}
    for step in workflow.steps:
        members[step.type].append(step)

    categories: List[QuotaDriverCategory] = []
    for step_type, steps in members.items():
        if not steps:
            continue
        categories.append(
            QuotaDriverCategory(
                name=CATEGORY_NAMES[step_type],
                step_type=step_type,
                drivers=tuple(step.id for step in steps),
                quota_impact=sum(step.quota_cost for step in steps),
                optimization_potential=optimization_potential(step_type, len(steps)),
            )
        )

    categorized = sum(len(category.drivers) for category in categories)
    total_steps = len(workflow.steps)
    # An empty workflow is vacuously fully covered.
    total_coverage = 100.0 if total_steps == 0 else categorized / total_steps * 100

    overlaps = tuple(
        f"{step.description} could be categorized as both Processing and Data Retrieval"
        for step in workflow.steps
        if step.type == StepType.PROCESSING and "data" in step.description.lower()
    )

    logger.debug(
        "MECE analysis for %s: %d categories over %d steps",
        workflow.id,
        len(categories),
        total_steps,
    )
    return MECEAnalysis(categories=tuple(categories), total_coverage=total_coverage, overlaps=overlaps)
