"""Value driver tree analysis.

Ranks steps by quota cost, splits them into primary and secondary drivers,
and infers structural root causes behind the spend.
"""

from __future__ import annotations

from typing import Dict, List

from quotaflow.core.models import StepType, Workflow, WorkflowStep
from quotaflow.core.results import ValueDriver, ValueDriverAnalysis
from quotaflow.utils.logging import get_logger

logger = get_logger(__name__)


# Fraction of a step's cost that optimization can plausibly recover.
SAVINGS_RATES: Dict[StepType, float] = {
    StepType.VIBE: 0.6,
    StepType.DATA_RETRIEVAL: 0.4,
    StepType.PROCESSING: 0.25,
    StepType.ANALYSIS: 0.2,
    StepType.SPEC: 0.1,
}

# Primary drivers are the most expensive steps that together reach this share.
PRIMARY_COST_SHARE = 0.8

MIN_STEPS_FOR_RATIO_CAUSES = 3
VIBE_RATIO_THRESHOLD = 0.5
REPEATED_RETRIEVAL_THRESHOLD = 2
HIGH_COMPLEXITY_THRESHOLD = 7
CONCENTRATION_THRESHOLD = 0.5


def build_driver(step: WorkflowStep) -> ValueDriver:
    savings = step.quota_cost * SAVINGS_RATES[step.type]
    return ValueDriver(
        step_id=step.id,
        name=step.description or step.id,
        step_type=step.type,
        current_cost=step.quota_cost,
        optimized_cost=step.quota_cost - savings,
        savings_potential=savings,
    )


def apply_value_driver_tree(workflow: Workflow) -> ValueDriverAnalysis:
    """Rank steps by cost and separate primary from secondary drivers.

    Every primary driver costs at least as much as any secondary driver: the
    primary set is always a prefix of the cost-descending ranking.
    """
    ranked = sorted(workflow.steps, key=lambda step: -step.quota_cost)
    total = workflow.total_quota_cost

    primary: List[ValueDriver] = []
    secondary: List[ValueDriver] = []
    cumulative = 0.0
    for step in ranked:
        if total > 0 and cumulative < total * PRIMARY_COST_SHARE:
            primary.append(build_driver(step))
            cumulative += step.quota_cost
        else:
            secondary.append(build_driver(step))

    root_causes = infer_root_causes(workflow)
    logger.debug(
        "Value drivers for %s: %d primary, %d secondary, %d root causes",
        workflow.id,
        len(primary),
        len(secondary),
        len(root_causes),
    )
    return ValueDriverAnalysis(
        primary_drivers=tuple(primary),
        secondary_drivers=tuple(secondary),
        root_causes=tuple(root_causes),
    )


def infer_root_causes(workflow: Workflow) -> List[str]:
    """Human-readable causes for structural thresholds that are exceeded."""
    causes: List[str] = []
    steps = workflow.steps
    step_count = len(steps)
    if step_count == 0:
        return causes

    vibe_count = sum(1 for step in steps if step.type == StepType.VIBE)
    if step_count >= MIN_STEPS_FOR_RATIO_CAUSES and vibe_count / step_count > VIBE_RATIO_THRESHOLD:
        causes.append("Multiple vibe operations that could be consolidated into specs")

    retrieval_count = sum(1 for step in steps if step.type == StepType.DATA_RETRIEVAL)
    if retrieval_count > REPEATED_RETRIEVAL_THRESHOLD:
        causes.append("Repeated data retrieval operations without caching")

    if len(workflow.data_flow) > step_count:
        causes.append("Complex data dependencies creating inefficient execution paths")

    if workflow.estimated_complexity > HIGH_COMPLEXITY_THRESHOLD:
        causes.append("High workflow complexity leading to increased quota consumption")

    total = workflow.total_quota_cost
    if step_count >= MIN_STEPS_FOR_RATIO_CAUSES and total > 0:
        top = max(steps, key=lambda step: step.quota_cost)
        if top.quota_cost / total > CONCENTRATION_THRESHOLD:
            causes.append(f"Quota spend concentrated in a single step ({top.id})")

    return causes
