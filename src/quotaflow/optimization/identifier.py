"""Optimization opportunity identification.

Turns reported efficiency issues into optimizations, adds structural
opportunities that need no issue (near-duplicate runs, oversized uniform
step families), consolidates overlapping candidates and finally applies the
parameter-driven savings adjustments.
"""

from __future__ import annotations

import math
from typing import Dict, List, Optional, Sequence

from quotaflow.config.settings import Settings, get_settings
from quotaflow.core.models import (
    EfficiencyIssue,
    IssueType,
    Optimization,
    OptimizationType,
    OptionalParams,
    SavingsEstimate,
    StepType,
    Workflow,
    WorkflowStep,
)
from quotaflow.optimization.adjustments import adjust_optimization, policies_for
from quotaflow.optimization.batching import find_batch_groups
from quotaflow.optimization.consolidation import consolidate_optimizations
from quotaflow.utils.logging import get_logger

logger = get_logger(__name__)


ISSUE_OPTIMIZATIONS: Dict[IssueType, OptimizationType] = {
    IssueType.REDUNDANT_QUERY: OptimizationType.CACHING,
    IssueType.MISSING_CACHE: OptimizationType.CACHING,
    IssueType.EXCESSIVE_LOOPS: OptimizationType.BATCHING,
    IssueType.UNNECESSARY_VIBES: OptimizationType.VIBE_TO_SPEC,
}

ISSUE_DESCRIPTIONS: Dict[IssueType, str] = {
    IssueType.REDUNDANT_QUERY: "Cache results for redundant queries",
    IssueType.MISSING_CACHE: "Add caching layer for repeated operations",
    IssueType.EXCESSIVE_LOOPS: "Batch operations to reduce loop overhead",
    IssueType.UNNECESSARY_VIBES: "Convert repetitive vibes to structured specs",
}

# Fraction of the affected steps' quota cost each optimization recovers.
SAVINGS_RATES: Dict[OptimizationType, float] = {
    OptimizationType.CACHING: 0.25,
    OptimizationType.BATCHING: 0.5,
    OptimizationType.VIBE_TO_SPEC: 0.25,
    OptimizationType.DECOMPOSITION: 0.15,
}

STEPS_PER_DECOMPOSED_SPEC = 5


def estimate_savings(
    optimization_type: OptimizationType, steps: Sequence[WorkflowStep]
) -> SavingsEstimate:
    """Baseline savings for an optimization over the given steps."""
    rate = SAVINGS_RATES[optimization_type]
    cost = sum(step.quota_cost for step in steps)
    specs = 0.0
    if optimization_type == OptimizationType.VIBE_TO_SPEC:
        specs = 1.0
    elif optimization_type == OptimizationType.DECOMPOSITION:
        specs = float(math.ceil(len(steps) / STEPS_PER_DECOMPOSED_SPEC))
    return SavingsEstimate(vibes=round(cost * rate, 2), specs=specs, percentage=rate * 100)


def optimization_for_issue(issue: EfficiencyIssue, workflow: Workflow) -> Optional[Optimization]:
    """Map one issue to an optimization over the workflow steps it names.

    Unknown step ids are dropped; an issue left with no known steps yields None.
    """
    by_id = workflow.steps_by_id()
    positions = workflow.positions()
    step_ids = sorted(
        {step_id for step_id in issue.steps_affected if step_id in by_id},
        key=positions.__getitem__,
    )
    if not step_ids:
        logger.debug("Skipping %s issue with no known steps", issue.type.value)
        return None

    optimization_type = ISSUE_OPTIMIZATIONS[issue.type]
    description = ISSUE_DESCRIPTIONS[issue.type]
    if issue.description:
        description = f"{description}: {issue.description}"
    return Optimization(
        type=optimization_type,
        description=description,
        steps_affected=tuple(step_ids),
        estimated_savings=estimate_savings(optimization_type, [by_id[s] for s in step_ids]),
    )


def find_structural_optimizations(workflow: Workflow, settings: Settings) -> List[Optimization]:
    """Opportunities visible from the workflow's shape alone."""
    optimizations: List[Optimization] = []

    for group in find_batch_groups(workflow.steps, settings.min_batch_size):
        optimizations.append(
            Optimization(
                type=OptimizationType.BATCHING,
                description=f"Batch {len(group)} near-identical {group[0].type.value} steps",
                steps_affected=tuple(step.id for step in group),
                estimated_savings=estimate_savings(OptimizationType.BATCHING, group),
            )
        )

    families: Dict[StepType, List[WorkflowStep]] = {}
    for step in workflow.steps:
        families.setdefault(step.type, []).append(step)
    for step_type, steps in families.items():
        if len(steps) > settings.decomposition_step_threshold:
            optimizations.append(
                Optimization(
                    type=OptimizationType.DECOMPOSITION,
                    description=(
                        f"Break {len(steps)} {step_type.value} steps into smaller, reusable specs"
                    ),
                    steps_affected=tuple(step.id for step in steps),
                    estimated_savings=estimate_savings(OptimizationType.DECOMPOSITION, steps),
                )
            )

    return optimizations


def identify_optimization_opportunities(
    workflow: Workflow,
    issues: Sequence[EfficiencyIssue] = (),
    params: Optional[OptionalParams] = None,
    *,
    settings: Optional[Settings] = None,
) -> List[Optimization]:
    """Candidate optimizations for a workflow.

    The result never holds two optimizations of the same type whose steps
    overlap, and every `steps_affected` id exists in the workflow.
    """
    settings = settings or get_settings()
    if not workflow.steps:
        return []

    candidates: List[Optimization] = []
    for issue in issues:
        optimization = optimization_for_issue(issue, workflow)
        if optimization is not None:
            candidates.append(optimization)
    candidates.extend(find_structural_optimizations(workflow, settings))

    consolidated = consolidate_optimizations(candidates, workflow, estimate_savings)
    policies = policies_for(params, settings)
    optimizations = [adjust_optimization(optimization, policies) for optimization in consolidated]

    logger.debug(
        "Identified %d optimizations for %s from %d issues (%d candidates, policies: %s)",
        len(optimizations),
        workflow.id,
        len(issues),
        len(candidates),
        [policy.name for policy in policies],
    )
    return optimizations
