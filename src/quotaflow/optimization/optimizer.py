"""Whole-workflow optimization.

Identifies optimizations for a workflow and applies them to a copy of its
steps, producing an `OptimizedWorkflow` with before/after efficiency gains.
The input workflow is never modified.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Optional, Sequence

from quotaflow.config.settings import Settings, get_settings
from quotaflow.core.exceptions import OptimizationError, WorkflowValidationError
from quotaflow.core.models import (
    DataFlowEdge,
    EfficiencyIssue,
    IssueType,
    Level,
    Optimization,
    OptimizationType,
    OptionalParams,
    StepType,
    Workflow,
    WorkflowStep,
)
from quotaflow.core.results import ConsultingAnalysis, EfficiencyGains, OptimizedWorkflow
from quotaflow.optimization.identifier import identify_optimization_opportunities
from quotaflow.utils.logging import get_logger

logger = get_logger(__name__)

# Share of the original cost that remains after each transformation.
BATCHED_COST_FACTOR = 0.6
CACHED_COST_FACTOR = 0.4
SPEC_COST_FACTOR = 0.3

MECE_ISSUE_THRESHOLD = 30.0
MECE_HIGH_SEVERITY_THRESHOLD = 60.0
DRIVER_ISSUE_THRESHOLD = 20.0
DRIVER_HIGH_SEVERITY_THRESHOLD = 40.0
ZERO_BASED_ISSUE_THRESHOLD = 30.0


class _StepPlan:
    """Mutable working copy of the steps while optimizations are applied."""

    def __init__(self, workflow: Workflow):
        self.steps: Dict[str, WorkflowStep] = {step.id: step for step in workflow.steps}
        self.redirects: Dict[str, str] = {}

    def present(self, step_ids: Sequence[str]) -> List[WorkflowStep]:
        return [self.steps[step_id] for step_id in step_ids if step_id in self.steps]

    def replace(self, step: WorkflowStep, **update) -> None:
        self.steps[step.id] = step.model_copy(update=update)

    def remove(self, step_id: str, into: str) -> None:
        del self.steps[step_id]
        self.redirects[step_id] = into

    def resolve(self, step_id: str) -> str:
        while step_id in self.redirects:
            step_id = self.redirects[step_id]
        return step_id


def _apply_batching(plan: _StepPlan, optimization: Optimization) -> None:
    affected = plan.present(optimization.steps_affected)
    if len(affected) < 2:
        return
    first = affected[0]
    group_cost = sum(step.quota_cost for step in affected)
    plan.replace(
        first,
        quota_cost=round(group_cost * BATCHED_COST_FACTOR, 2),
        description=f"Batched: {first.description}",
    )
    for step in affected[1:]:
        plan.remove(step.id, into=first.id)


def _apply_caching(plan: _StepPlan, optimization: Optimization) -> None:
    for step in plan.present(optimization.steps_affected):
        plan.replace(
            step,
            quota_cost=round(step.quota_cost * CACHED_COST_FACTOR, 2),
            description=f"Cached: {step.description}",
        )


def _apply_vibe_to_spec(plan: _StepPlan, optimization: Optimization) -> None:
    for step in plan.present(optimization.steps_affected):
        if step.type != StepType.VIBE:
            continue
        plan.replace(
            step,
            type=StepType.SPEC,
            quota_cost=round(step.quota_cost * SPEC_COST_FACTOR, 2),
            description=f"Spec-based: {step.description}",
        )


def _record_only(plan: _StepPlan, optimization: Optimization) -> None:
    """Decomposition changes structure, not cost; it is reported but not applied."""


APPLIERS: Dict[OptimizationType, Callable[[_StepPlan, Optimization], None]] = {
    OptimizationType.BATCHING: _apply_batching,
    OptimizationType.CACHING: _apply_caching,
    OptimizationType.VIBE_TO_SPEC: _apply_vibe_to_spec,
    OptimizationType.DECOMPOSITION: _record_only,
}


def _redirect_edges(workflow: Workflow, plan: _StepPlan) -> List[DataFlowEdge]:
    """Point edges of removed steps at the step that absorbed them."""
    edges: List[DataFlowEdge] = []
    seen = set()
    for edge in workflow.data_flow:
        source = plan.resolve(edge.from_step)
        target = plan.resolve(edge.to_step)
        if source == target or (source, target) in seen:
            continue
        seen.add((source, target))
        if (source, target) == (edge.from_step, edge.to_step):
            edges.append(edge)
        else:
            edges.append(edge.model_copy(update={"from_step": source, "to_step": target}))
    return edges


def _type_cost(steps: Sequence[WorkflowStep], step_type: StepType) -> float:
    return sum(step.quota_cost for step in steps if step.type == step_type)


def _reduction(before: float, after: float) -> float:
    return round((before - after) / before * 100, 2) if before > 0 else 0.0


def calculate_efficiency_gains(
    original: Sequence[WorkflowStep], optimized: Sequence[WorkflowStep]
) -> EfficiencyGains:
    original_cost = sum(step.quota_cost for step in original)
    optimized_cost = sum(step.quota_cost for step in optimized)
    return EfficiencyGains(
        vibe_reduction=_reduction(
            _type_cost(original, StepType.VIBE), _type_cost(optimized, StepType.VIBE)
        ),
        spec_reduction=_reduction(
            _type_cost(original, StepType.SPEC), _type_cost(optimized, StepType.SPEC)
        ),
        cost_savings=round(original_cost - optimized_cost, 2),
        total_savings_percentage=_reduction(original_cost, optimized_cost),
    )


def apply_optimizations(workflow: Workflow, optimizations: Sequence[Optimization]) -> OptimizedWorkflow:
    """Apply `optimizations` in order to a copy of the workflow's steps.

    Raises:
        OptimizationError: if an optimization names a step the workflow lacks.
    """
    known = set(workflow.step_ids)
    plan = _StepPlan(workflow)
    for optimization in optimizations:
        unknown = [step_id for step_id in optimization.steps_affected if step_id not in known]
        if unknown:
            raise OptimizationError(
                f"{optimization.type.value} optimization references unknown steps",
                context={"workflow_id": workflow.id, "unknown_steps": unknown},
            )
        APPLIERS[optimization.type](plan, optimization)

    steps = [plan.steps[step.id] for step in workflow.steps if step.id in plan.steps]
    return OptimizedWorkflow(
        id=f"{workflow.id}-optimized",
        steps=tuple(steps),
        data_flow=tuple(_redirect_edges(workflow, plan)),
        estimated_complexity=max(1.0, workflow.estimated_complexity - 1),
        optimizations=tuple(optimizations),
        original_workflow_id=workflow.id,
        efficiency_gains=calculate_efficiency_gains(workflow.steps, steps),
    )


def optimize_workflow(
    workflow: Workflow,
    issues: Sequence[EfficiencyIssue] = (),
    params: Optional[OptionalParams] = None,
    *,
    settings: Optional[Settings] = None,
) -> OptimizedWorkflow:
    """Identify and apply optimizations to a copy of `workflow`.

    Raises:
        WorkflowValidationError: if the workflow has no steps.
    """
    if not workflow.steps:
        raise WorkflowValidationError(
            "Workflow must contain at least one step to be optimized",
            context={"workflow_id": workflow.id},
        )
    settings = settings or get_settings()
    optimizations = identify_optimization_opportunities(workflow, issues, params, settings=settings)
    result = apply_optimizations(workflow, optimizations)
    logger.info(
        "Optimized workflow %s: %d optimizations, %.2f%% total savings",
        workflow.id,
        len(optimizations),
        result.efficiency_gains.total_savings_percentage,
    )
    return result


def convert_analysis_to_issues(analysis: ConsultingAnalysis, workflow: Workflow) -> List[EfficiencyIssue]:
    """Translate consulting findings into efficiency issues for `workflow`.

    Falls back to one general redundant-query issue over every step when the
    analysis surfaces nothing specific.
    """
    known = set(workflow.step_ids)
    issues: List[EfficiencyIssue] = []

    if analysis.mece_analysis is not None:
        for category in analysis.mece_analysis.categories:
            steps = tuple(step_id for step_id in category.drivers if step_id in known)
            if category.optimization_potential <= MECE_ISSUE_THRESHOLD or not steps:
                continue
            is_vibe = category.step_type == StepType.VIBE
            issues.append(
                EfficiencyIssue(
                    type=IssueType.UNNECESSARY_VIBES if is_vibe else IssueType.REDUNDANT_QUERY,
                    severity=(
                        Level.HIGH
                        if category.optimization_potential > MECE_HIGH_SEVERITY_THRESHOLD
                        else Level.MEDIUM
                    ),
                    description=(
                        f"High optimization potential in {category.name}: "
                        f"{category.optimization_potential:g}%"
                    ),
                    suggested_fix=(
                        f"Optimize {category.name} operations through "
                        f"{'spec conversion' if is_vibe else 'caching/batching'}"
                    ),
                    steps_affected=steps,
                )
            )

    if analysis.value_driver_analysis is not None:
        for driver in analysis.value_driver_analysis.primary_drivers:
            if driver.savings_potential <= DRIVER_ISSUE_THRESHOLD or driver.step_id not in known:
                continue
            is_vibe = driver.step_type == StepType.VIBE
            issues.append(
                EfficiencyIssue(
                    type=IssueType.UNNECESSARY_VIBES if is_vibe else IssueType.MISSING_CACHE,
                    severity=(
                        Level.HIGH
                        if driver.savings_potential > DRIVER_HIGH_SEVERITY_THRESHOLD
                        else Level.MEDIUM
                    ),
                    description=f"Value driver {driver.name} has {driver.savings_potential:g} savings potential",
                    suggested_fix=(
                        f"Optimize {driver.name} to reduce cost from {driver.current_cost:g} "
                        f"to {driver.optimized_cost:g}"
                    ),
                    steps_affected=(driver.step_id,),
                )
            )

    solution = analysis.zero_based_solution
    if solution is not None and solution.potential_savings > ZERO_BASED_ISSUE_THRESHOLD and known:
        issues.append(
            EfficiencyIssue(
                type=IssueType.UNNECESSARY_VIBES,
                severity=Level.HIGH,
                description=(
                    f"Zero-based analysis suggests {solution.potential_savings:g}% savings "
                    "through radical redesign"
                ),
                suggested_fix=solution.radical_approach,
                steps_affected=workflow.step_ids,
            )
        )

    if not issues:
        issues.append(
            EfficiencyIssue(
                type=IssueType.REDUNDANT_QUERY,
                severity=Level.MEDIUM,
                description="General workflow optimization opportunities identified through consulting analysis",
                suggested_fix="Apply batching, caching, and spec conversion optimizations",
                steps_affected=workflow.step_ids,
            )
        )
    return issues
