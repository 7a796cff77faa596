"""Impact vs. effort prioritization of candidate optimizations."""

from __future__ import annotations

from typing import Dict, Iterable, List

from quotaflow.core.models import LEVEL_SCORES, Level, Optimization, OptimizationType
from quotaflow.core.results import OptimizationOption, PrioritizedOptimizations

EFFORT_BY_TYPE: Dict[OptimizationType, Level] = {
    OptimizationType.CACHING: Level.LOW,
    OptimizationType.BATCHING: Level.MEDIUM,
    OptimizationType.VIBE_TO_SPEC: Level.MEDIUM,
    OptimizationType.DECOMPOSITION: Level.HIGH,
}

HIGH_IMPACT_PERCENTAGE = 30.0


def assess_effort(optimization: Optimization) -> Level:
    return EFFORT_BY_TYPE[optimization.type]


def assess_risk(optimization: Optimization) -> Level:
    percentage = optimization.estimated_savings.percentage
    if percentage > 60:
        return Level.HIGH
    if percentage > 30:
        return Level.MEDIUM
    return Level.LOW


def is_high_impact(optimization: Optimization) -> bool:
    return optimization.estimated_savings.percentage >= HIGH_IMPACT_PERCENTAGE


def to_option(optimization: Optimization) -> OptimizationOption:
    effort = assess_effort(optimization)
    percentage = optimization.estimated_savings.percentage
    return OptimizationOption(
        name=optimization.type.value,
        description=optimization.description,
        quota_savings=percentage,
        implementation_effort=effort,
        risk_level=assess_risk(optimization),
        estimated_roi=percentage / LEVEL_SCORES[effort],
    )


def apply_impact_effort_matrix(optimizations: Iterable[Optimization]) -> PrioritizedOptimizations:
    """Place each optimization in one of four quadrants.

    Medium effort counts as low effort for bucketing; only high effort lands in
    a high-effort quadrant. Quadrants are ordered by ROI, ties keep input order.
    """
    quadrants: Dict[str, List[OptimizationOption]] = {
        "high_impact_low_effort": [],
        "high_impact_high_effort": [],
        "low_impact_low_effort": [],
        "low_impact_high_effort": [],
    }

    for optimization in optimizations:
        option = to_option(optimization)
        impact = "high_impact" if is_high_impact(optimization) else "low_impact"
        effort = "high_effort" if option.implementation_effort == Level.HIGH else "low_effort"
        quadrants[f"{impact}_{effort}"].append(option)

    return PrioritizedOptimizations(
        **{
            key: tuple(sorted(options, key=lambda option: -option.estimated_roi))
            for key, options in quadrants.items()
        }
    )
