"""Parameter-driven savings adjustments.

Each rule (tight budget, high volume, performance sensitivity) is an
`AdjustmentPolicy`; `adjust_estimate` applies one policy to one estimate and
returns a new estimate, so every rule can be exercised on its own.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import FrozenSet, List, Optional

from quotaflow.config.settings import Settings
from quotaflow.core.models import Level, Optimization, OptimizationType, OptionalParams, SavingsEstimate


@dataclass(frozen=True)
class AdjustmentPolicy:
    """Scale savings of matching optimization types, capped at `cap` percent.

    An empty `applies_to` matches every optimization type.
    """

    name: str
    multiplier: float
    applies_to: FrozenSet[OptimizationType] = field(default_factory=frozenset)
    cap: float = 85.0

    def matches(self, optimization_type: OptimizationType) -> bool:
        return not self.applies_to or optimization_type in self.applies_to


TIGHT_BUDGET = AdjustmentPolicy(name="tight_budget", multiplier=1.2)
HIGH_VOLUME = AdjustmentPolicy(
    name="high_volume",
    multiplier=1.3,
    applies_to=frozenset({OptimizationType.CACHING, OptimizationType.BATCHING}),
)
PERFORMANCE_SENSITIVITY = AdjustmentPolicy(
    name="performance_sensitivity",
    multiplier=1.1,
    applies_to=frozenset({OptimizationType.VIBE_TO_SPEC}),
)


def adjust_estimate(estimate: SavingsEstimate, policy: AdjustmentPolicy) -> SavingsEstimate:
    """Scale an estimate up by the policy's multiplier.

    The quota savings move in proportion to the percentage, and an estimate that
    already sits at or above the cap is returned unchanged (never lowered).
    """
    if estimate.percentage <= 0:
        return estimate
    percentage = min(policy.cap, estimate.percentage * policy.multiplier)
    if percentage <= estimate.percentage:
        return estimate
    ratio = percentage / estimate.percentage
    return estimate.model_copy(
        update={
            "percentage": round(percentage, 2),
            "vibes": round(estimate.vibes * ratio, 2),
        }
    )


def policies_for(params: Optional[OptionalParams], settings: Settings) -> List[AdjustmentPolicy]:
    """Policies triggered by the caller's parameters, in application order."""
    if params is None:
        return []
    policies: List[AdjustmentPolicy] = []
    if params.has_tight_constraints(settings):
        policies.append(TIGHT_BUDGET)
    if params.is_high_volume(settings):
        policies.append(HIGH_VOLUME)
    if params.performance_sensitivity == Level.HIGH:
        policies.append(PERFORMANCE_SENSITIVITY)
    return [replace(policy, cap=settings.savings_cap) for policy in policies]


def adjust_optimization(
    optimization: Optimization, policies: List[AdjustmentPolicy]
) -> Optimization:
    estimate = optimization.estimated_savings
    for policy in policies:
        if policy.matches(optimization.type):
            estimate = adjust_estimate(estimate, policy)
    if estimate is optimization.estimated_savings:
        return optimization
    return optimization.model_copy(update={"estimated_savings": estimate})
