"""Tests for parameter-driven savings adjustments."""

from __future__ import annotations

from quotaflow.core.models import (
    CostConstraints,
    Level,
    Optimization,
    OptimizationType,
    OptionalParams,
    SavingsEstimate,
)
from quotaflow.optimization.adjustments import (
    HIGH_VOLUME,
    PERFORMANCE_SENSITIVITY,
    TIGHT_BUDGET,
    adjust_estimate,
    adjust_optimization,
    policies_for,
)


def test_adjust_estimate_scales_percentage_and_vibes():
    estimate = SavingsEstimate(vibes=10, specs=1, percentage=40)
    adjusted = adjust_estimate(estimate, TIGHT_BUDGET)
    assert adjusted.percentage == 48
    assert adjusted.vibes == 12
    assert adjusted.specs == 1
    assert estimate.percentage == 40


def test_adjust_estimate_respects_cap():
    adjusted = adjust_estimate(SavingsEstimate(vibes=8, percentage=80), HIGH_VOLUME)
    assert adjusted.percentage == 85
    assert adjusted.vibes == 8.5


def test_estimate_above_cap_is_never_lowered():
    estimate = SavingsEstimate(vibes=10, percentage=90)
    assert adjust_estimate(estimate, TIGHT_BUDGET) is estimate


def test_zero_estimate_is_unchanged():
    estimate = SavingsEstimate()
    assert adjust_estimate(estimate, TIGHT_BUDGET) is estimate


class TestPolicyMatching:
    def test_tight_budget_applies_to_every_type(self):
        assert all(TIGHT_BUDGET.matches(t) for t in OptimizationType)

    def test_high_volume_applies_to_caching_and_batching(self):
        assert HIGH_VOLUME.matches(OptimizationType.CACHING)
        assert HIGH_VOLUME.matches(OptimizationType.BATCHING)
        assert not HIGH_VOLUME.matches(OptimizationType.VIBE_TO_SPEC)
        assert not HIGH_VOLUME.matches(OptimizationType.DECOMPOSITION)

    def test_performance_applies_to_spec_conversion_only(self):
        assert [t for t in OptimizationType if PERFORMANCE_SENSITIVITY.matches(t)] == [
            OptimizationType.VIBE_TO_SPEC
        ]


class TestPoliciesFor:
    def test_no_params_means_no_policies(self, settings):
        assert policies_for(None, settings) == []
        assert policies_for(OptionalParams(), settings) == []

    def test_policies_follow_params(self, settings):
        params = OptionalParams(
            expected_user_volume=1001,
            cost_constraints=CostConstraints(max_vibes=19),
            performance_sensitivity=Level.HIGH,
        )
        policies = policies_for(params, settings)
        assert [p.name for p in policies] == ["tight_budget", "high_volume", "performance_sensitivity"]
        assert all(p.cap == settings.savings_cap for p in policies)

    def test_threshold_values_are_not_tight_or_high(self, settings):
        params = OptionalParams(
            expected_user_volume=1000,
            cost_constraints=CostConstraints(max_vibes=20, max_specs=5, max_cost_dollars=10),
        )
        assert policies_for(params, settings) == []


def test_adjust_optimization_skips_non_matching_types():
    optimization = Optimization(
        type=OptimizationType.DECOMPOSITION,
        steps_affected=("a",),
        estimated_savings=SavingsEstimate(vibes=3, percentage=15),
    )
    assert adjust_optimization(optimization, [HIGH_VOLUME]) is optimization
    adjusted = adjust_optimization(optimization, [TIGHT_BUDGET])
    assert adjusted.estimated_savings.percentage == 18
    assert optimization.estimated_savings.percentage == 15
