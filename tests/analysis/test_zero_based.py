"""Tests for zero-based design."""

from __future__ import annotations

from quotaflow.analysis.zero_based import (
    BASELINE_ASSUMPTION,
    BASELINE_SAVINGS,
    apply_zero_based_design,
    implementation_risk_for,
)
from quotaflow.core.intent import Operation, ParsedIntent
from quotaflow.core.models import Level, StepType


def test_minimal_intent_challenges_only_the_baseline():
    solution = apply_zero_based_design(ParsedIntent())
    assert solution.assumptions_challenged == (BASELINE_ASSUMPTION,)
    assert solution.potential_savings == BASELINE_SAVINGS
    assert solution.implementation_risk == Level.LOW


def test_rich_intent_challenges_more_and_saves_more(intent):
    minimal = apply_zero_based_design(ParsedIntent())
    solution = apply_zero_based_design(intent)
    assert len(solution.assumptions_challenged) > len(minimal.assumptions_challenged)
    assert solution.potential_savings > minimal.potential_savings
    # 20 baseline + 26 + 10 from risks + 15 data sources + 10 complex requirement
    assert solution.potential_savings == 81.0
    assert solution.implementation_risk == Level.HIGH


def test_many_vibe_operations_suggest_spec_templates():
    intent = ParsedIntent(
        operations_required=tuple(
            Operation(id=f"op{i}", type=StepType.VIBE) for i in range(5)
        )
    )
    solution = apply_zero_based_design(intent)
    assert "Assumption: Complex logic requires vibe operations" in solution.assumptions_challenged
    assert "spec templates" in solution.radical_approach


def test_savings_never_exceed_cap(intent):
    crowded = intent.model_copy(update={"potential_risks": intent.potential_risks * 10})
    assert apply_zero_based_design(crowded).potential_savings <= 95.0


def test_implementation_risk_thresholds():
    assert implementation_risk_for(20) == Level.LOW
    assert implementation_risk_for(45) == Level.MEDIUM
    assert implementation_risk_for(70) == Level.HIGH
