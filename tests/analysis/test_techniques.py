"""Tests for technique selection."""

from __future__ import annotations

from quotaflow.analysis.techniques import (
    BASE_RELEVANCE,
    is_complex_intent,
    resolve_techniques,
    select_techniques,
)
from quotaflow.core.intent import ParsedIntent
from quotaflow.core.models import CostConstraints, Level, OptionalParams, Technique


def _techniques(scores):
    return [score.technique for score in scores]


class TestSelectTechniques:
    def test_simple_intent_gets_always_on_techniques(self, simple_intent, settings):
        scores = select_techniques(simple_intent, settings=settings)
        assert _techniques(scores) == [Technique.MECE, Technique.OPTION_FRAMING]

    def test_empty_intent_still_gets_mece_and_option_framing(self, settings):
        scores = select_techniques(ParsedIntent(), settings=settings)
        assert set(_techniques(scores)) == {Technique.MECE, Technique.OPTION_FRAMING}

    def test_complex_intent_gets_every_technique_in_relevance_order(self, intent, settings):
        scores = select_techniques(intent, settings=settings)
        assert _techniques(scores) == [
            Technique.MECE,
            Technique.VALUE_DRIVER_TREE,
            Technique.ZERO_BASED,
            Technique.OPTION_FRAMING,
            Technique.IMPACT_EFFORT,
            Technique.VALUE_PROP,
        ]

    def test_scores_are_sorted_descending(self, intent, settings):
        params = OptionalParams(cost_constraints=CostConstraints(max_vibes=5))
        scores = [s.relevance_score for s in select_techniques(intent, params, settings=settings)]
        assert scores == sorted(scores, reverse=True)

    def test_tight_budget_boosts_zero_based_above_mece(self, intent, settings):
        params = OptionalParams(cost_constraints=CostConstraints(max_cost_dollars=5))
        scores = select_techniques(intent, params, settings=settings)
        assert scores[0].technique == Technique.ZERO_BASED
        assert scores[0].relevance_score == 1.0

    def test_high_volume_adds_impact_effort(self, simple_intent, settings):
        params = OptionalParams(expected_user_volume=5000)
        scores = select_techniques(simple_intent, params, settings=settings)
        by_technique = {s.technique: s.relevance_score for s in scores}
        assert by_technique[Technique.IMPACT_EFFORT] == round(
            BASE_RELEVANCE[Technique.IMPACT_EFFORT] + 0.1, 4
        )

    def test_boosts_never_add_techniques(self, simple_intent, settings):
        params = OptionalParams(
            cost_constraints=CostConstraints(max_vibes=1),
            performance_sensitivity=Level.HIGH,
        )
        scores = select_techniques(simple_intent, params, settings=settings)
        assert Technique.ZERO_BASED not in _techniques(scores)
        assert Technique.VALUE_DRIVER_TREE not in _techniques(scores)

    def test_scores_stay_within_unit_interval(self, intent, settings):
        params = OptionalParams(
            expected_user_volume=10_000,
            cost_constraints=CostConstraints(max_vibes=1, max_specs=1, max_cost_dollars=1),
            performance_sensitivity=Level.HIGH,
        )
        for score in select_techniques(intent, params, settings=settings):
            assert 0 <= score.relevance_score <= 1


def test_is_complex_intent_counts_material_risks(intent, simple_intent):
    assert is_complex_intent(intent)
    assert not is_complex_intent(simple_intent)


def test_resolve_techniques_is_case_insensitive_and_ignores_unknown():
    resolved = resolve_techniques(["optionframing", "MECE analysis", "astrology"])
    assert _techniques(resolved) == [Technique.MECE, Technique.OPTION_FRAMING]
