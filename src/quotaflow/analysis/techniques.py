"""Technique selection.

Scores which consulting frameworks apply to a parsed intent. MECE and option
framing are always selected; the heavier frameworks are added only when the
intent shows enough complexity to make them worthwhile.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from quotaflow.config.settings import Settings, get_settings
from quotaflow.core.intent import ParsedIntent, RequirementType
from quotaflow.core.models import Level, OptionalParams, Technique
from quotaflow.core.results import TechniqueScore
from quotaflow.utils.logging import get_logger

logger = get_logger(__name__)


BASE_RELEVANCE: Dict[Technique, float] = {
    Technique.MECE: 0.9,
    Technique.VALUE_DRIVER_TREE: 0.88,
    Technique.ZERO_BASED: 0.87,
    Technique.OPTION_FRAMING: 0.85,
    Technique.IMPACT_EFFORT: 0.75,
    Technique.VALUE_PROP: 0.6,
}

APPLICABLE_SCENARIOS: Dict[Technique, tuple[str, ...]] = {
    Technique.MECE: ("quota optimization", "workflow analysis", "cost breakdown"),
    Technique.VALUE_DRIVER_TREE: ("cost analysis", "optimization prioritization", "root cause analysis"),
    Technique.ZERO_BASED: ("radical optimization", "workflow redesign", "assumption challenging"),
    Technique.OPTION_FRAMING: ("decision making", "risk assessment", "alternative evaluation"),
    Technique.IMPACT_EFFORT: ("optimization prioritization", "resource allocation", "quick wins identification"),
    Technique.VALUE_PROP: ("user value alignment", "feature prioritization", "pain point analysis"),
}

# Complexity signals
MIN_COMPLEX_REQUIREMENTS = 6
MIN_COMPLEX_OPERATIONS = 8
MIN_COMPLEX_RISKS = 2

MAX_RELEVANCE = 1.0


def is_complex_intent(intent: ParsedIntent) -> bool:
    """Whether the intent warrants value-driver and zero-based analysis."""
    material_risks = sum(
        1 for risk in intent.potential_risks if risk.severity in (Level.MEDIUM, Level.HIGH)
    )
    return (
        len(intent.technical_requirements) >= MIN_COMPLEX_REQUIREMENTS
        or len(intent.operations_required) >= MIN_COMPLEX_OPERATIONS
        or material_risks >= MIN_COMPLEX_RISKS
    )


def select_techniques(
    intent: ParsedIntent,
    params: Optional[OptionalParams] = None,
    *,
    settings: Optional[Settings] = None,
) -> List[TechniqueScore]:
    """Return applicable techniques ordered by descending relevance.

    Ties keep their insertion order (MECE, value drivers, zero-based, impact/effort,
    value proposition, option framing).
    """
    settings = settings or get_settings()
    high_volume = params is not None and params.is_high_volume(settings)

    scores: Dict[Technique, float] = {Technique.MECE: BASE_RELEVANCE[Technique.MECE]}

    if is_complex_intent(intent):
        scores[Technique.VALUE_DRIVER_TREE] = BASE_RELEVANCE[Technique.VALUE_DRIVER_TREE]
        scores[Technique.ZERO_BASED] = BASE_RELEVANCE[Technique.ZERO_BASED]

    if len(intent.operations_required) > 3 or high_volume:
        scores[Technique.IMPACT_EFFORT] = BASE_RELEVANCE[Technique.IMPACT_EFFORT]

    has_processing = any(
        req.type == RequirementType.PROCESSING for req in intent.technical_requirements
    )
    if len(intent.data_sources_needed) > 2 or has_processing:
        scores[Technique.VALUE_PROP] = BASE_RELEVANCE[Technique.VALUE_PROP]

    scores[Technique.OPTION_FRAMING] = BASE_RELEVANCE[Technique.OPTION_FRAMING]

    if params is not None:
        scores = adjust_relevance(scores, params, settings)

    ranked = sorted(scores.items(), key=lambda item: -item[1])
    logger.debug("Selected techniques: %s", [t.value for t, _ in ranked])
    return [
        TechniqueScore(
            technique=technique,
            relevance_score=score,
            applicable_scenarios=APPLICABLE_SCENARIOS[technique],
        )
        for technique, score in ranked
    ]


def adjust_relevance(
    scores: Dict[Technique, float],
    params: OptionalParams,
    settings: Settings,
) -> Dict[Technique, float]:
    """Return a new score table biased by the caller's parameters."""
    boosts: Dict[Technique, float] = {}

    if params.has_tight_constraints(settings):
        boosts[Technique.ZERO_BASED] = boosts.get(Technique.ZERO_BASED, 0.0) + 0.15
        boosts[Technique.VALUE_DRIVER_TREE] = boosts.get(Technique.VALUE_DRIVER_TREE, 0.0) + 0.1

    if params.is_high_volume(settings):
        boosts[Technique.IMPACT_EFFORT] = boosts.get(Technique.IMPACT_EFFORT, 0.0) + 0.1

    if params.performance_sensitivity == Level.HIGH:
        boosts[Technique.VALUE_DRIVER_TREE] = boosts.get(Technique.VALUE_DRIVER_TREE, 0.0) + 0.08

    return {
        technique: round(min(MAX_RELEVANCE, score + boosts.get(technique, 0.0)), 4)
        for technique, score in scores.items()
    }


def resolve_techniques(names: Iterable[str]) -> List[TechniqueScore]:
    """Map caller-supplied technique names onto known techniques.

    Matching is case-insensitive and accepts names that contain a technique name
    (e.g. "mece analysis"). Unknown names are ignored. Order follows base relevance.
    """
    lowered = [name.strip().lower() for name in names if name and name.strip()]
    selected = [
        technique
        for technique in BASE_RELEVANCE
        if any(name == technique.value.lower() or technique.value.lower() in name for name in lowered)
    ]
    selected.sort(key=lambda t: -BASE_RELEVANCE[t])
    return [
        TechniqueScore(
            technique=technique,
            relevance_score=BASE_RELEVANCE[technique],
            applicable_scenarios=APPLICABLE_SCENARIOS[technique],
        )
        for technique in selected
    ]
