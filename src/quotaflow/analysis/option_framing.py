"""Three-tier option framing (conservative / balanced / bold).

Each tier has a fixed ordinal shape: effort and risk rise from low to high
while the quota savings rise strictly with them. Caller parameters may tweak
savings, labels and descriptions, but never the ordering of savings.
"""

from __future__ import annotations

from typing import Dict, Optional

from quotaflow.config.settings import Settings, get_settings
from quotaflow.core.models import LEVEL_SCORES, Level, OptionalParams, Workflow
from quotaflow.core.results import DesignOption, ThreeOptionAnalysis
from quotaflow.utils.logging import get_logger

logger = get_logger(__name__)

CONSERVATIVE = "conservative"
BALANCED = "balanced"
BOLD = "bold"

BASE_OPTIONS: Dict[str, DesignOption] = {
    CONSERVATIVE: DesignOption(
        name="Conservative Optimization",
        summary="Apply safe, proven optimization techniques with minimal workflow changes",
        key_tradeoffs=(
            "Lower savings in exchange for near-zero disruption",
            "Existing step structure is preserved",
        ),
        impact=Level.LOW,
        effort=Level.LOW,
        risk=Level.LOW,
        major_risks=("Savings may plateau once caching is in place",),
        quota_savings=0.0,
        savings_rate=0.25,
        estimated_roi=0.0,
    ),
    BALANCED: DesignOption(
        name="Balanced Optimization",
        summary=(
            "Combine multiple optimization strategies for significant improvements "
            "with manageable risk"
        ),
        key_tradeoffs=(
            "Moderate rework of repeated and free-form steps",
            "Requires spec templates for the most common vibe operations",
        ),
        impact=Level.MEDIUM,
        effort=Level.MEDIUM,
        risk=Level.MEDIUM,
        major_risks=(
            "Batched operations can mask individual step failures",
            "Spec conversion may lose nuance in edge cases",
        ),
        quota_savings=0.0,
        savings_rate=0.45,
        estimated_roi=0.0,
    ),
    BOLD: DesignOption(
        name="Bold Transformation",
        summary="Radical workflow redesign using zero-based principles for maximum efficiency",
        key_tradeoffs=(
            "Maximum savings at the cost of a full redesign",
            "Existing integrations must be re-validated",
        ),
        impact=Level.HIGH,
        effort=Level.HIGH,
        risk=Level.HIGH,
        major_risks=(
            "Redesign may regress behaviour users rely on",
            "Longer delivery timeline before any savings land",
        ),
        quota_savings=0.0,
        savings_rate=0.70,
        estimated_roi=0.0,
    ),
}

# Multipliers keep the tiers strictly ordered: 0.30 < 0.5175 < 0.77.
TIGHT_BUDGET_MULTIPLIERS: Dict[str, float] = {CONSERVATIVE: 1.2, BALANCED: 1.15, BOLD: 1.1}
TIGHT_BUDGET_QUALIFIERS: Dict[str, str] = {
    CONSERVATIVE: " with focus on cost reduction",
    BALANCED: " prioritizing cost-effectiveness",
    BOLD: " with aggressive cost optimization",
}


def apply_tight_budget(options: Dict[str, DesignOption]) -> Dict[str, DesignOption]:
    """Increase every tier's savings rate and flag the cost focus."""
    return {
        tier: option.model_copy(
            update={
                "savings_rate": option.savings_rate * TIGHT_BUDGET_MULTIPLIERS[tier],
                "summary": option.summary + TIGHT_BUDGET_QUALIFIERS[tier],
            }
        )
        for tier, option in options.items()
    }


def apply_performance_sensitivity(
    options: Dict[str, DesignOption], sensitivity: Level
) -> Dict[str, DesignOption]:
    """Relabel effort and qualify descriptions for performance-sensitive callers."""
    adjusted = dict(options)
    if sensitivity == Level.HIGH:
        balanced = adjusted[BALANCED]
        adjusted[BALANCED] = balanced.model_copy(
            update={
                "effort": Level.HIGH,
                "summary": balanced.summary + " with performance optimization",
            }
        )
        bold = adjusted[BOLD]
        adjusted[BOLD] = bold.model_copy(
            update={"summary": bold.summary + " prioritizing maximum performance"}
        )
    elif sensitivity == Level.LOW:
        conservative = adjusted[CONSERVATIVE]
        adjusted[CONSERVATIVE] = conservative.model_copy(
            update={
                "effort": Level.LOW,
                "summary": conservative.summary + " with minimal complexity",
            }
        )
    return adjusted


def price_options(options: Dict[str, DesignOption], total_cost: float) -> Dict[str, DesignOption]:
    """Fill in absolute savings and ROI from each tier's savings rate.

    ROI is the savings percentage per unit of effort, so it stays positive even
    for a zero-cost workflow.
    """
    return {
        tier: option.model_copy(
            update={
                "quota_savings": total_cost * option.savings_rate,
                "estimated_roi": option.savings_rate * 100 / LEVEL_SCORES[option.effort],
            }
        )
        for tier, option in options.items()
    }


def generate_option_framing(
    workflow: Workflow,
    params: Optional[OptionalParams] = None,
    *,
    settings: Optional[Settings] = None,
) -> ThreeOptionAnalysis:
    """Build the conservative, balanced and bold recommendation bundles."""
    settings = settings or get_settings()
    options = dict(BASE_OPTIONS)

    if params is not None:
        if params.has_tight_constraints(settings):
            options = apply_tight_budget(options)
        if params.performance_sensitivity is not None:
            options = apply_performance_sensitivity(options, params.performance_sensitivity)

    priced = price_options(options, workflow.total_quota_cost)
    logger.debug(
        "Option framing for %s: %s",
        workflow.id,
        {tier: round(option.quota_savings, 2) for tier, option in priced.items()},
    )
    return ThreeOptionAnalysis(
        conservative=priced[CONSERVATIVE],
        balanced=priced[BALANCED],
        bold=priced[BOLD],
    )
