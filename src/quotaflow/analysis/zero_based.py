"""Zero-based redesign.

Challenges the assumptions baked into the current workflow and sketches a
from-scratch alternative, with a savings estimate that grows with the risk the
intent carries.
"""

from __future__ import annotations

from typing import Dict, List

from quotaflow.core.intent import ParsedIntent
from quotaflow.core.models import Level, StepType
from quotaflow.core.results import ZeroBasedSolution
from quotaflow.utils.logging import get_logger

logger = get_logger(__name__)


BASELINE_ASSUMPTION = "Assumption: Current approach is the most efficient"
BASELINE_APPROACH = (
    "Implement a stateless, functional approach with maximum reusability "
    "and minimal quota consumption."
)
BASELINE_SAVINGS = 20.0

RISK_WEIGHTS: Dict[Level, float] = {Level.LOW: 5.0, Level.MEDIUM: 10.0, Level.HIGH: 20.0}

MANY_DATA_SOURCES = 2
MANY_OPERATIONS = 5

MAX_SAVINGS = 95.0
HIGH_RISK_SAVINGS = 70.0
MEDIUM_RISK_SAVINGS = 45.0


def risk_savings(intent: ParsedIntent) -> float:
    """Extra savings unlocked by redesigning around the intent's risks."""
    return sum(
        RISK_WEIGHTS[risk.severity] * (0.5 + risk.likelihood) for risk in intent.potential_risks
    )


def implementation_risk_for(savings: float) -> Level:
    if savings >= HIGH_RISK_SAVINGS:
        return Level.HIGH
    if savings >= MEDIUM_RISK_SAVINGS:
        return Level.MEDIUM
    return Level.LOW


def apply_zero_based_design(intent: ParsedIntent) -> ZeroBasedSolution:
    """Re-derive the workflow from first principles.

    A minimal intent with no risks challenges only the baseline assumption and
    stays low risk; every additional signal adds an assumption, a piece of the
    radical approach and some savings.
    """
    assumptions: List[str] = [BASELINE_ASSUMPTION]
    approach: List[str] = [BASELINE_APPROACH]
    savings = BASELINE_SAVINGS

    if intent.potential_risks:
        assumptions.append("Assumption: Current workflow structure is necessary")
        approach.append(
            "Redesign the workflow from scratch as event-driven stages with minimal shared state."
        )
        savings += risk_savings(intent)

    if len(intent.data_sources_needed) > MANY_DATA_SOURCES:
        assumptions.append("Assumption: Multiple data sources must be queried separately")
        approach.append("Introduce a unified data aggregation layer that batches every data request.")
        savings += 15.0

    if len(intent.operations_required) >= MANY_OPERATIONS:
        if any(op.type == StepType.VIBE for op in intent.operations_required):
            assumptions.append("Assumption: Complex logic requires vibe operations")
            approach.append("Replace vibe operations with pre-defined spec templates.")
        else:
            assumptions.append("Assumption: Every operation must run on every request")
            approach.append("Collapse operations into a small set of reusable, composable specs.")
        savings += 15.0

    if any(req.complexity == Level.HIGH for req in intent.technical_requirements):
        assumptions.append("Assumption: Complex requirements need complex implementations")
        approach.append("Break complex requirements into simple, composable operations.")
        savings += 10.0

    savings = round(min(savings, MAX_SAVINGS), 2)
    solution = ZeroBasedSolution(
        radical_approach=" ".join(approach),
        assumptions_challenged=tuple(assumptions),
        potential_savings=savings,
        implementation_risk=implementation_risk_for(savings),
    )
    logger.debug(
        "Zero-based design challenged %d assumptions (%.1f%% savings)",
        len(assumptions),
        savings,
    )
    return solution
