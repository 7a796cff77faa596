"""Value proposition canvas for a parsed intent."""

from __future__ import annotations

from typing import List

from quotaflow.core.intent import ParsedIntent
from quotaflow.core.results import ValueProposition

GAIN_CREATORS = (
    "Reduced quota consumption and costs",
    "Faster workflow execution",
    "More predictable resource usage",
    "Improved workflow maintainability",
)

PAIN_RELIEVERS = (
    "Automated optimization reduces manual effort",
    "Risk mitigation through systematic analysis",
    "Clear cost visibility and forecasting",
    "Simplified workflow structure",
)


def apply_value_proposition_canvas(intent: ParsedIntent) -> ValueProposition:
    user_jobs: List[str] = []
    if intent.business_objective:
        user_jobs.append(intent.business_objective)
    user_jobs.extend(
        f"Execute {req.type.value} operations efficiently" for req in intent.technical_requirements
    )

    pain_points = [f"Risk of {risk.description or risk.type.value}" for risk in intent.potential_risks]
    if len(intent.operations_required) > 5:
        pain_points.append("Managing complex workflow with many operations")
    if len(intent.data_sources_needed) > 2:
        pain_points.append("Coordinating data from multiple sources")

    objective = intent.business_objective.rstrip(".").lower() or "deliver the intended outcome"
    statement = (
        "Transform complex, quota-intensive workflows into optimized, cost-effective "
        f"solutions that {objective} while minimizing resource consumption and operational risks."
    )
    return ValueProposition(
        user_jobs=tuple(user_jobs),
        pain_points=tuple(pain_points),
        gain_creators=GAIN_CREATORS,
        pain_relievers=PAIN_RELIEVERS,
        value_proposition_statement=statement,
    )
