"""Parsed intent models.

A `ParsedIntent` is what the upstream natural-language parser hands over. The
technique selector and the zero-based designer read it directly; every other
analyser works on the `Workflow` derived by `workflow_from_intent`.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional, Tuple

from pydantic import Field

from quotaflow.core.models import FrozenModel, IssueType, Level, StepType, Workflow, WorkflowStep


class RequirementType(str, Enum):
    DATA_RETRIEVAL = "data_retrieval"
    PROCESSING = "processing"
    ANALYSIS = "analysis"
    OUTPUT = "output"


class QuotaImpact(str, Enum):
    MINIMAL = "minimal"
    MODERATE = "moderate"
    SIGNIFICANT = "significant"


class TechnicalRequirement(FrozenModel):
    type: RequirementType
    description: str = ""
    complexity: Level = Level.MEDIUM
    quota_impact: QuotaImpact = QuotaImpact.MODERATE


class Operation(FrozenModel):
    id: str = Field(min_length=1)
    type: StepType
    description: str = ""
    estimated_quota_cost: float = Field(default=0.0, ge=0)


class Risk(FrozenModel):
    type: IssueType
    severity: Level = Level.MEDIUM
    description: str = ""
    likelihood: float = Field(default=0.5, ge=0, le=1)


class ParsedIntent(FrozenModel):
    business_objective: str = ""
    technical_requirements: Tuple[TechnicalRequirement, ...] = ()
    data_sources_needed: Tuple[str, ...] = ()
    operations_required: Tuple[Operation, ...] = ()
    potential_risks: Tuple[Risk, ...] = ()


def workflow_from_intent(intent: ParsedIntent, workflow_id: Optional[str] = None) -> Workflow:
    """Build the step-only workflow implied by an intent's operations."""
    return Workflow(
        id=workflow_id or "intent-workflow",
        steps=tuple(
            WorkflowStep(
                id=op.id,
                type=op.type,
                description=op.description,
                quota_cost=op.estimated_quota_cost,
            )
            for op in intent.operations_required
        ),
        estimated_complexity=len(intent.technical_requirements),
    )
