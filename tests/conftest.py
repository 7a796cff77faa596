"""Shared test fixtures and factories for quotaflow tests."""

from __future__ import annotations

from typing import Any, Callable, Dict, Sequence

import pytest

from quotaflow.config.settings import Settings
from quotaflow.core.intent import (
    Operation,
    ParsedIntent,
    RequirementType,
    Risk,
    TechnicalRequirement,
)
from quotaflow.core.models import (
    DataFlowEdge,
    EfficiencyIssue,
    IssueType,
    Level,
    StepType,
    Workflow,
    WorkflowStep,
)


def make_step(
    step_id: str,
    step_type: StepType = StepType.VIBE,
    cost: float = 10.0,
    description: str = "",
    inputs: Sequence[str] = (),
) -> WorkflowStep:
    return WorkflowStep(
        id=step_id,
        type=step_type,
        description=description or f"Step {step_id}",
        inputs=tuple(inputs),
        quota_cost=cost,
    )


def make_workflow(
    steps: Sequence[WorkflowStep],
    workflow_id: str = "wf",
    edges: Sequence[tuple] = (),
    complexity: float = 0.0,
) -> Workflow:
    return Workflow(
        id=workflow_id,
        steps=tuple(steps),
        data_flow=tuple(DataFlowEdge(from_step=a, to_step=b) for a, b in edges),
        estimated_complexity=complexity,
    )


def make_issue(issue_type: IssueType, *step_ids: str, severity: Level = Level.MEDIUM) -> EfficiencyIssue:
    return EfficiencyIssue(
        type=issue_type,
        severity=severity,
        description=f"{issue_type.value} detected",
        steps_affected=step_ids,
    )


@pytest.fixture
def settings() -> Settings:
    """Settings with defaults only, independent of the environment."""
    return Settings(_env_file=None)


@pytest.fixture
def step_factory() -> Callable[..., WorkflowStep]:
    return make_step


@pytest.fixture
def workflow_factory() -> Callable[..., Workflow]:
    return make_workflow


@pytest.fixture
def empty_workflow() -> Workflow:
    return Workflow(id="empty")


@pytest.fixture
def mixed_workflow() -> Workflow:
    """Retrieval, processing, vibe and spec steps with a linear data flow."""
    steps = [
        make_step("fetch", StepType.DATA_RETRIEVAL, 20, "Fetch customer records", ["customer_id"]),
        make_step("config", StepType.DATA_RETRIEVAL, 5, "Load pricing config", ["region"]),
        make_step("clean", StepType.PROCESSING, 10, "Transform raw data into rows"),
        make_step("classify", StepType.VIBE, 40, "Classify support tickets", ["ticket"]),
        make_step("draft", StepType.VIBE, 30, "Generate creative reply", ["ticket"]),
        make_step("report", StepType.SPEC, 15, "Format weekly report"),
    ]
    return make_workflow(
        steps,
        workflow_id="support",
        edges=[("fetch", "clean"), ("config", "clean"), ("clean", "classify"), ("classify", "draft")],
        complexity=4,
    )


@pytest.fixture
def intent_payload() -> Dict[str, Any]:
    return {
        "businessObjective": "Resolve support tickets faster",
        "technicalRequirements": [
            {"type": "data_retrieval", "description": "Load ticket history", "complexity": "medium"},
            {"type": "processing", "description": "Normalize tickets", "complexity": "high"},
        ],
        "dataSourcesNeeded": ["tickets", "customers", "orders"],
        "operationsRequired": [
            {"id": "op1", "type": "data_retrieval", "description": "Fetch tickets", "estimatedQuotaCost": 10},
            {"id": "op2", "type": "processing", "description": "Normalize tickets", "estimatedQuotaCost": 5},
            {"id": "op3", "type": "vibe", "description": "Classify ticket intent", "estimatedQuotaCost": 20},
            {"id": "op4", "type": "vibe", "description": "Summarize ticket thread", "estimatedQuotaCost": 15},
        ],
        "potentialRisks": [
            {"type": "redundant_query", "severity": "high", "description": "Repeated lookups", "likelihood": 0.8},
            {"type": "unnecessary_vibes", "severity": "medium", "description": "Vibes for fixed rules"},
        ],
    }


@pytest.fixture
def intent(intent_payload: Dict[str, Any]) -> ParsedIntent:
    return ParsedIntent.model_validate(intent_payload)


@pytest.fixture
def simple_intent() -> ParsedIntent:
    """Small intent that only triggers the always-on techniques."""
    return ParsedIntent(
        business_objective="Answer a question",
        technical_requirements=(TechnicalRequirement(type=RequirementType.ANALYSIS),),
        operations_required=(Operation(id="ask", type=StepType.VIBE, estimated_quota_cost=5),),
        potential_risks=(Risk(type=IssueType.UNNECESSARY_VIBES, severity=Level.LOW),),
    )
