"""Domain models for workflows and the optimizations derived from them.

These are the immutable values exchanged with the outside world: the upstream
intent parser produces a `Workflow`, callers add `EfficiencyIssue`s and
`OptionalParams`, and downstream renderers consume `Optimization`s. Field names
are snake_case in Python and camelCase on the wire.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

if TYPE_CHECKING:
    from quotaflow.config.settings import Settings


# -----------------------------------------------------------------------------
# Enums
# -----------------------------------------------------------------------------


class StepType(str, Enum):
    """Kinds of workflow steps, from least to most structured."""
    VIBE = "vibe"
    SPEC = "spec"
    DATA_RETRIEVAL = "data_retrieval"
    PROCESSING = "processing"
    ANALYSIS = "analysis"


class Level(str, Enum):
    """Three-point ordinal scale used for severity, effort, risk and sensitivity."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class IssueType(str, Enum):
    """Efficiency problems an upstream detector can report."""
    REDUNDANT_QUERY = "redundant_query"
    EXCESSIVE_LOOPS = "excessive_loops"
    UNNECESSARY_VIBES = "unnecessary_vibes"
    MISSING_CACHE = "missing_cache"


class OptimizationType(str, Enum):
    CACHING = "caching"
    BATCHING = "batching"
    VIBE_TO_SPEC = "vibe_to_spec"
    DECOMPOSITION = "decomposition"


class Technique(str, Enum):
    """Structured analysis frameworks the engine knows how to apply."""
    MECE = "MECE"
    VALUE_DRIVER_TREE = "ValueDriverTree"
    ZERO_BASED = "ZeroBased"
    IMPACT_EFFORT = "ImpactEffort"
    VALUE_PROP = "ValueProp"
    OPTION_FRAMING = "OptionFraming"


LEVEL_SCORES: Dict[Level, int] = {Level.LOW: 1, Level.MEDIUM: 2, Level.HIGH: 3}


class FrozenModel(BaseModel):
    """Base for immutable value objects with camelCase wire aliases."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    def to_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


# -----------------------------------------------------------------------------
# Workflow
# -----------------------------------------------------------------------------


class WorkflowStep(FrozenModel):
    """A single typed operation with an abstract quota cost."""
    id: str = Field(min_length=1)
    type: StepType
    description: str = ""
    inputs: Tuple[str, ...] = ()
    outputs: Tuple[str, ...] = ()
    quota_cost: float = Field(default=0.0, ge=0)


class DataFlowEdge(FrozenModel):
    """Directed data dependency between two steps."""
    from_step: str = Field(alias="from")
    to_step: str = Field(alias="to")
    data_type: str = ""
    required: bool = True


class Workflow(FrozenModel):
    """Ordered steps plus the data flowing between them.

    `estimated_complexity` is informational only; no analysis depends on it
    being consistent with the steps.
    """
    id: str = Field(min_length=1)
    steps: Tuple[WorkflowStep, ...] = ()
    data_flow: Tuple[DataFlowEdge, ...] = ()
    estimated_complexity: float = Field(default=0.0, ge=0)

    @model_validator(mode="after")
    def validate_unique_step_ids(self) -> "Workflow":
        seen: set[str] = set()
        for step in self.steps:
            if step.id in seen:
                raise ValueError(f"duplicate step id '{step.id}'")
            seen.add(step.id)
        return self

    @property
    def step_ids(self) -> Tuple[str, ...]:
        return tuple(step.id for step in self.steps)

    @property
    def total_quota_cost(self) -> float:
        return sum(step.quota_cost for step in self.steps)

    def positions(self) -> Dict[str, int]:
        """Map step id -> index in the workflow order."""
        return {step.id: idx for idx, step in enumerate(self.steps)}

    def steps_by_id(self) -> Dict[str, WorkflowStep]:
        return {step.id: step for step in self.steps}


# -----------------------------------------------------------------------------
# Issues and optimizations
# -----------------------------------------------------------------------------


class EfficiencyIssue(FrozenModel):
    type: IssueType
    severity: Level = Level.MEDIUM
    description: str = ""
    suggested_fix: str = ""
    steps_affected: Tuple[str, ...] = ()


class SavingsEstimate(FrozenModel):
    """Estimated savings: quota units of vibes/specs plus a percentage."""
    vibes: float = Field(default=0.0, ge=0)
    specs: float = Field(default=0.0, ge=0)
    percentage: float = Field(default=0.0, ge=0, le=100)


class Optimization(FrozenModel):
    type: OptimizationType
    description: str = ""
    steps_affected: Tuple[str, ...] = ()
    estimated_savings: SavingsEstimate = Field(default_factory=SavingsEstimate)


# -----------------------------------------------------------------------------
# Optional tuning parameters
# -----------------------------------------------------------------------------


class CostConstraints(FrozenModel):
    max_vibes: Optional[float] = Field(default=None, ge=0)
    max_specs: Optional[float] = Field(default=None, ge=0)
    max_cost_dollars: Optional[float] = Field(default=None, ge=0)


class OptionalParams(FrozenModel):
    """Caller-supplied hints that bias estimates; read-only."""
    expected_user_volume: Optional[int] = Field(default=None, ge=0)
    cost_constraints: Optional[CostConstraints] = None
    performance_sensitivity: Optional[Level] = None

    def has_tight_constraints(self, settings: "Settings") -> bool:
        constraints = self.cost_constraints
        if constraints is None:
            return False
        return (
            (constraints.max_vibes is not None and constraints.max_vibes < settings.tight_max_vibes)
            or (constraints.max_specs is not None and constraints.max_specs < settings.tight_max_specs)
            or (
                constraints.max_cost_dollars is not None
                and constraints.max_cost_dollars < settings.tight_max_cost_dollars
            )
        )

    def is_high_volume(self, settings: "Settings") -> bool:
        return (
            self.expected_user_volume is not None
            and self.expected_user_volume > settings.high_volume_threshold
        )
