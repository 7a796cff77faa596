"""Result models produced by the analysers and optimization passes.

All results are transient, derived values computed fresh per call. They are
frozen so downstream renderers cannot mutate what they receive.
"""

from __future__ import annotations

from typing import Dict, Optional, Tuple

from pydantic import Field

from quotaflow.core.models import (
    DataFlowEdge,
    FrozenModel,
    Level,
    Optimization,
    StepType,
    Technique,
    WorkflowStep,
)


# -----------------------------------------------------------------------------
# Technique selection
# -----------------------------------------------------------------------------


class TechniqueScore(FrozenModel):
    technique: Technique
    relevance_score: float
    applicable_scenarios: Tuple[str, ...] = ()


# -----------------------------------------------------------------------------
# MECE
# -----------------------------------------------------------------------------


class QuotaDriverCategory(FrozenModel):
    name: str
    step_type: StepType
    drivers: Tuple[str, ...] = Field(description="Ids of the member steps")
    quota_impact: float
    optimization_potential: float


class MECEAnalysis(FrozenModel):
    categories: Tuple[QuotaDriverCategory, ...] = ()
    total_coverage: float = 100.0
    overlaps: Tuple[str, ...] = ()


# -----------------------------------------------------------------------------
# Value driver tree
# -----------------------------------------------------------------------------


class ValueDriver(FrozenModel):
    step_id: str
    name: str
    step_type: StepType
    current_cost: float
    optimized_cost: float
    savings_potential: float


class ValueDriverAnalysis(FrozenModel):
    primary_drivers: Tuple[ValueDriver, ...] = ()
    secondary_drivers: Tuple[ValueDriver, ...] = ()
    root_causes: Tuple[str, ...] = ()


# -----------------------------------------------------------------------------
# Zero-based design
# -----------------------------------------------------------------------------


class ZeroBasedSolution(FrozenModel):
    radical_approach: str
    assumptions_challenged: Tuple[str, ...]
    potential_savings: float
    implementation_risk: Level


# -----------------------------------------------------------------------------
# Impact / effort
# -----------------------------------------------------------------------------


class OptimizationOption(FrozenModel):
    name: str
    description: str
    quota_savings: float
    implementation_effort: Level
    risk_level: Level
    estimated_roi: float


class PrioritizedOptimizations(FrozenModel):
    high_impact_low_effort: Tuple[OptimizationOption, ...] = ()
    high_impact_high_effort: Tuple[OptimizationOption, ...] = ()
    low_impact_low_effort: Tuple[OptimizationOption, ...] = ()
    low_impact_high_effort: Tuple[OptimizationOption, ...] = ()


# -----------------------------------------------------------------------------
# Option framing
# -----------------------------------------------------------------------------


class DesignOption(FrozenModel):
    name: str
    summary: str
    key_tradeoffs: Tuple[str, ...]
    impact: Level
    effort: Level
    risk: Level
    major_risks: Tuple[str, ...]
    quota_savings: float
    savings_rate: float = Field(description="Fraction of total quota cost saved")
    estimated_roi: float


class ThreeOptionAnalysis(FrozenModel):
    conservative: DesignOption
    balanced: DesignOption
    bold: DesignOption


# -----------------------------------------------------------------------------
# Value proposition canvas
# -----------------------------------------------------------------------------


class ValueProposition(FrozenModel):
    user_jobs: Tuple[str, ...]
    pain_points: Tuple[str, ...]
    gain_creators: Tuple[str, ...]
    pain_relievers: Tuple[str, ...]
    value_proposition_statement: str


# -----------------------------------------------------------------------------
# Transformation passes
# -----------------------------------------------------------------------------


class BatchedOperation(FrozenModel):
    id: str
    original_operations: Tuple[str, ...]
    batch_size: int
    type: StepType
    description: str
    per_item_cost: float
    efficiency: float = Field(ge=0, le=1)
    estimated_savings: float = Field(ge=0)


class CachePoint(FrozenModel):
    step_id: str
    cache_key: str
    ttl: int
    estimated_hit_rate: float = Field(ge=0, le=1)


class CachingPlan(FrozenModel):
    workflow_id: str
    cache_points: Tuple[CachePoint, ...] = ()
    estimated_hit_rate: float = Field(default=0.0, ge=0, le=1)


class SpecDefinition(FrozenModel):
    id: str
    name: str
    description: str
    steps: Tuple[str, ...]
    estimated_quota_cost: float


class EfficiencyGains(FrozenModel):
    vibe_reduction: float
    spec_reduction: float
    cost_savings: float
    total_savings_percentage: float


class OptimizedWorkflow(FrozenModel):
    id: str
    steps: Tuple[WorkflowStep, ...]
    data_flow: Tuple[DataFlowEdge, ...]
    estimated_complexity: float
    optimizations: Tuple[Optimization, ...]
    original_workflow_id: str
    efficiency_gains: EfficiencyGains


# -----------------------------------------------------------------------------
# Orchestrated analysis
# -----------------------------------------------------------------------------


class ConsultingAnalysis(FrozenModel):
    techniques_used: Tuple[TechniqueScore, ...]
    mece_analysis: Optional[MECEAnalysis] = None
    value_driver_analysis: Optional[ValueDriverAnalysis] = None
    zero_based_solution: Optional[ZeroBasedSolution] = None
    three_option_analysis: Optional[ThreeOptionAnalysis] = None
    prioritized_optimizations: Optional[PrioritizedOptimizations] = None
    value_proposition: Optional[ValueProposition] = None
    key_findings: Tuple[str, ...] = ()
    total_quota_savings: float = 0.0
    implementation_complexity: Level = Level.MEDIUM
    errors: Dict[str, str] = Field(default_factory=dict)
