"""Pipeline orchestration for consulting analyses and whole-workflow reports."""

from __future__ import annotations

from dataclasses import dataclass
from functools import cached_property
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from ..analysis.impact_effort import apply_impact_effort_matrix
from ..analysis.mece import apply_mece
from ..analysis.option_framing import generate_option_framing
from ..analysis.techniques import resolve_techniques, select_techniques
from ..analysis.value_drivers import apply_value_driver_tree
from ..analysis.value_proposition import apply_value_proposition_canvas
from ..analysis.zero_based import apply_zero_based_design
from ..config.settings import Settings, get_settings
from ..optimization.batching import apply_batching_strategy
from ..optimization.caching import implement_caching_layer
from ..optimization.decomposition import break_into_specs
from ..optimization.identifier import identify_optimization_opportunities
from ..optimization.optimizer import optimize_workflow
from ..utils.logging import get_logger
from .exceptions import AnalysisError, QuotaflowException, TechniqueError
from .intent import ParsedIntent, workflow_from_intent
from .models import (
    LEVEL_SCORES,
    EfficiencyIssue,
    FrozenModel,
    IssueType,
    Level,
    OptionalParams,
    StepType,
    Technique,
    Workflow,
)
from .results import ConsultingAnalysis, TechniqueScore

logger = get_logger(__name__)

ProgressCallback = Callable[[str, str, Dict[str, Any]], None]


@dataclass(frozen=True)
class AnalysisContext:
    """Inputs shared by every technique strategy for one analysis run.

    The workflow is derived on first use, so a malformed intent only fails
    the techniques that need it.
    """

    intent: ParsedIntent
    params: Optional[OptionalParams]
    settings: Settings

    @cached_property
    def workflow(self) -> Workflow:
        return workflow_from_intent(self.intent)


# Step families that always yield an impact/effort candidate when present.
FAMILY_ISSUES: Dict[StepType, IssueType] = {
    StepType.DATA_RETRIEVAL: IssueType.MISSING_CACHE,
    StepType.PROCESSING: IssueType.EXCESSIVE_LOOPS,
    StepType.VIBE: IssueType.UNNECESSARY_VIBES,
}


def family_issues(workflow: Workflow) -> List[EfficiencyIssue]:
    issues: List[EfficiencyIssue] = []
    for step_type, issue_type in FAMILY_ISSUES.items():
        step_ids = tuple(step.id for step in workflow.steps if step.type == step_type)
        if step_ids:
            issues.append(
                EfficiencyIssue(
                    type=issue_type,
                    description=f"{len(step_ids)} {step_type.value} steps",
                    steps_affected=step_ids,
                )
            )
    return issues


def _run_mece(ctx: AnalysisContext) -> FrozenModel:
    return apply_mece(ctx.workflow)


def _run_value_driver_tree(ctx: AnalysisContext) -> FrozenModel:
    return apply_value_driver_tree(ctx.workflow)


def _run_zero_based(ctx: AnalysisContext) -> FrozenModel:
    return apply_zero_based_design(ctx.intent)


def _run_impact_effort(ctx: AnalysisContext) -> FrozenModel:
    optimizations = identify_optimization_opportunities(
        ctx.workflow, family_issues(ctx.workflow), ctx.params, settings=ctx.settings
    )
    return apply_impact_effort_matrix(optimizations)


def _run_value_prop(ctx: AnalysisContext) -> FrozenModel:
    return apply_value_proposition_canvas(ctx.intent)


def _run_option_framing(ctx: AnalysisContext) -> FrozenModel:
    return generate_option_framing(ctx.workflow, ctx.params, settings=ctx.settings)


# Technique -> (ConsultingAnalysis field, strategy)
STRATEGIES: Dict[Technique, Tuple[str, Callable[[AnalysisContext], FrozenModel]]] = {
    Technique.MECE: ("mece_analysis", _run_mece),
    Technique.VALUE_DRIVER_TREE: ("value_driver_analysis", _run_value_driver_tree),
    Technique.ZERO_BASED: ("zero_based_solution", _run_zero_based),
    Technique.IMPACT_EFFORT: ("prioritized_optimizations", _run_impact_effort),
    Technique.VALUE_PROP: ("value_proposition", _run_value_prop),
    Technique.OPTION_FRAMING: ("three_option_analysis", _run_option_framing),
}


class ConsultingPipeline:
    """Runs the selected consulting techniques over a parsed intent.

    Each technique runs in isolation: a failure is logged and recorded in
    `ConsultingAnalysis.errors` while the remaining techniques still report.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        progress_callback: Optional[ProgressCallback] = None,
    ):
        self.settings = settings or get_settings()
        self.logger = get_logger(__name__)
        self._progress_callback = progress_callback

    def _emit(self, stage: str, message: str, data: Optional[Dict[str, Any]] = None) -> None:
        if self._progress_callback:
            self._progress_callback(stage, message, data or {})

    def select(
        self,
        intent: ParsedIntent,
        techniques: Optional[Iterable[str]] = None,
        params: Optional[OptionalParams] = None,
    ) -> List[TechniqueScore]:
        if techniques is not None:
            techniques = list(techniques)
            resolved = resolve_techniques(techniques)
            if techniques and not resolved:
                raise AnalysisError(
                    "None of the requested techniques are known",
                    context={"requested": techniques},
                )
            return resolved
        return select_techniques(intent, params, settings=self.settings)

    def run_technique(self, technique: Technique, ctx: AnalysisContext) -> Any:
        """Run one technique, wrapping any failure in `TechniqueError`."""
        _, strategy = STRATEGIES[technique]
        try:
            return strategy(ctx)
        except Exception as exc:
            raise TechniqueError(str(exc), context={"technique": technique.value}) from exc

    def analyze(
        self,
        intent: ParsedIntent,
        techniques: Optional[Iterable[str]] = None,
        params: Optional[OptionalParams] = None,
    ) -> ConsultingAnalysis:
        """Apply the chosen (or automatically selected) techniques to `intent`."""
        selected = self.select(intent, techniques, params)
        ctx = AnalysisContext(intent=intent, params=params, settings=self.settings)
        self._emit(
            "setup",
            f"Applying {len(selected)} techniques",
            {"techniques": [score.technique.value for score in selected]},
        )

        results: Dict[str, Any] = {}
        errors: Dict[str, str] = {}
        for score in selected:
            technique = score.technique
            field, _ = STRATEGIES[technique]
            self._emit("technique", f"Running {technique.value}", {"technique": technique.value})
            try:
                results[field] = self.run_technique(technique, ctx)
            except TechniqueError as exc:
                self.logger.exception(
                    "Technique %s failed", technique.value, extra={"technique": technique.value}
                )
                errors[technique.value] = exc.message
                self._emit(
                    "technique_failed",
                    f"{technique.value} failed",
                    {"technique": technique.value, "error": exc.message},
                )

        analysis = ConsultingAnalysis(techniques_used=tuple(selected), errors=errors, **results)
        total_savings = total_quota_savings(analysis)
        analysis = analysis.model_copy(
            update={
                "key_findings": tuple(key_findings(analysis)),
                "total_quota_savings": total_savings,
                "implementation_complexity": implementation_complexity(analysis, total_savings),
            }
        )
        self._emit(
            "complete",
            f"Analysis complete: {total_savings:.1f}% estimated savings",
            {"total_quota_savings": total_savings, "failed": sorted(errors)},
        )
        self.logger.info(
            "Consulting analysis finished",
            extra={
                "techniques": [score.technique.value for score in selected],
                "total_quota_savings": total_savings,
                "failed_techniques": sorted(errors),
            },
        )
        return analysis


def savings_signals(analysis: ConsultingAnalysis) -> List[float]:
    """Percentage savings estimates from whichever techniques produced results."""
    signals: List[float] = []

    mece = analysis.mece_analysis
    if mece is not None:
        impact = sum(category.quota_impact for category in mece.categories)
        if impact > 0:
            signals.append(
                sum(c.quota_impact * c.optimization_potential for c in mece.categories) / impact
            )

    drivers = analysis.value_driver_analysis
    if drivers is not None:
        every = drivers.primary_drivers + drivers.secondary_drivers
        current = sum(driver.current_cost for driver in every)
        if current > 0:
            signals.append(sum(driver.savings_potential for driver in every) / current * 100)

    if analysis.zero_based_solution is not None:
        signals.append(analysis.zero_based_solution.potential_savings)

    matrix = analysis.prioritized_optimizations
    if matrix is not None:
        options = (
            matrix.high_impact_low_effort
            + matrix.high_impact_high_effort
            + matrix.low_impact_low_effort
            + matrix.low_impact_high_effort
        )
        if options:
            signals.append(sum(option.quota_savings for option in options) / len(options))

    if analysis.three_option_analysis is not None:
        signals.append(analysis.three_option_analysis.balanced.savings_rate * 100)

    return signals


def total_quota_savings(analysis: ConsultingAnalysis) -> float:
    signals = savings_signals(analysis)
    if not signals:
        return 0.0
    return round(sum(signals) / len(signals), 2)


def implementation_complexity(analysis: ConsultingAnalysis, total_savings: float) -> Level:
    score = 0
    if analysis.zero_based_solution is not None:
        score += LEVEL_SCORES[analysis.zero_based_solution.implementation_risk] - 1
    if len(analysis.techniques_used) >= 5:
        score += 1
    if total_savings > 50:
        score += 1
    if score >= 3:
        return Level.HIGH
    if score >= 1:
        return Level.MEDIUM
    return Level.LOW


def key_findings(analysis: ConsultingAnalysis) -> List[str]:
    findings: List[str] = []

    if analysis.mece_analysis is not None and analysis.mece_analysis.categories:
        top = max(analysis.mece_analysis.categories, key=lambda c: c.optimization_potential)
        findings.append(
            f"MECE analysis found {len(analysis.mece_analysis.categories)} quota driver categories; "
            f"{top.name} has the highest optimization potential ({top.optimization_potential:g}%)"
        )

    drivers = analysis.value_driver_analysis
    if drivers is not None and drivers.primary_drivers:
        lead = drivers.primary_drivers[0]
        findings.append(f"Primary cost driver is {lead.name} at {lead.current_cost:g} quota units")
    if drivers is not None and drivers.root_causes:
        findings.append(f"Root cause: {drivers.root_causes[0]}")

    if analysis.zero_based_solution is not None:
        solution = analysis.zero_based_solution
        findings.append(
            f"Zero-based redesign could save up to {solution.potential_savings:g}% "
            f"at {solution.implementation_risk.value} implementation risk"
        )

    matrix = analysis.prioritized_optimizations
    if matrix is not None and matrix.high_impact_low_effort:
        findings.append(f"{len(matrix.high_impact_low_effort)} quick wins identified")

    if analysis.three_option_analysis is not None:
        balanced = analysis.three_option_analysis.balanced
        findings.append(
            f"Balanced option saves {balanced.quota_savings:g} quota units "
            f"({balanced.savings_rate * 100:g}% of current cost)"
        )

    if analysis.value_proposition is not None and analysis.value_proposition.pain_points:
        findings.append(
            f"{len(analysis.value_proposition.pain_points)} user pain points addressed"
        )

    return findings


def build_workflow_report(
    workflow: Workflow,
    issues: Sequence[EfficiencyIssue] = (),
    params: Optional[OptionalParams] = None,
    *,
    settings: Optional[Settings] = None,
) -> Dict[str, Any]:
    """Run every workflow analyser and transformation pass as camelCase JSON.

    Passes are isolated from each other: a failing pass is logged, its section
    is left as ``None`` and the error is recorded under ``errors`` by section.
    """
    settings = settings or get_settings()
    errors: Dict[str, str] = {}

    def run(section: str, build: Callable[[], Any]) -> Any:
        try:
            return build()
        except Exception as exc:
            logger.exception("Workflow pass %s failed", section, extra={"section": section})
            errors[section] = exc.message if isinstance(exc, QuotaflowException) else str(exc)
            return None

    optimizations = run(
        "optimizations",
        lambda: identify_optimization_opportunities(workflow, issues, params, settings=settings),
    )
    report = {
        "workflowId": workflow.id,
        "meceAnalysis": run("meceAnalysis", lambda: apply_mece(workflow).to_dict()),
        "valueDriverAnalysis": run(
            "valueDriverAnalysis", lambda: apply_value_driver_tree(workflow).to_dict()
        ),
        "threeOptionAnalysis": run(
            "threeOptionAnalysis",
            lambda: generate_option_framing(workflow, params, settings=settings).to_dict(),
        ),
        "optimizations": (
            None if optimizations is None else [item.to_dict() for item in optimizations]
        ),
        "prioritizedOptimizations": (
            None
            if optimizations is None
            else run(
                "prioritizedOptimizations",
                lambda: apply_impact_effort_matrix(optimizations).to_dict(),
            )
        ),
        "batchedOperations": run(
            "batchedOperations",
            lambda: [op.to_dict() for op in apply_batching_strategy(workflow, settings=settings)],
        ),
        "cachingPlan": run("cachingPlan", lambda: implement_caching_layer(workflow).to_dict()),
        "specs": run(
            "specs",
            lambda: [spec.to_dict() for spec in break_into_specs(workflow, settings=settings)],
        ),
        # Optimizing needs at least one step.
        "optimizedWorkflow": (
            run(
                "optimizedWorkflow",
                lambda: optimize_workflow(workflow, issues, params, settings=settings).to_dict(),
            )
            if workflow.steps
            else None
        ),
    }
    report["errors"] = errors
    return report
