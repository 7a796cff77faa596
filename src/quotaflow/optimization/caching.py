"""Caching layer planner.

Selects cacheable steps and assigns each a deterministic key, a TTL and an
estimated hit rate. Only data retrieval and read-like vibe steps are ever
cached; spec steps and anything random or side-effecting never are.
"""

from __future__ import annotations

from collections import Counter
from typing import Dict, List

from quotaflow.core.models import StepType, Workflow, WorkflowStep
from quotaflow.core.results import CachePoint, CachingPlan
from quotaflow.utils.logging import get_logger
from quotaflow.utils.text import matches_any

logger = get_logger(__name__)

READ_LIKE_KEYWORDS = (
    "query",
    "fetch",
    "retrieve",
    "get",
    "lookup",
    "read",
    "load",
    "search",
    "find",
    "classify",
    "summar",
    "extract",
    "analy",
    "check",
    "validat",
    "verify",
    "calculat",
)

NON_DETERMINISTIC_KEYWORDS = (
    "random",
    "shuffle",
    "sample",
    "brainstorm",
    "creative",
    "generate",
    "timestamp",
    "now",
    "current",
    "realtime",
    "send",
    "publish",
    "notify",
    "update",
    "delete",
    "insert",
    "write",
    "save",
    "store",
    "persist",
    "create",
    "charge",
)

TTL_CONFIG_SECONDS = 3600
TTL_DATA_SECONDS = 1800
TTL_VIBE_SECONDS = 900

BASE_HIT_RATES: Dict[StepType, float] = {
    StepType.DATA_RETRIEVAL: 0.5,
    StepType.VIBE: 0.3,
}
RECURRENCE_BONUS = 0.2
EXTRA_OCCURRENCE_BONUS = 0.05
SIMPLE_INPUTS_BONUS = 0.1
MAX_HIT_RATE = 0.9


def is_cacheable(step: WorkflowStep) -> bool:
    if step.type not in BASE_HIT_RATES:
        return False
    if matches_any(step.description, NON_DETERMINISTIC_KEYWORDS):
        return False
    if step.type == StepType.VIBE:
        return matches_any(step.description, READ_LIKE_KEYWORDS)
    return True


def cache_key(step: WorkflowStep) -> str:
    return f"{step.type.value}:{'|'.join(sorted(step.inputs))}"


def ttl_for(step: WorkflowStep) -> int:
    if step.type == StepType.DATA_RETRIEVAL:
        return TTL_CONFIG_SECONDS if "config" in step.description.lower() else TTL_DATA_SECONDS
    return TTL_VIBE_SECONDS


def estimate_hit_rate(step: WorkflowStep, occurrences: int) -> float:
    """Hit rate for one cache point; a recurring key always beats a singleton."""
    rate = BASE_HIT_RATES[step.type]
    if occurrences >= 2:
        rate += RECURRENCE_BONUS + EXTRA_OCCURRENCE_BONUS * (occurrences - 2)
    if len(step.inputs) <= 2:
        rate += SIMPLE_INPUTS_BONUS
    return round(min(MAX_HIT_RATE, rate), 4)


def implement_caching_layer(workflow: Workflow) -> CachingPlan:
    cacheable = [step for step in workflow.steps if is_cacheable(step)]
    occurrences = Counter(cache_key(step) for step in cacheable)

    points: List[CachePoint] = []
    for step in cacheable:
        key = cache_key(step)
        points.append(
            CachePoint(
                step_id=step.id,
                cache_key=key,
                ttl=ttl_for(step),
                estimated_hit_rate=estimate_hit_rate(step, occurrences[key]),
            )
        )

    overall = overall_hit_rate(points)
    logger.debug(
        "Caching plan for %s: %d cache points, hit rate %.2f", workflow.id, len(points), overall
    )
    return CachingPlan(workflow_id=workflow.id, cache_points=tuple(points), estimated_hit_rate=overall)


def overall_hit_rate(points: List[CachePoint]) -> float:
    if not points:
        return 0.0
    return sum(point.estimated_hit_rate for point in points) / len(points)
