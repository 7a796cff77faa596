"""Batching strategy: group near-identical steps into batched operations."""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Tuple

from quotaflow.config.settings import Settings, get_settings
from quotaflow.core.models import StepType, Workflow, WorkflowStep
from quotaflow.core.results import BatchedOperation
from quotaflow.utils.logging import get_logger
from quotaflow.utils.text import normalize_description

logger = get_logger(__name__)

BASE_EFFICIENCY = 0.2
EFFICIENCY_PER_ITEM = 0.1
MAX_EFFICIENCY = 0.7


def batch_key(step: WorkflowStep) -> Tuple[StepType, str]:
    return step.type, normalize_description(step.description)


def find_batch_groups(steps: Sequence[WorkflowStep], min_size: int) -> List[List[WorkflowStep]]:
    """Same-type steps whose normalized descriptions match, in first-seen order."""
    groups: Dict[Tuple[StepType, str], List[WorkflowStep]] = {}
    for step in steps:
        groups.setdefault(batch_key(step), []).append(step)
    return [group for group in groups.values() if len(group) >= min_size]


def batch_efficiency(batch_size: int) -> float:
    """Fraction of the group's cost saved; non-decreasing in batch size."""
    return min(MAX_EFFICIENCY, BASE_EFFICIENCY + EFFICIENCY_PER_ITEM * batch_size)


def batch_savings(batch_size: int, per_item_cost: float) -> float:
    """Quota saved by batching; strictly increasing in batch size for a positive cost."""
    return batch_size * per_item_cost * batch_efficiency(batch_size)


def apply_batching_strategy(
    workflow: Workflow, *, settings: Optional[Settings] = None
) -> List[BatchedOperation]:
    settings = settings or get_settings()
    operations: List[BatchedOperation] = []

    for index, group in enumerate(find_batch_groups(workflow.steps, settings.min_batch_size), start=1):
        size = len(group)
        per_item_cost = sum(step.quota_cost for step in group) / size
        step_type = group[0].type
        pattern = normalize_description(group[0].description) or step_type.value
        operations.append(
            BatchedOperation(
                id=f"{workflow.id}-batch-{index}",
                original_operations=tuple(step.id for step in group),
                batch_size=size,
                type=step_type,
                description=f"Batched {size} {step_type.value} operations: {pattern}",
                per_item_cost=per_item_cost,
                efficiency=batch_efficiency(size),
                estimated_savings=batch_savings(size, per_item_cost),
            )
        )

    logger.debug("Batching for %s produced %d batched operations", workflow.id, len(operations))
    return operations
