"""Spec decomposition.

Partitions a workflow into reviewable Specs. Expensive outlier steps get a
Spec of their own; the remaining steps are cut at step-type changes and at
functional boundaries (validation vs. processing vocabulary, ...), then
resized to the configured bounds. Every step lands in exactly one Spec.
"""

from __future__ import annotations

import math
from collections import Counter
from typing import List, Optional, Sequence, Set

from quotaflow.config.settings import Settings, get_settings
from quotaflow.core.models import Workflow, WorkflowStep
from quotaflow.core.results import SpecDefinition
from quotaflow.utils.logging import get_logger
from quotaflow.utils.text import functional_category

logger = get_logger(__name__)

DEFAULT_FUNCTION = "General"


def find_cost_outliers(steps: Sequence[WorkflowStep], multiple: float) -> Set[str]:
    if not steps:
        return set()
    mean = sum(step.quota_cost for step in steps) / len(steps)
    return {
        step.id for step in steps if step.quota_cost > 0 and step.quota_cost >= multiple * mean
    }


def is_functional_boundary(previous: WorkflowStep, current: WorkflowStep) -> bool:
    before = functional_category(previous.description)
    after = functional_category(current.description)
    return before is not None and after is not None and before != after


def find_breakpoints(steps: Sequence[WorkflowStep], min_size: int) -> List[int]:
    """Indices where a new segment starts.

    A step-type change always starts a segment, even if that leaves a single
    step on either side. A functional boundary within one type only starts a
    segment when both sides keep at least `min_size` steps.
    """
    breakpoints: List[int] = []
    segment_start = 0
    functional = False
    for index in range(1, len(steps)):
        previous, current = steps[index - 1], steps[index]
        if previous.type != current.type:
            if functional and index - segment_start < min_size:
                breakpoints.pop()
            breakpoints.append(index)
            segment_start = index
            functional = False
        elif is_functional_boundary(previous, current) and index - segment_start >= min_size:
            breakpoints.append(index)
            segment_start = index
            functional = True
    if functional and len(steps) - segment_start < min_size:
        breakpoints.pop()
    return breakpoints


def split_evenly(steps: List[WorkflowStep], max_size: int) -> List[List[WorkflowStep]]:
    if len(steps) <= max_size:
        return [steps]
    chunks = math.ceil(len(steps) / max_size)
    size, extra = divmod(len(steps), chunks)
    result: List[List[WorkflowStep]] = []
    start = 0
    for chunk in range(chunks):
        end = start + size + (1 if chunk < extra else 0)
        result.append(steps[start:end])
        start = end
    return result


def segment_steps(steps: Sequence[WorkflowStep], settings: Settings) -> List[List[WorkflowStep]]:
    if not steps:
        return []
    bounds = [0, *find_breakpoints(steps, settings.min_spec_size), len(steps)]
    segments: List[List[WorkflowStep]] = []
    for start, end in zip(bounds, bounds[1:]):
        segments.extend(split_evenly(list(steps[start:end]), settings.max_spec_size))
    return segments


def primary_function(steps: Sequence[WorkflowStep]) -> str:
    counts = Counter(
        category
        for category in (functional_category(step.description) for step in steps)
        if category is not None
    )
    if not counts:
        return DEFAULT_FUNCTION
    return counts.most_common(1)[0][0]


def build_spec(workflow_id: str, index: int, steps: Sequence[WorkflowStep]) -> SpecDefinition:
    function = primary_function(steps)
    summary = ", ".join(step.description or step.id for step in steps)
    return SpecDefinition(
        id=f"{workflow_id}-spec-{index}",
        name=f"{function} Spec {index}",
        description=f"Handles {function.lower()} operations: {summary}",
        steps=tuple(step.id for step in steps),
        estimated_quota_cost=sum(step.quota_cost for step in steps),
    )


def break_into_specs(workflow: Workflow, *, settings: Optional[Settings] = None) -> List[SpecDefinition]:
    """Partition the workflow into Specs ordered by their first step's position.

    Small workflows without a cost outlier are left whole and yield no Specs.
    """
    settings = settings or get_settings()
    steps = workflow.steps
    outliers = find_cost_outliers(steps, settings.cost_outlier_multiple)
    if len(steps) <= settings.small_workflow_threshold and not outliers:
        return []

    groups: List[List[WorkflowStep]] = [[step] for step in steps if step.id in outliers]
    regular = [step for step in steps if step.id not in outliers]
    groups.extend(segment_steps(regular, settings))

    positions = workflow.positions()
    groups.sort(key=lambda group: positions[group[0].id])

    specs = [build_spec(workflow.id, index, group) for index, group in enumerate(groups, start=1)]
    logger.debug(
        "Decomposed %s into %d specs (%d cost outliers)", workflow.id, len(specs), len(outliers)
    )
    return specs
