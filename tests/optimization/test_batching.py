"""Tests for the batching strategy."""

from __future__ import annotations

import pytest
from conftest import make_step, make_workflow

from quotaflow.core.models import StepType
from quotaflow.optimization.batching import (
    apply_batching_strategy,
    batch_efficiency,
    batch_savings,
    find_batch_groups,
)


def test_group_of_three_becomes_one_batch(settings):
    workflow = make_workflow(
        [make_step(f"s{i}", StepType.DATA_RETRIEVAL, 6, f"Fetch user_{i}") for i in range(3)]
    )
    (operation,) = apply_batching_strategy(workflow, settings=settings)
    assert operation.batch_size == 3
    assert operation.original_operations == ("s0", "s1", "s2")
    assert operation.type == StepType.DATA_RETRIEVAL
    assert operation.per_item_cost == 6
    assert operation.id == "wf-batch-1"


def test_group_of_two_is_not_batched(settings):
    workflow = make_workflow(
        [make_step(f"s{i}", StepType.VIBE, 6, "Summarize thread 42") for i in range(2)]
    )
    assert apply_batching_strategy(workflow, settings=settings) == []


def test_mixed_types_are_not_batched_together(settings):
    workflow = make_workflow(
        [
            make_step("a", StepType.VIBE, 5, "Check order 1"),
            make_step("b", StepType.SPEC, 5, "Check order 2"),
            make_step("c", StepType.PROCESSING, 5, "Check order 3"),
        ]
    )
    assert apply_batching_strategy(workflow, settings=settings) == []


def test_normalization_ignores_ids_and_emails():
    steps = [
        make_step("a", description="Notify alice@example.com about item_12"),
        make_step("b", description="notify bob@example.org about item_7"),
        make_step("c", description="NOTIFY carol@example.net about item_999"),
    ]
    groups = find_batch_groups(steps, min_size=3)
    assert [[s.id for s in g] for g in groups] == [["a", "b", "c"]]


def test_distinct_groups_are_batched_separately(settings):
    steps = [make_step(f"f{i}", StepType.DATA_RETRIEVAL, 2, "Fetch price") for i in range(3)]
    steps += [make_step(f"c{i}", StepType.VIBE, 2, "Classify ticket") for i in range(4)]
    operations = apply_batching_strategy(make_workflow(steps), settings=settings)
    assert [op.batch_size for op in operations] == [3, 4]


@pytest.mark.parametrize("per_item_cost", [0.5, 10.0, 250.0])
def test_savings_strictly_increase_with_batch_size(per_item_cost):
    savings = [batch_savings(size, per_item_cost) for size in range(3, 30)]
    assert all(later > earlier for earlier, later in zip(savings, savings[1:]))


def test_efficiency_never_decreases_and_stays_bounded():
    efficiencies = [batch_efficiency(size) for size in range(1, 50)]
    assert efficiencies == sorted(efficiencies)
    assert all(0 <= e <= 1 for e in efficiencies)
