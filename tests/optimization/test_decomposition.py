"""Tests for spec decomposition."""

from __future__ import annotations

import pytest
from conftest import make_step, make_workflow

from quotaflow.core.models import StepType
from quotaflow.optimization.decomposition import break_into_specs, find_cost_outliers


def _partition(specs):
    return [step_id for spec in specs for step_id in spec.steps]


def test_empty_workflow_yields_no_specs(empty_workflow, settings):
    assert break_into_specs(empty_workflow, settings=settings) == []


def test_small_uniform_workflow_is_left_whole(settings):
    workflow = make_workflow([make_step(s, StepType.SPEC, 5) for s in "abc"])
    assert break_into_specs(workflow, settings=settings) == []


def test_cost_outlier_gets_its_own_spec_even_in_small_workflow(settings):
    workflow = make_workflow(
        [
            make_step("a", StepType.SPEC, 0),
            make_step("b", StepType.SPEC, 0),
            make_step("c", StepType.SPEC, 5),
        ]
    )
    specs = break_into_specs(workflow, settings=settings)
    assert [spec.steps for spec in specs] == [("a", "b"), ("c",)]


def test_mixed_workflow_is_split_at_type_boundaries(mixed_workflow, settings):
    specs = break_into_specs(mixed_workflow, settings=settings)
    assert [spec.steps for spec in specs] == [
        ("fetch", "config"),
        ("clean",),
        ("classify", "draft"),
        ("report",),
    ]
    assert specs[0].id == "support-spec-1"
    assert [spec.name for spec in specs] == [
        "Data Retrieval Spec 1",
        "Processing Spec 2",
        "General Spec 3",
        "Formatting Spec 4",
    ]
    assert specs[0].estimated_quota_cost == 25


def test_functional_boundary_splits_same_type_steps(settings):
    workflow = make_workflow(
        [
            make_step("v1", StepType.PROCESSING, 5, "Validate input"),
            make_step("v2", StepType.PROCESSING, 5, "Check schema"),
            make_step("t1", StepType.PROCESSING, 5, "Transform record"),
            make_step("t2", StepType.PROCESSING, 5, "Convert units"),
        ]
    )
    specs = break_into_specs(workflow, settings=settings)
    assert [spec.steps for spec in specs] == [("v1", "v2"), ("t1", "t2")]
    assert [spec.name for spec in specs] == ["Validation Spec 1", "Processing Spec 2"]


def test_alternating_types_never_share_a_spec(settings):
    types = [StepType.VIBE, StepType.SPEC]
    workflow = make_workflow([make_step(f"s{i}", types[i % 2], 5) for i in range(6)])
    specs = break_into_specs(workflow, settings=settings)
    steps_by_id = {step.id: step for step in workflow.steps}
    assert [spec.steps for spec in specs] == [(f"s{i}",) for i in range(6)]
    for spec in specs:
        assert len({steps_by_id[step_id].type for step_id in spec.steps}) == 1


def test_short_functional_run_folds_back_before_a_type_change(settings):
    workflow = make_workflow(
        [
            make_step("f1", StepType.PROCESSING, 5, "Transform rows"),
            make_step("f2", StepType.PROCESSING, 5, "Convert units"),
            make_step("v1", StepType.PROCESSING, 5, "Validate totals"),
            make_step("o1", StepType.SPEC, 5, "Format output"),
        ]
    )
    specs = break_into_specs(workflow, settings=settings)
    assert [spec.steps for spec in specs] == [("f1", "f2", "v1"), ("o1",)]


def test_long_uniform_run_is_chunked(settings):
    workflow = make_workflow([make_step(f"s{i}", StepType.SPEC, 5) for i in range(20)])
    specs = break_into_specs(workflow, settings=settings)
    assert [len(spec.steps) for spec in specs] == [7, 7, 6]


@pytest.mark.parametrize("size", [4, 7, 12, 25])
def test_specs_partition_the_workflow(size, settings):
    types = [StepType.VIBE, StepType.SPEC, StepType.DATA_RETRIEVAL, StepType.PROCESSING]
    steps = [
        make_step(f"s{i}", types[(i // 3) % len(types)], cost=50 if i == 1 else 5)
        for i in range(size)
    ]
    workflow = make_workflow(steps)
    specs = break_into_specs(workflow, settings=settings)
    assert sorted(_partition(specs)) == sorted(workflow.step_ids)
    assert len(_partition(specs)) == size

    positions = workflow.positions()
    firsts = [positions[spec.steps[0]] for spec in specs]
    assert firsts == sorted(firsts)


def test_find_cost_outliers_ignores_zero_cost():
    steps = [make_step("a", cost=0), make_step("b", cost=0)]
    assert find_cost_outliers(steps, 3.0) == set()
