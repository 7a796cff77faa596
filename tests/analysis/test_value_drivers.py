"""Tests for the value driver tree."""

from __future__ import annotations

from conftest import make_step, make_workflow

from quotaflow.analysis.value_drivers import apply_value_driver_tree, infer_root_causes
from quotaflow.core.models import StepType


def test_empty_workflow_has_no_drivers(empty_workflow):
    analysis = apply_value_driver_tree(empty_workflow)
    assert analysis.primary_drivers == ()
    assert analysis.secondary_drivers == ()
    assert analysis.root_causes == ()


def test_primary_drivers_cost_at_least_as_much_as_secondary(mixed_workflow):
    analysis = apply_value_driver_tree(mixed_workflow)
    assert analysis.primary_drivers
    assert analysis.secondary_drivers
    cheapest_primary = min(driver.current_cost for driver in analysis.primary_drivers)
    priciest_secondary = max(driver.current_cost for driver in analysis.secondary_drivers)
    assert cheapest_primary >= priciest_secondary


def test_drivers_cover_every_step_once(mixed_workflow):
    analysis = apply_value_driver_tree(mixed_workflow)
    ids = [d.step_id for d in analysis.primary_drivers + analysis.secondary_drivers]
    assert sorted(ids) == sorted(mixed_workflow.step_ids)


def test_driver_savings_follow_step_type():
    workflow = make_workflow(
        [make_step("v", StepType.VIBE, 10), make_step("s", StepType.SPEC, 10)]
    )
    analysis = apply_value_driver_tree(workflow)
    drivers = {d.step_id: d for d in analysis.primary_drivers + analysis.secondary_drivers}
    assert drivers["v"].savings_potential > drivers["s"].savings_potential
    assert drivers["v"].optimized_cost == drivers["v"].current_cost - drivers["v"].savings_potential


def test_zero_cost_workflow_has_only_secondary_drivers():
    workflow = make_workflow([make_step("a", cost=0), make_step("b", cost=0)])
    analysis = apply_value_driver_tree(workflow)
    assert analysis.primary_drivers == ()
    assert len(analysis.secondary_drivers) == 2


class TestRootCauses:
    def test_vibe_heavy_workflow(self):
        workflow = make_workflow([make_step(str(i), StepType.VIBE, 5) for i in range(3)])
        assert any("vibe" in cause for cause in infer_root_causes(workflow))

    def test_repeated_retrieval(self):
        workflow = make_workflow(
            [make_step(str(i), StepType.DATA_RETRIEVAL, 5) for i in range(3)]
        )
        assert any("data retrieval" in cause for cause in infer_root_causes(workflow))

    def test_dense_data_flow(self):
        workflow = make_workflow(
            [make_step("a", StepType.SPEC), make_step("b", StepType.SPEC)],
            edges=[("a", "b"), ("b", "a"), ("a", "b")],
        )
        assert any("dependencies" in cause for cause in infer_root_causes(workflow))

    def test_high_complexity(self):
        workflow = make_workflow([make_step("a", StepType.SPEC)], complexity=9)
        assert any("complexity" in cause for cause in infer_root_causes(workflow))

    def test_concentrated_spend(self):
        workflow = make_workflow(
            [
                make_step("a", StepType.SPEC, 100),
                make_step("b", StepType.PROCESSING, 5),
                make_step("c", StepType.ANALYSIS, 5),
            ]
        )
        assert "Quota spend concentrated in a single step (a)" in infer_root_causes(workflow)

    def test_balanced_small_workflow_has_no_causes(self):
        workflow = make_workflow(
            [make_step("a", StepType.SPEC, 5), make_step("b", StepType.PROCESSING, 5)]
        )
        assert infer_root_causes(workflow) == []
