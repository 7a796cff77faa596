"""Tests for the consolidation pass."""

from __future__ import annotations

from conftest import make_step, make_workflow

from quotaflow.core.models import Optimization, OptimizationType, StepType
from quotaflow.optimization.consolidation import (
    cluster_by_contact,
    consolidate_optimizations,
    touches,
)
from quotaflow.optimization.identifier import estimate_savings


def _opt(opt_type, *step_ids):
    return Optimization(type=opt_type, steps_affected=step_ids)


def _workflow():
    return make_workflow(
        [make_step(s, StepType.DATA_RETRIEVAL, 10, f"Query {s}") for s in "abcdefg"]
    )


def test_touches_on_overlap_or_adjacency():
    assert touches({1, 2}, {2, 3})
    assert touches({1}, {2})
    assert not touches({1}, {3})


def test_bridge_joins_two_clusters():
    workflow = _workflow()
    positions = workflow.positions()
    clusters = cluster_by_contact(
        [
            _opt(OptimizationType.CACHING, "a"),
            _opt(OptimizationType.CACHING, "g"),
            _opt(OptimizationType.CACHING, "c"),
            _opt(OptimizationType.CACHING, "b"),
        ],
        positions,
    )
    assert sorted(len(c) for c in clusters) == [1, 3]


def test_different_types_never_merge():
    workflow = _workflow()
    result = consolidate_optimizations(
        [_opt(OptimizationType.CACHING, "a", "b"), _opt(OptimizationType.BATCHING, "a", "b")],
        workflow,
        estimate_savings,
    )
    assert [o.type for o in result] == [OptimizationType.CACHING, OptimizationType.BATCHING]


def test_merged_optimization_recomputes_savings_from_union():
    workflow = _workflow()
    (merged,) = consolidate_optimizations(
        [_opt(OptimizationType.BATCHING, "c", "d"), _opt(OptimizationType.BATCHING, "a", "b")],
        workflow,
        estimate_savings,
    )
    assert merged.steps_affected == ("a", "b", "c", "d")
    assert merged.estimated_savings.vibes == 20
    assert merged.estimated_savings.percentage == 50


def test_single_optimizations_pass_through_unchanged():
    workflow = _workflow()
    original = _opt(OptimizationType.CACHING, "e")
    assert consolidate_optimizations([original], workflow, estimate_savings) == [original]


def test_empty_input():
    assert consolidate_optimizations([], _workflow(), estimate_savings) == []
