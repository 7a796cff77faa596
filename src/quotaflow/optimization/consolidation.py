"""Consolidation of overlapping optimizations.

Optimizations are grouped by type; within a type, those whose affected steps
overlap or sit next to each other in workflow order are merged into one, with
savings recomputed from the union of their steps.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Sequence, Set

from quotaflow.core.models import Optimization, OptimizationType, SavingsEstimate, Workflow, WorkflowStep

SavingsEstimator = Callable[[OptimizationType, Sequence[WorkflowStep]], SavingsEstimate]


def touches(left: Set[int], right: Set[int]) -> bool:
    """True when two position sets share a step or contain neighbouring steps."""
    if left & right:
        return True
    return any(position - 1 in right or position + 1 in right for position in left)


def cluster_by_contact(
    optimizations: Sequence[Optimization], positions: Dict[str, int]
) -> List[List[Optimization]]:
    """Connected components of the overlap-or-adjacency relation, in first-seen order."""
    clusters: List[List[Optimization]] = []
    footprints: List[Set[int]] = []
    for optimization in optimizations:
        footprint = {positions[step_id] for step_id in optimization.steps_affected}
        members = [optimization]
        kept_clusters: List[List[Optimization]] = []
        kept_footprints: List[Set[int]] = []
        first_hit = None
        for cluster, cluster_footprint in zip(clusters, footprints):
            if touches(footprint, cluster_footprint):
                if first_hit is None:
                    first_hit = len(kept_clusters)
                    kept_clusters.append(cluster + members)
                    kept_footprints.append(cluster_footprint | footprint)
                else:
                    kept_clusters[first_hit] = kept_clusters[first_hit] + cluster
                    kept_footprints[first_hit] = kept_footprints[first_hit] | cluster_footprint
            else:
                kept_clusters.append(cluster)
                kept_footprints.append(cluster_footprint)
        if first_hit is None:
            kept_clusters.append(members)
            kept_footprints.append(footprint)
        clusters, footprints = kept_clusters, kept_footprints
    return clusters


def merge_cluster(
    cluster: Sequence[Optimization],
    workflow: Workflow,
    estimate: SavingsEstimator,
) -> Optimization:
    if len(cluster) == 1:
        return cluster[0]
    positions = workflow.positions()
    step_ids = sorted(
        {step_id for optimization in cluster for step_id in optimization.steps_affected},
        key=positions.__getitem__,
    )
    by_id = workflow.steps_by_id()
    optimization_type = cluster[0].type
    return Optimization(
        type=optimization_type,
        description=(
            f"Consolidated {optimization_type.value} optimization affecting {len(step_ids)} steps"
        ),
        steps_affected=tuple(step_ids),
        estimated_savings=estimate(optimization_type, [by_id[step_id] for step_id in step_ids]),
    )


def consolidate_optimizations(
    optimizations: Sequence[Optimization],
    workflow: Workflow,
    estimate: SavingsEstimator,
) -> List[Optimization]:
    """Merge same-type optimizations with overlapping or adjacent steps.

    Types keep the order in which they first appear; within a type the merged
    optimizations are ordered by their earliest step. Every `steps_affected`
    id must belong to `workflow`.
    """
    positions = workflow.positions()
    by_type: Dict[OptimizationType, List[Optimization]] = {}
    for optimization in optimizations:
        by_type.setdefault(optimization.type, []).append(optimization)

    consolidated: List[Optimization] = []
    for group in by_type.values():
        merged = [
            merge_cluster(cluster, workflow, estimate)
            for cluster in cluster_by_contact(group, positions)
        ]
        merged.sort(key=lambda optimization: min(positions[s] for s in optimization.steps_affected))
        consolidated.extend(merged)
    return consolidated
