"""Optimization passes: identification, batching, caching and spec decomposition."""

from .batching import apply_batching_strategy
from .caching import implement_caching_layer
from .decomposition import break_into_specs
from .identifier import identify_optimization_opportunities
from .optimizer import convert_analysis_to_issues, optimize_workflow

__all__ = [
    "apply_batching_strategy",
    "break_into_specs",
    "convert_analysis_to_issues",
    "identify_optimization_opportunities",
    "implement_caching_layer",
    "optimize_workflow",
]
