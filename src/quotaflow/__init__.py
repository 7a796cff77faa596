"""quotaflow - quota-aware workflow analysis and optimization."""

from typing import TYPE_CHECKING

__all__ = ["Settings", "ConsultingPipeline", "build_workflow_report", "optimize_workflow"]

if TYPE_CHECKING:
    from .config.settings import Settings
    from .core.pipeline import ConsultingPipeline, build_workflow_report
    from .optimization.optimizer import optimize_workflow


def __getattr__(name: str):
    if name == "Settings":
        from .config.settings import Settings

        return Settings
    if name == "ConsultingPipeline":
        from .core.pipeline import ConsultingPipeline

        return ConsultingPipeline
    if name == "build_workflow_report":
        from .core.pipeline import build_workflow_report

        return build_workflow_report
    if name == "optimize_workflow":
        from .optimization.optimizer import optimize_workflow

        return optimize_workflow
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
