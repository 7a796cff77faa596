"""Workflow validation module."""

from .workflow_validator import (
    ValidationIssue,
    WorkflowValidator,
    load_workflow,
    validate_workflow_payload,
)

__all__ = ["WorkflowValidator", "ValidationIssue", "validate_workflow_payload", "load_workflow"]
