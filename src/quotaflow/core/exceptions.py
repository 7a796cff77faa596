"""Custom exception hierarchy for quotaflow."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class QuotaflowException(Exception):
    """Base exception type for all quotaflow errors."""

    message: str
    context: Optional[Dict[str, Any]] = None

    def __str__(self) -> str:
        if not self.context:
            return self.message
        return f"{self.message} | context={self.context}"


class ConfigurationError(QuotaflowException):
    """Raised when configuration is missing or invalid."""


class WorkflowValidationError(QuotaflowException):
    """Raised when a workflow payload fails boundary validation."""


class AnalysisError(QuotaflowException):
    """Raised when a consulting analysis cannot be produced."""


class TechniqueError(AnalysisError):
    """Raised when a single analysis technique fails."""


class OptimizationError(QuotaflowException):
    """Raised when workflow optimization cannot be applied."""
