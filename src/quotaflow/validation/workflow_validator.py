"""Boundary validation for raw workflow payloads.

The analysers assume well-formed input; this module is where malformed JSON
is caught and reported before a `Workflow` is ever built.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Set, Tuple

from pydantic import ValidationError as PydanticValidationError

from quotaflow.core.exceptions import WorkflowValidationError
from quotaflow.core.models import StepType, Workflow


@dataclass
class ValidationIssue:
    """Represents a single workflow validation problem."""

    code: str
    message: str
    step_id: Optional[str] = None


class WorkflowValidator:
    """Validates raw workflow dictionaries for structural correctness."""

    VALID_STEP_TYPES = {step_type.value for step_type in StepType}
    REQUIRED_STEP_FIELDS = ("id", "type", "description", "quotaCost")
    LIST_FIELDS = ("inputs", "outputs")

    def validate(self, payload: Any) -> Tuple[bool, List[ValidationIssue]]:
        """
        Validate a workflow payload and return (is_valid, errors).

        Rules:
        1. The payload is an object with a non-empty string `id`
        2. `steps` is a list
        3. Every step has: id, type, description, quotaCost; id is a non-empty string
        4. Step types must be: vibe, spec, data_retrieval, processing, analysis
        5. quotaCost is a non-negative number
        6. inputs/outputs, when present, are lists
        7. No duplicate step IDs
        8. All edge 'from' and 'to' are strings referencing existing step IDs
        9. No self-loops (edges where from == to)
        """
        errors: List[ValidationIssue] = []
        if not isinstance(payload, dict):
            return False, [ValidationIssue(code="INVALID_PAYLOAD", message="Workflow must be a JSON object")]

        workflow_id = payload.get("id")
        if not isinstance(workflow_id, str) or not workflow_id:
            errors.append(ValidationIssue(code="MISSING_WORKFLOW_ID", message="Workflow id is required"))

        steps = payload.get("steps", [])
        if not isinstance(steps, list):
            errors.append(ValidationIssue(code="INVALID_STEPS", message="Workflow steps must be a list"))
            steps = []

        step_ids: Set[str] = set()
        for step in steps:
            errors.extend(self._validate_step(step, step_ids))

        edges = payload.get("dataFlow", payload.get("data_flow", []))
        if not isinstance(edges, list):
            errors.append(ValidationIssue(code="INVALID_DATA_FLOW", message="Workflow dataFlow must be a list"))
            edges = []
        for edge in edges:
            errors.extend(self._validate_edge(edge, step_ids))

        return not errors, errors

    def _validate_step(self, step: Any, step_ids: Set[str]) -> List[ValidationIssue]:
        if not isinstance(step, dict):
            return [ValidationIssue(code="INVALID_STEP", message="Workflow step must be an object")]

        errors: List[ValidationIssue] = []
        raw_id = step.get("id")
        step_id = raw_id if isinstance(raw_id, str) and raw_id else None
        missing = [
            field
            for field in self.REQUIRED_STEP_FIELDS
            if field not in step and _snake(field) not in step
        ]
        if missing:
            errors.append(
                ValidationIssue(
                    code="INCOMPLETE_STEP",
                    message=f"Step {step_id or 'unknown'} missing required fields: {', '.join(missing)}",
                    step_id=step_id,
                )
            )
            return errors

        if step_id is None:
            errors.append(
                ValidationIssue(
                    code="INVALID_STEP_ID",
                    message=f"Step id must be a non-empty string, got {raw_id!r}",
                )
            )

        step_type = step.get("type")
        if not isinstance(step_type, str) or step_type not in self.VALID_STEP_TYPES:
            errors.append(
                ValidationIssue(
                    code="INVALID_STEP_TYPE",
                    message=f"Invalid step type '{step_type}' for step {step_id}",
                    step_id=step_id,
                )
            )

        cost = step.get("quotaCost", step.get("quota_cost"))
        if isinstance(cost, bool) or not isinstance(cost, (int, float)) or cost < 0:
            errors.append(
                ValidationIssue(
                    code="INVALID_QUOTA_COST",
                    message=f"Step {step_id} quotaCost must be a non-negative number, got {cost!r}",
                    step_id=step_id,
                )
            )

        for field in self.LIST_FIELDS:
            if field in step and not isinstance(step[field], list):
                errors.append(
                    ValidationIssue(
                        code="INVALID_STEP_FIELD",
                        message=f"Step {step_id} {field} must be a list",
                        step_id=step_id,
                    )
                )

        if step_id is None:
            return errors
        if step_id in step_ids:
            errors.append(
                ValidationIssue(
                    code="DUPLICATE_STEP_ID",
                    message=f"Duplicate step ID: {step_id}",
                    step_id=step_id,
                )
            )
        step_ids.add(step_id)
        return errors

    def _validate_edge(self, edge: Any, step_ids: Set[str]) -> List[ValidationIssue]:
        if not isinstance(edge, dict):
            return [ValidationIssue(code="INVALID_EDGE", message="Data flow edge must be an object")]

        errors: List[ValidationIssue] = []
        from_id = edge.get("from")
        to_id = edge.get("to")
        bad_ends = [
            (end, value) for end, value in (("from", from_id), ("to", to_id)) if not isinstance(value, str)
        ]
        if bad_ends:
            return [
                ValidationIssue(
                    code="INVALID_EDGE",
                    message=f"Data flow edge '{end}' must be a step id string, got {value!r}",
                )
                for end, value in bad_ends
            ]

        if from_id not in step_ids:
            errors.append(
                ValidationIssue(
                    code="INVALID_EDGE_SOURCE",
                    message=f"Edge references non-existent source step: {from_id}",
                )
            )
        if to_id not in step_ids:
            errors.append(
                ValidationIssue(
                    code="INVALID_EDGE_TARGET",
                    message=f"Edge references non-existent target step: {to_id}",
                )
            )
        if from_id == to_id:
            errors.append(
                ValidationIssue(
                    code="SELF_LOOP",
                    message=f"Step {from_id} cannot feed itself",
                    step_id=from_id,
                )
            )
        return errors

    def format_errors(self, errors: List[ValidationIssue]) -> str:
        """Format validation errors as a readable string."""
        if not errors:
            return ""

        lines = ["Workflow validation failed:"]
        for err in errors:
            location = f" (step: {err.step_id})" if err.step_id else ""
            lines.append(f"  - {err.message}{location}")
        return "\n".join(lines)


def _snake(field: str) -> str:
    return "".join(f"_{char.lower()}" if char.isupper() else char for char in field)


def validate_workflow_payload(payload: Any) -> Workflow:
    """Validate a raw payload and build the `Workflow` it describes.

    Raises:
        WorkflowValidationError: carrying every issue found.
    """
    validator = WorkflowValidator()
    is_valid, errors = validator.validate(payload)
    if not is_valid:
        raise WorkflowValidationError(
            validator.format_errors(errors),
            context={"errors": [_issue_dict(err) for err in errors]},
        )
    try:
        return Workflow.model_validate(payload)
    except PydanticValidationError as exc:
        raise WorkflowValidationError(
            f"Workflow payload could not be parsed: {exc.error_count()} errors",
            context={"errors": exc.errors(include_url=False)},
        ) from exc


def load_workflow(path: Path) -> Workflow:
    """Read and validate a workflow JSON file."""
    try:
        payload = json.loads(Path(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise WorkflowValidationError(
            f"Workflow file is not valid JSON: {exc.msg}",
            context={"path": str(path), "line": exc.lineno},
        ) from exc
    return validate_workflow_payload(payload)


def _issue_dict(issue: ValidationIssue) -> Dict[str, Any]:
    return {"code": issue.code, "message": issue.message, "step_id": issue.step_id}
