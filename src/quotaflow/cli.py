"""Command line entrypoint for quotaflow."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Type, TypeVar

from pydantic import BaseModel, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from .config.settings import Settings, get_settings
from .core.exceptions import ConfigurationError, QuotaflowException, WorkflowValidationError
from .core.intent import ParsedIntent
from .core.models import EfficiencyIssue, OptionalParams
from .core.pipeline import ConsultingPipeline, build_workflow_report
from .utils.logging import configure_logging, get_logger
from .validation import load_workflow

logger = get_logger(__name__)

EXIT_VALIDATION_ERROR = 2

ModelT = TypeVar("ModelT", bound=BaseModel)


def _read_json(path: Path) -> Any:
    try:
        return json.loads(Path(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise WorkflowValidationError(
            f"{path} is not valid JSON: {exc.msg}", context={"path": str(path), "line": exc.lineno}
        ) from exc


def load_model(path: Path, model: Type[ModelT]) -> ModelT:
    try:
        return model.model_validate(_read_json(path))
    except PydanticValidationError as exc:
        raise WorkflowValidationError(
            f"{path} is not a valid {model.__name__}",
            context={"errors": exc.errors(include_url=False)},
        ) from exc


def load_issues(path: Path) -> List[EfficiencyIssue]:
    try:
        return TypeAdapter(List[EfficiencyIssue]).validate_python(_read_json(path))
    except PydanticValidationError as exc:
        raise WorkflowValidationError(
            f"{path} is not a valid list of efficiency issues",
            context={"errors": exc.errors(include_url=False)},
        ) from exc


def run_analyze(args: argparse.Namespace, settings: Settings) -> Dict[str, Any]:
    workflow = load_workflow(args.workflow)
    issues = load_issues(args.issues) if args.issues else []
    params = load_model(args.params, OptionalParams) if args.params else None
    return build_workflow_report(workflow, issues, params, settings=settings)


def run_intent(args: argparse.Namespace, settings: Settings) -> Dict[str, Any]:
    intent = load_model(args.intent, ParsedIntent)
    params = load_model(args.params, OptionalParams) if args.params else None
    pipeline = ConsultingPipeline(settings)
    return pipeline.analyze(intent, techniques=args.technique, params=params).to_dict()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="quotaflow", description="Quota-aware workflow analysis and optimization"
    )
    parser.add_argument("--json-logs", action="store_true", help="Emit logs as JSON lines")
    parser.add_argument("--log-level", help="Override the configured log level")
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze = subparsers.add_parser("analyze", help="Analyze and optimize a workflow JSON file")
    analyze.add_argument("workflow", type=Path, help="Path to the workflow JSON")
    analyze.add_argument("--issues", type=Path, help="Path to a JSON list of efficiency issues")
    analyze.add_argument("--params", type=Path, help="Path to optional parameters JSON")
    analyze.set_defaults(handler=run_analyze)

    intent = subparsers.add_parser("intent", help="Run the consulting analysis on a parsed intent")
    intent.add_argument("intent", type=Path, help="Path to the parsed intent JSON")
    intent.add_argument("--params", type=Path, help="Path to optional parameters JSON")
    intent.add_argument(
        "--technique",
        action="append",
        help="Technique to apply (repeatable); defaults to automatic selection",
    )
    intent.set_defaults(handler=run_intent)
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = get_settings()
    except ConfigurationError as exc:
        print(exc.message, file=sys.stderr)
        return 1
    configure_logging(
        level=args.log_level or settings.log_level,
        json_logs=args.json_logs or settings.json_logs,
    )

    try:
        report = args.handler(args, settings)
    except WorkflowValidationError as exc:
        logger.error("Validation failed: %s", exc.message, extra={"context": exc.context})
        print(exc.message, file=sys.stderr)
        return EXIT_VALIDATION_ERROR
    except QuotaflowException as exc:
        logger.error("quotaflow failed: %s", exc.message, extra={"context": exc.context})
        print(exc.message, file=sys.stderr)
        return 1
    except OSError as exc:
        print(f"Cannot read input: {exc}", file=sys.stderr)
        return 1

    print(json.dumps(report, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
