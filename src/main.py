# src/main.py — v2
"""CLI entry point — validate, seed, list, run, status, summary commands.

Usage:
    recipeflow validate <file>
    recipeflow seed [--provider echo]
    recipeflow list [--stage-type TYPE]
    recipeflow run <recipe_id> --input <json|@file> [--project P --stage S --user U]
    recipeflow status <execution_id>
    recipeflow summary <execution_id>
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

from recipeflow.version import __version__

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        settings = _load_settings(args)
        return asyncio.run(args.func(args, settings))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="recipeflow",
        description=f"recipeflow v{__version__} — Recipe DAG orchestration engine",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- validate ---
    p_validate = subparsers.add_parser(
        "validate", help="Validate a recipe JSON file",
    )
    p_validate.add_argument("file", type=Path, help="Path to recipe JSON")
    p_validate.set_defaults(func=_cmd_validate)

    # --- seed ---
    p_seed = subparsers.add_parser(
        "seed", help="Store the built-in recipes",
    )
    p_seed.add_argument(
        "--provider", default=None,
        help="Rewrite every generation node to this provider (e.g. echo)",
    )
    p_seed.set_defaults(func=_cmd_seed)

    # --- list ---
    p_list = subparsers.add_parser(
        "list", help="List stored recipes",
    )
    p_list.add_argument(
        "--stage-type", default=None,
        help="Only recipes of this stage type",
    )
    p_list.set_defaults(func=_cmd_list)

    # --- run ---
    p_run = subparsers.add_parser(
        "run", help="Run a recipe",
    )
    p_run.add_argument("recipe_id", help="Recipe ID")
    p_run.add_argument(
        "-i", "--input", dest="input_data", default="{}",
        help="External input as JSON, or @path to a JSON file",
    )
    p_run.add_argument("--project", default=None, help="Project ID")
    p_run.add_argument("--stage", default=None, help="Stage ID")
    p_run.add_argument("--user", default=None, help="User ID")
    p_run.set_defaults(func=_cmd_run)

    # --- status ---
    p_status = subparsers.add_parser(
        "status", help="Show an execution record",
    )
    p_status.add_argument("execution_id", help="Execution ID")
    p_status.set_defaults(func=_cmd_status)

    # --- summary ---
    p_summary = subparsers.add_parser(
        "summary", help="Show an execution summary with cost estimate",
    )
    p_summary.add_argument("execution_id", help="Execution ID")
    p_summary.set_defaults(func=_cmd_summary)

    return parser


def _load_settings(args: argparse.Namespace) -> Any:
    from recipeflow.config.settings import load_settings
    from recipeflow.logging.logger import setup_logging

    settings = load_settings()
    setup_logging(
        level="DEBUG" if args.verbose else settings.log_level,
        log_format=settings.log_format,
        log_file=str(settings.log_file) if settings.log_file else None,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )
    return settings


def _engine(settings: Any) -> Any:
    from recipeflow.api.facade import create_engine
    return create_engine(settings)


async def _cmd_validate(args: argparse.Namespace, settings: Any) -> int:
    """Validate a recipe file without storing it."""
    from recipeflow.pipeline.validator import validate_document

    file_path: Path = args.file
    if not file_path.exists():
        logger.error("File not found: %s", file_path)
        return 1

    document = json.loads(file_path.read_text(encoding="utf-8"))
    _, result = validate_document(
        document, allow_orphan_nodes=settings.recipe_allow_orphan_nodes
    )
    if result.valid:
        print(f"{file_path.name}: valid")
        return 0

    print(f"{file_path.name}: {len(result.errors)} error(s)")
    for error in result.errors:
        print(f"  - {error}")
    return 2


async def _cmd_seed(args: argparse.Namespace, settings: Any) -> int:
    engine = _engine(settings)
    try:
        created = await engine.seed_recipes(provider=args.provider)
    finally:
        engine.close()
    print(f"Seeded {len(created)} recipe(s)")
    for recipe_id in created:
        print(f"  {recipe_id}")
    return 0


async def _cmd_list(args: argparse.Namespace, settings: Any) -> int:
    engine = _engine(settings)
    try:
        recipes = await engine.list_recipes(stage_type=args.stage_type)
    finally:
        engine.close()
    if not recipes:
        print("No recipes")
        return 0
    for recipe in recipes:
        state = "active" if recipe.metadata.is_active else "inactive"
        print(
            f"{recipe.id}  v{recipe.version}  {recipe.stage_type or '-'}  "
            f"{len(recipe.nodes)} nodes  {state}  {recipe.name}"
        )
    return 0


async def _cmd_run(args: argparse.Namespace, settings: Any) -> int:
    from recipeflow.api.models import ExecutionContext, ExecutionRequest

    external_input = _parse_input(args.input_data)
    request = ExecutionRequest(
        recipe_id=args.recipe_id,
        input=external_input,
        context=ExecutionContext(
            project_id=args.project, stage_id=args.stage, user_id=args.user,
        ),
    )

    engine = _engine(settings)
    try:
        result = await engine.run(request)
    finally:
        engine.close()

    print(json.dumps(result.to_document(), indent=2, ensure_ascii=False))
    return 0 if result.status == "completed" else 3


async def _cmd_status(args: argparse.Namespace, settings: Any) -> int:
    engine = _engine(settings)
    try:
        execution = await engine.get_execution_status(args.execution_id)
    finally:
        engine.close()
    if execution is None:
        logger.error("Execution not found: %s", args.execution_id)
        return 1
    print(json.dumps(execution.to_document(), indent=2, ensure_ascii=False))
    return 0


async def _cmd_summary(args: argparse.Namespace, settings: Any) -> int:
    engine = _engine(settings)
    try:
        summary = await engine.get_execution_summary(args.execution_id)
    finally:
        engine.close()
    if summary is None:
        logger.error("Execution not found: %s", args.execution_id)
        return 1
    _print_summary(summary)
    return 0


def _parse_input(raw: str) -> dict[str, Any]:
    """Parse --input: inline JSON or @path to a JSON file."""
    if raw.startswith("@"):
        raw = Path(raw[1:]).read_text(encoding="utf-8")
    value = json.loads(raw)
    if not isinstance(value, dict):
        raise ValueError("--input must be a JSON object")
    return value


def _print_summary(summary: Any) -> None:
    """Print a human-readable ExecutionSummary."""
    print(f"\nExecution {summary.execution_id}:")
    print(f"  Recipe:     {summary.recipe_id}")
    print(f"  Status:     {summary.status}")
    print(
        f"  Nodes:      {summary.completed_nodes}/{summary.total_nodes} completed, "
        f"{summary.failed_nodes} failed, {summary.cancelled_nodes} cancelled"
    )
    if summary.duration_ms is not None:
        print(f"  Duration:   {summary.duration_ms}ms")
    print(f"  Tokens:     {summary.token_usage.total_tokens}")
    cost = summary.estimated_cost
    print(f"  Est. cost:  {cost.estimated_cost:.4f} {cost.currency}")
    if summary.error:
        print(f"  Error:      {summary.error}")
        if summary.failed_node_id:
            print(f"  Failed at:  {summary.failed_node_id}")


if __name__ == "__main__":
    sys.exit(main())
