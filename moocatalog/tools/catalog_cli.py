"""
Administrative CLI for a project catalog.

Usage:
    moo-catalog [--root PATH] [--layout sections|bins] <command>

Commands:
    history           Show the undo/redo stacks
    undo              Restore the state before the last mutation
    redo              Re-apply the last undone mutation
    clear-history     Empty both stacks
    rebuild-indexes   Regenerate .moo/indexes/
    check             Validate every record and reference
    resolve ID        Print the resolved settings of a content item
    backfill          Print how many takes each incomplete item still needs

Exit codes:
    0 on success, 1 when the command fails (e.g. nothing to undo, or
    check found problems)
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Any

import json_log_formatter

from ..config import CatalogSettings
from ..errors import CatalogError
from ..service import CatalogService

logger = logging.getLogger(__name__)


def setup_logging(settings: CatalogSettings) -> None:
    """Configure logging based on settings.

    Args:
        settings: Catalog settings
    """
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    if settings.log_format == "json":
        formatter = json_log_formatter.JSONFormatter()
    else:
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = [handler]


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False))


async def _run(service: CatalogService, args: argparse.Namespace) -> int:
    command = args.command

    if command == "history":
        history = await service.history()
        if args.json:
            _print_json(history.to_dict())
        else:
            print(f"Undo snapshots: {history.count}")
            print(f"  Next undo: {history.undo_message or '-'}")
            print(f"  Next redo: {history.redo_message or '-'}")
        return 0

    if command == "undo":
        result = await service.undo()
        print(result.message)
        return 0

    if command == "redo":
        result = await service.redo()
        print(result.message)
        return 0

    if command == "clear-history":
        await service.clear_history()
        print("History cleared")
        return 0

    if command == "rebuild-indexes":
        stats = await service.rebuild_indexes()
        print(f"Indexes rebuilt: {stats.by_actor} actors, {stats.by_bin} sections, {stats.by_media} content items")
        return 0

    if command == "check":
        problems = await service.check_catalog()
        if not problems:
            print("Catalog is consistent")
            return 0
        print(f"Catalog check found {len(problems)} problem(s):")
        for problem in problems:
            print(f"  - {problem}")
        return 1

    if command == "resolve":
        resolved = await service.resolve_settings(args.content_id)
        _print_json(resolved.to_dict())
        return 0

    if command == "backfill":
        plan = await service.plan_backfill(
            actor_id=args.actor_id,
            section_id=args.section_id,
            content_id=args.content_id,
        )
        _print_json(
            {
                "total_needed": plan.total_needed,
                "items": [item.to_dict() for item in plan.items],
                "errors": plan.errors,
            }
        )
        return 0

    raise ValueError(f"Unknown command: {command}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="moo-catalog", description="Inspect and maintain a project catalog")
    parser.add_argument("--root", help="Project root (default: MOO_PROJECT_ROOT or .)")
    parser.add_argument("--layout", choices=["sections", "bins"], help="Store file naming generation")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    subparsers = parser.add_subparsers(dest="command", required=True)

    history_parser = subparsers.add_parser("history", help="Show the undo/redo stacks")
    history_parser.add_argument("--json", action="store_true", help="Output as JSON")
    subparsers.add_parser("undo", help="Undo the last mutation")
    subparsers.add_parser("redo", help="Redo the last undone mutation")
    subparsers.add_parser("clear-history", help="Empty the undo and redo stacks")
    subparsers.add_parser("rebuild-indexes", help="Regenerate the derived indexes")
    subparsers.add_parser("check", help="Validate every record and reference")

    resolve_parser = subparsers.add_parser("resolve", help="Resolve settings for a content item")
    resolve_parser.add_argument("content_id", help="Content item id")

    backfill_parser = subparsers.add_parser("backfill", help="Plan take backfill")
    backfill_parser.add_argument("--actor-id", help="Limit to one actor")
    backfill_parser.add_argument("--section-id", help="Limit to one section")
    backfill_parser.add_argument("--content-id", help="Limit to one content item")

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    args = build_parser().parse_args(argv)

    overrides: dict[str, Any] = {}
    if args.root:
        overrides["project_root"] = args.root
    if args.layout:
        overrides["layout"] = args.layout
    if args.verbose:
        overrides["log_level"] = "DEBUG"
    settings = CatalogSettings(**overrides)

    setup_logging(settings)
    settings.log_config()

    try:
        code = asyncio.run(_run(CatalogService(settings), args))
    except CatalogError as e:
        logger.error("Command failed", extra={"command": args.command, "code": e.code})
        print(f"Error: {e.message}", file=sys.stderr)
        code = 1

    sys.exit(code)


if __name__ == "__main__":
    main()
