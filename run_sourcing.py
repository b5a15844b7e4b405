#!/usr/bin/env python3
"""
CLI interface for investor sourcing and pipeline tracking.

Commands:
  match     - Rank the investor dataset for a strategy
  strategy  - Complete a raw strategy with founder-derived fields and defaults
  pipeline  - Show a founder's pipeline and counts
  update    - Record a status change for one investor
  bulk      - Apply status changes from a JSON file
  stats     - Show funnel rates for a founder
  clear     - Delete pipeline entries
  import-csv  - Convert a CSV export into the investors JSON dataset
  fill-emails - Write guessed emails into dataset rows that have none

Examples:
  # Rank investors for a strategy file, with founder data for gap filling
  python run_sourcing.py match --strategy strategy.json --founder founder.json

  # Record a reply
  python run_sourcing.py update --founder-id acme --email jane@fund.vc --status replied

  # Funnel rates, camelCase keys
  python run_sourcing.py stats --founder-id acme --wire

  # Import a partner contact export
  python run_sourcing.py import-csv --input partners.csv --layout partner
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent))

from matching.dataset import DEFAULT_FALLBACK_PATH
from matching.dataset_tools import (
    CSV_LAYOUTS,
    DEFAULT_PARTNER_LIMIT,
    DatasetImportError,
    fill_missing_emails,
    read_investors_csv,
    write_dataset,
)
from matching.strategy_inference import complete_strategy
from storage.pipeline_store import open_pipeline_store
from workflows.config import EngineConfig
from workflows.investor_sourcing import InvestorSourcing
from workflows.pipeline_tracker import PipelineTracker, stats_to_wire


# =============================================================================
# LOGGING SETUP
# =============================================================================

def setup_logging(verbose: bool = False):
    """Configure logging for the CLI"""
    level = logging.DEBUG if verbose else logging.INFO

    if sys.stderr.isatty():
        colors = {
            "DEBUG": "\033[36m",    # Cyan
            "INFO": "\033[32m",     # Green
            "WARNING": "\033[33m",  # Yellow
            "ERROR": "\033[31m",    # Red
            "CRITICAL": "\033[35m", # Magenta
            "RESET": "\033[0m",
        }

        class ColoredFormatter(logging.Formatter):
            def format(self, record):
                levelname = record.levelname
                if levelname in colors:
                    record.levelname = f"{colors[levelname]}{levelname}{colors['RESET']}"
                return super().format(record)

        formatter = ColoredFormatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%H:%M:%S",
        )
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    logging.basicConfig(level=level, handlers=[handler], force=True)

    logging.getLogger("aiosqlite").setLevel(logging.WARNING)


# =============================================================================
# HELPERS
# =============================================================================

def _load_json_arg(value: Optional[str]) -> Any:
    """Accept either a path to a JSON file or an inline JSON string."""
    if not value:
        return None
    path = Path(value)
    if path.exists():
        return json.loads(path.read_text(encoding="utf-8"))
    return json.loads(value)


def _config_from_args(args) -> EngineConfig:
    config = EngineConfig.from_env()
    if getattr(args, "dataset", None):
        config.dataset_path = args.dataset
    if getattr(args, "db_path", None):
        config.pipeline_db_path = args.db_path
    if getattr(args, "seed", None) is not None:
        config.enrichment_seed = args.seed
    return config


def _emit(data: Dict[str, Any], output: Optional[str] = None) -> None:
    text = json.dumps(data, indent=2, default=str)
    if output:
        Path(output).write_text(text, encoding="utf-8")
        print(f"Results saved to: {output}")
    else:
        print(text)


# =============================================================================
# COMMAND HANDLERS
# =============================================================================

async def cmd_match(args) -> int:
    """Rank the dataset for a strategy"""
    config = _config_from_args(args)
    sourcing = InvestorSourcing.from_config(config)

    strategy = _load_json_arg(args.strategy)
    founder = _load_json_arg(args.founder)
    result = sourcing.source(strategy, founder_data=founder)

    payload = result.to_dict()
    if args.explain and result.strategy is not None:
        payload["scores"] = [
            sourcing.matcher.score(result.strategy, inv).to_dict()
            for inv in result.investors
        ]
    if args.limit:
        payload["investors"] = payload["investors"][: args.limit]

    _emit(payload, args.output)
    return 0


async def cmd_strategy(args) -> int:
    """Complete a raw strategy with inferred fields and defaults"""
    strategy = complete_strategy(_load_json_arg(args.strategy), _load_json_arg(args.founder))
    _emit(strategy.to_dict(), args.output)
    return 0


async def cmd_pipeline(args) -> int:
    """Show pipeline snapshot"""
    store = await open_pipeline_store(_config_from_args(args))
    try:
        tracker = PipelineTracker(store)
        if args.status:
            entries = await tracker.investors_by_status(args.founder_id, args.status)
            _emit({"investors": [e.to_wire() if args.wire else e.to_dict() for e in entries]})
        else:
            snapshot = await tracker.get_pipeline_data(args.founder_id)
            _emit(snapshot.to_wire() if args.wire else snapshot.to_dict())
    finally:
        await store.close()
    return 0


async def cmd_update(args) -> int:
    """Record one status change"""
    if not args.investor_id and not args.email:
        print("ERROR: --investor-id or --email required for update command")
        return 1

    store = await open_pipeline_store(_config_from_args(args))
    try:
        tracker = PipelineTracker(store)
        entry = await tracker.update_status(
            founder_id=args.founder_id,
            investor_id=args.investor_id,
            investor_email=args.email,
            status=args.status,
            metadata=_load_json_arg(args.metadata),
        )
        _emit(entry.to_dict())
    finally:
        await store.close()
    return 0


async def cmd_bulk(args) -> int:
    """Apply status changes from a JSON array"""
    updates = _load_json_arg(args.file)
    if not isinstance(updates, list):
        print("ERROR: bulk file must contain a JSON array of updates")
        return 1

    store = await open_pipeline_store(_config_from_args(args))
    try:
        tracker = PipelineTracker(store)
        result = await tracker.bulk_update(updates, founder_id=args.founder_id)
        _emit(result.to_dict())
    finally:
        await store.close()
    return 0


async def cmd_stats(args) -> int:
    """Show funnel rates"""
    store = await open_pipeline_store(_config_from_args(args))
    try:
        tracker = PipelineTracker(store)
        stats = await tracker.get_stats(args.founder_id)
        _emit(stats_to_wire(stats) if args.wire else stats)
    finally:
        await store.close()
    return 0


async def cmd_clear(args) -> int:
    """Delete pipeline entries"""
    if not args.founder_id and not args.all:
        print("ERROR: pass --founder-id or --all")
        return 1

    store = await open_pipeline_store(_config_from_args(args))
    try:
        await PipelineTracker(store).clear(None if args.all else args.founder_id)
        print("Pipeline cleared")
    finally:
        await store.close()
    return 0


async def cmd_import_csv(args) -> int:
    """Convert a CSV export into the investors dataset"""
    try:
        investors = read_investors_csv(args.input, layout=args.layout, limit=args.limit)
    except DatasetImportError as e:
        print(f"ERROR: {e}")
        return 1
    path = write_dataset(investors, args.output)
    print(f"Imported {len(investors)} investors -> {path}")
    return 0


async def cmd_fill_emails(args) -> int:
    """Fill guessed emails into the dataset"""
    dataset = args.dataset or _config_from_args(args).dataset_path
    try:
        updated = fill_missing_emails(dataset, backup_path=args.backup)
    except DatasetImportError as e:
        print(f"ERROR: {e}")
        return 1
    print(f"Updated {updated} investor emails in {dataset}")
    return 0


COMMANDS = {
    "match": cmd_match,
    "strategy": cmd_strategy,
    "pipeline": cmd_pipeline,
    "update": cmd_update,
    "bulk": cmd_bulk,
    "stats": cmd_stats,
    "clear": cmd_clear,
    "import-csv": cmd_import_csv,
    "fill-emails": cmd_fill_emails,
}


# =============================================================================
# CLI ARGUMENT PARSER
# =============================================================================

def _add_store_args(sub: argparse.ArgumentParser, founder_default: Optional[str] = "default") -> None:
    sub.add_argument(
        "--founder-id",
        type=str,
        default=founder_default,
        help="Founder whose pipeline to use",
    )
    sub.add_argument(
        "--db-path",
        type=str,
        help="Path to pipeline SQLite database (overrides PIPELINE_DB_PATH)",
    )


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser"""

    parser = argparse.ArgumentParser(
        description="Investor sourcing and outreach pipeline",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Environment variables:
  INVESTOR_DATASET_PATH           - Static investor JSON (default: data/investors_static.json)
  INVESTOR_DATASET_FALLBACK_PATH  - Used when the main dataset is missing (default: data/investors.json)
  PIPELINE_DB_PATH                - SQLite pipeline database (unset: in-memory)
  ENRICHMENT_SEED                 - Seed for enrichment fallbacks (unset: random)
        """,
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Match command
    match_parser = subparsers.add_parser("match", help="Rank investors for a strategy")
    match_parser.add_argument("--strategy", type=str, help="Strategy JSON file or inline JSON")
    match_parser.add_argument("--founder", type=str, help="Founder data JSON file or inline JSON")
    match_parser.add_argument("--dataset", type=str, help="Investor dataset path (overrides env var)")
    match_parser.add_argument("--seed", type=int, help="Enrichment random seed")
    match_parser.add_argument("--limit", type=int, help="Only print the first N investors")
    match_parser.add_argument("--explain", action="store_true", help="Include per-investor score breakdown")
    match_parser.add_argument("--output", type=str, help="Save results to JSON file")

    # Strategy command
    strategy_parser = subparsers.add_parser("strategy", help="Complete a strategy from founder data")
    strategy_parser.add_argument("--strategy", type=str, help="Raw strategy JSON file or inline JSON")
    strategy_parser.add_argument("--founder", type=str, help="Founder data JSON file or inline JSON")
    strategy_parser.add_argument("--output", type=str, help="Save the strategy to JSON file")

    # Pipeline command
    pipeline_parser = subparsers.add_parser("pipeline", help="Show a founder's pipeline")
    _add_store_args(pipeline_parser)
    pipeline_parser.add_argument("--status", type=str, help="Only entries with this status")
    pipeline_parser.add_argument("--wire", action="store_true", help="camelCase keys")

    # Update command
    update_parser = subparsers.add_parser("update", help="Record a status change")
    _add_store_args(update_parser)
    update_parser.add_argument("--investor-id", type=str, help="Investor id")
    update_parser.add_argument("--email", type=str, help="Investor email (used as id when --investor-id is absent)")
    update_parser.add_argument(
        "--status",
        type=str,
        required=True,
        choices=["not_contacted", "contacted", "replied", "booked", "not_interested"],
        help="New status",
    )
    update_parser.add_argument("--metadata", type=str, help="Metadata JSON merged into the entry")

    # Bulk command
    bulk_parser = subparsers.add_parser("bulk", help="Apply status changes from a JSON file")
    _add_store_args(bulk_parser)
    bulk_parser.add_argument("--file", type=str, required=True, help="JSON array of updates")

    # Stats command
    stats_parser = subparsers.add_parser("stats", help="Show funnel rates")
    _add_store_args(stats_parser)
    stats_parser.add_argument("--wire", action="store_true", help="camelCase keys")

    # Clear command
    clear_parser = subparsers.add_parser("clear", help="Delete pipeline entries")
    _add_store_args(clear_parser, founder_default=None)
    clear_parser.add_argument("--all", action="store_true", help="Delete every founder's entries")

    # Import CSV command
    import_parser = subparsers.add_parser("import-csv", help="Convert a CSV export into the dataset")
    import_parser.add_argument("--input", type=str, required=True, help="CSV file to read")
    import_parser.add_argument(
        "--output",
        type=str,
        default=str(DEFAULT_FALLBACK_PATH),
        help=f"Dataset JSON to write (default: {DEFAULT_FALLBACK_PATH})",
    )
    import_parser.add_argument(
        "--layout",
        type=str,
        default="standard",
        choices=list(CSV_LAYOUTS),
        help="standard: dataset-named columns; partner: contact-list export",
    )
    import_parser.add_argument(
        "--limit",
        type=int,
        help=f"Stop after N investors (partner layout default: {DEFAULT_PARTNER_LIMIT})",
    )

    # Fill emails command
    fill_parser = subparsers.add_parser("fill-emails", help="Guess emails for dataset rows without one")
    fill_parser.add_argument("--dataset", type=str, help="Dataset JSON (default: INVESTOR_DATASET_PATH)")
    fill_parser.add_argument("--backup", type=str, help="Backup path (default: <dataset>.backup.json)")

    return parser


# =============================================================================
# MAIN
# =============================================================================

async def main(argv=None) -> int:
    """Main entry point"""
    load_dotenv()

    parser = create_parser()
    args = parser.parse_args(argv)

    setup_logging(verbose=args.verbose)

    if not args.command:
        parser.print_help()
        return 1

    handler = COMMANDS.get(args.command)
    if handler is None:
        print(f"Unknown command: {args.command}")
        parser.print_help()
        return 1

    try:
        return await handler(args)
    except KeyboardInterrupt:
        print("\n\nInterrupted by user")
        return 130
    except Exception as e:
        logging.exception("Fatal error")
        print(f"\nFatal error: {e}")
        return 1


def cli():
    """Console script entry point"""
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
