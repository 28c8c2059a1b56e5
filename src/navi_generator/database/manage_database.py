"""
Maintenance entry point for the navigation database.

Sub-commands:
    init                 create the schema and seed speed limits (idempotent)
    stats                print row counts of all tables and shard tables
    next-way-id          print the next way id the allocator would hand out
    shard                print the navi_data shard that receives new data
    create-shard ID      create the navi_data_{ID} shard table

Exit codes:
    0: Success
    1: Failure (configuration, open, or storage error)
"""
import argparse
import sys
from pathlib import Path
from typing import Sequence

from pydantic import ValidationError

from navi_generator.database.config_interface import DatabaseConfig, load_config
from navi_generator.database.db_operator import DBOperator
from navi_generator.logger import get_logger, setup_logging

logger = get_logger(__name__)


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(description="Navigation database maintenance")
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to navi_database.yaml (defaults are used when omitted)",
    )
    parser.add_argument(
        "--db-path",
        type=Path,
        default=None,
        help="Database file; overrides database_path from the config",
    )
    parser.add_argument("--log-file", type=Path, default=None, help="Also log to this file")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("init", help="Create schema and seed speed limits")
    sub.add_parser("stats", help="Print table row counts")
    sub.add_parser("next-way-id", help="Print the next way id")
    sub.add_parser("shard", help="Print the target navi_data shard id")
    create_shard = sub.add_parser("create-shard", help="Create a navi_data shard table")
    create_shard.add_argument("shard_id", type=int)
    return parser.parse_args(argv)


def _load_config(config_path: Path | None) -> DatabaseConfig | None:
    if config_path is None:
        return DatabaseConfig()
    try:
        config = load_config(config_path)
    except (FileNotFoundError, ValidationError) as e:
        logger.error("Configuration validation failed: %s", e)
        return None
    logger.info("Configuration loaded from %s", config_path)
    return config


def run_command(db: DBOperator, args: argparse.Namespace) -> int:
    """Execute one sub-command against an open operator."""
    if args.command == "init":
        if not db.init_database():
            logger.error("Database initialization failed")
            return 1
        print(f"Initialized {db.db_path}")
        return 0

    if args.command == "stats":
        counts = db.table_row_counts()
        if counts is None:
            return 1
        for table_name, count in counts.items():
            print(f"{table_name}\t{count}")
        return 0

    if args.command == "next-way-id":
        way_id = db.create_new_way_id()
        if way_id is None:
            return 1
        print(way_id)
        return 0

    if args.command == "shard":
        shard_id = db.get_navi_table_id()
        if shard_id is None:
            return 1
        print(shard_id)
        return 0

    if args.command == "create-shard":
        if args.shard_id < 0:
            logger.error("Shard id must be non-negative, got %d", args.shard_id)
            return 1
        return 0 if db.create_navi_shard(args.shard_id) else 1

    logger.error("Unknown command: %s", args.command)
    return 1


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging(verbose=args.verbose, log_file=args.log_file)

    config = _load_config(args.config)
    if config is None:
        return 1

    db = DBOperator(db_path=args.db_path, config=config)
    if not db.open():
        return 1
    try:
        return run_command(db, args)
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
