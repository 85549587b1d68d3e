#!/usr/bin/env python3
"""
ringside/cli.py - Command line interface for Ringside

Usage:
    ringside serve [--host HOST] [--port PORT] [--db PATH]
    ringside history [--db PATH]
    ringside delete-match <id> [--db PATH]
"""

import argparse
import logging
import sys
from pathlib import Path

from .config import RingsideConfig, load_config
from .errors import RingsideError, StoreRejected

# Set up logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)


def _load(args) -> RingsideConfig:
    """Config file values, overridden by any flags given on the command line."""
    config = load_config(Path(args.config) if args.config else None)
    if getattr(args, "host", None):
        config.server.host = args.host
    if getattr(args, "port", None):
        config.server.port = args.port
    if args.db:
        config.server.db_path = args.db
    if getattr(args, "verbose", False):
        logging.getLogger().setLevel(logging.DEBUG)
    return config


def cmd_serve(args):
    """Start the scoreboard server."""
    import uvicorn

    from scoreboard.server import create_app

    config = _load(args)
    app = create_app(config)
    logger.info(
        f"Starting scoreboard on {config.server.host}:{config.server.port} "
        f"(db: {config.server.db_path})"
    )
    uvicorn.run(app, host=config.server.host, port=config.server.port, log_level="info")
    return 0


def cmd_history(args):
    """Print finished matches, oldest first."""
    from scoreboard.db import MatchHistoryStore

    config = _load(args)
    try:
        store = MatchHistoryStore(config.server.db_path)
        records = store.find_all_ordered_by_created_asc()
        store.close()
    except RingsideError as e:
        logger.error(e.message)
        return 1

    if not records:
        print("No matches recorded yet.")
        return 0

    print(f"\n{'ID':>4}  {'Phase':<12} {'Match':<40} {'Created'}")
    print("-" * 80)
    for r in records:
        fight = f"{r['nameA']} {r['scoreA']} x {r['scoreB']} {r['nameB'] or '-'}"
        print(f"{r['id']:>4}  {r['phase']:<12} {fight:<40} {r['createdAt']}")
    print()
    return 0


def cmd_delete_match(args):
    """Remove one finished match from the history."""
    from scoreboard.db import MatchHistoryStore

    config = _load(args)
    try:
        store = MatchHistoryStore(config.server.db_path)
        try:
            store.delete(args.id)
        finally:
            store.close()
        print(f"Deleted match {args.id}")
    except StoreRejected:
        print(f"Match {args.id} not found, nothing to delete")
    except RingsideError as e:
        logger.error(e.message)
        return 1
    return 0


def main():
    parser = argparse.ArgumentParser(
        prog="ringside",
        description="Live match timer and scoreboard for elimination tournaments",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # serve command
    serve_parser = subparsers.add_parser("serve", help="Start the scoreboard server")
    serve_parser.add_argument("--host", default=None, help="Bind address (default: 0.0.0.0)")
    serve_parser.add_argument("--port", "-p", type=int, default=None, help="Server port (default: 3000)")
    serve_parser.add_argument("--db", default=None, help="SQLite database path (default: ringside.db)")
    serve_parser.add_argument("--config", "-c", default=None, help="Config file (default: ~/.ringside/config.toml)")
    serve_parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    serve_parser.set_defaults(func=cmd_serve)

    # history command
    history_parser = subparsers.add_parser("history", help="List finished matches")
    history_parser.add_argument("--db", default=None, help="SQLite database path")
    history_parser.add_argument("--config", "-c", default=None, help="Config file")
    history_parser.set_defaults(func=cmd_history)

    # delete-match command
    delete_parser = subparsers.add_parser("delete-match", help="Remove a finished match")
    delete_parser.add_argument("id", type=int, help="Match id (see `ringside history`)")
    delete_parser.add_argument("--db", default=None, help="SQLite database path")
    delete_parser.add_argument("--config", "-c", default=None, help="Config file")
    delete_parser.set_defaults(func=cmd_delete_match)

    args = parser.parse_args()
    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
