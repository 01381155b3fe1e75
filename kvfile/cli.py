#!/usr/bin/env python3
"""
kvfile Command Line Entry Point

Inspect and edit a cache snapshot file from the shell.

Usage:
    kvfile cache.json show                  # Print live contents as JSON
    kvfile cache.json get token             # Print one scalar value
    kvfile cache.json list recent           # Print the live values of a list
    kvfile cache.json set token '"abc"' --ttl 60
    kvfile cache.json push recent '"/home"'
    kvfile cache.json pull recent '"/home"'
    kvfile cache.json delete token
    kvfile cache.json clear
    kvfile cache.json purge                 # Drop stale entries from the file
    kvfile --debug cache.json show          # Enable debug logging

Values are given as JSON text. A value that is not valid JSON is stored
as a plain string.

Environment Variables:
    KVFILE_DEBUG        - Enable debug mode (true/false)
    KVFILE_LOG_LEVEL    - Log level when not in debug mode
"""

import argparse
import json
import logging
import math
import os
import sys
from typing import Any, List, Optional

from .cache.errors import CacheError
from .cache.store import PersistentCache
from .config.settings import settings

logger = logging.getLogger(__name__)

# Commands that must not create a missing snapshot file
READ_COMMANDS = ("show", "get", "list", "purge")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="kvfile",
        description="kvfile: File-Persisted Key-Value Cache",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        default=settings.DEBUG,
        help="Enable debug logging",
    )

    parser.add_argument("path", help="Cache snapshot file")

    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("show", help="Print all live keys")
    commands.add_parser("clear", help="Remove every key")
    commands.add_parser("purge", help="Drop stale entries from the file")

    for name in ("get", "list", "delete"):
        sub = commands.add_parser(name, help=f"{name} a key")
        sub.add_argument("key")

    for name in ("set", "push"):
        sub = commands.add_parser(name, help=f"{name} a value")
        sub.add_argument("key")
        sub.add_argument("value", help="JSON value")
        sub.add_argument(
            "--ttl",
            type=float,
            default=math.inf,
            help="Time-to-live in seconds",
        )

    sub = commands.add_parser("pull", help="Remove matching list elements")
    sub.add_argument("key")
    sub.add_argument("value", help="JSON value to remove")

    return parser.parse_args(argv)


def setup_logging(debug: bool = False) -> None:
    """Configure logging based on debug flag."""
    level = logging.DEBUG if debug else getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stderr),
        ]
    )


def parse_value(text: str) -> Any:
    """Decode a JSON value, falling back to the raw string."""
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return text


def snapshot_view(cache: PersistentCache) -> dict:
    """Collect the live contents of ``cache`` as plain values."""
    view = {}
    for key in sorted(cache.keys()):
        # list() is empty for scalar slots
        view[key] = cache.list(key) or cache.get(key)
    return view


def run(args: argparse.Namespace) -> Any:
    """
    Execute one command against the cache file.

    Returns:
        The value to print, or None for commands without output
    """
    if args.command in READ_COMMANDS and not os.path.exists(args.path):
        raise FileNotFoundError(f"no cache file at {args.path}")

    cache = PersistentCache(args.path, flush_at_exit=False)

    if args.command == "show":
        return snapshot_view(cache)
    if args.command == "get":
        return cache.get(args.key)
    if args.command == "list":
        return cache.list(args.key)
    if args.command == "purge":
        before = cache.stats()["total_entries"]
        cache.save()
        after = cache.stats()["total_entries"]
        logger.info(f"Purged {before - after} stale entries from {args.path}")
        return {"purged": before - after}

    if args.command == "set":
        cache.set(args.key, parse_value(args.value), ttl=args.ttl)
    elif args.command == "push":
        cache.push(args.key, parse_value(args.value), ttl=args.ttl)
    elif args.command == "pull":
        cache.pull(args.key, parse_value(args.value))
    elif args.command == "delete":
        cache.delete(args.key)
    elif args.command == "clear":
        cache.clear()

    cache.save()
    return None


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    args = parse_args(argv)

    setup_logging(debug=args.debug)

    try:
        result = run(args)
    except (CacheError, OSError) as e:
        logger.error(f"{args.command} failed: {e}")
        return 1

    if result is not None:
        print(json.dumps(result, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
