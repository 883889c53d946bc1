"""
Run the notes store server.

Usage:
    python -m noted_store --config /etc/noted.yaml
    python -m noted_store --dev --data-dir ./data --dev-identity me@example.com
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from aiohttp import web

from .config import ServerConfig, parse_backend
from .exceptions import NotesStorageError
from .logging_utils import configure_structured_logging
from .server import build_app

logger = logging.getLogger("noted_store")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="noted_store",
        description="Per-user append-only notes store server",
    )
    parser.add_argument("--config", type=Path, help="YAML configuration file")
    parser.add_argument("--backend", choices=["local", "redis"], help="Storage backend")
    parser.add_argument("--data-dir", type=Path, help="Root directory for local stores")
    parser.add_argument("--redis-url", help="Redis URL for the redis backend")
    parser.add_argument("--host", help="Bind address")
    parser.add_argument("--port", type=int, help="Listen port")
    parser.add_argument("--dev", action="store_true", default=None, help="Development mode")
    parser.add_argument("--dev-identity", help="Fixed identity for development")
    parser.add_argument("--log-level", help="Logging level (DEBUG, INFO, ...)")
    parser.add_argument(
        "--plain-logs", action="store_true", help="Plain-text logs instead of JSON"
    )
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> ServerConfig:
    """Config file, then environment, then command line."""
    config = ServerConfig.load(args.config)
    if args.backend:
        config.backend = parse_backend(args.backend)
    if args.data_dir:
        config.data_dir = args.data_dir.expanduser()
    if args.redis_url:
        config.redis_url = args.redis_url
    if args.host:
        config.host = args.host
    if args.port:
        config.port = args.port
    if args.dev is not None:
        config.dev = args.dev
    if args.dev_identity:
        config.dev_identity = args.dev_identity
    if args.log_level:
        config.log_level = args.log_level.upper()
    if args.plain_logs:
        config.json_logs = False
    return config.validate()


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    try:
        config = build_config(args)
    except NotesStorageError as e:
        print(f"Invalid configuration: {e.message}", file=sys.stderr)
        return 2

    configure_structured_logging(level=config.log_level, json_output=config.json_logs)
    app = build_app(config)
    logger.info(f"Starting notes store on {config.host}:{config.port}")
    web.run_app(app, host=config.host, port=config.port, access_log=None)
    return 0


if __name__ == "__main__":
    sys.exit(main())
