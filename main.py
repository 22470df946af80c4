#!/usr/bin/env python3
"""
Astra -- document storage API with token sessions and a read-through cache.

Usage:
  python main.py
  python main.py --host 0.0.0.0 --port 8080
  python main.py --reload
  python main.py --migrate

Environment variables:
  ADMIN_TOKEN   Shared secret required by POST /api/register. Required unless DEBUG=true.
  DATABASE_URL  SQLAlchemy URL. Defaults to DB_HOST/DB_* (PostgreSQL) or a local SQLite file.
  See core/config.py for the full list.
"""

import argparse
import logging
from typing import Optional

import uvicorn

from auth.store import UserStore
from core.config import get_settings
from core.db import build_database_url, create_db_engine, wait_for_db
from documents.store import DocumentStore

logger = logging.getLogger("astra.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="astra",
        description="Run the Astra docs REST API.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py
  python main.py --port 8080
  ADMIN_TOKEN=secret DATABASE_URL=postgresql://u:p@db/astra python main.py
  AUTO_MIGRATE=false python main.py --migrate
        """,
    )
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Interface to bind (default: 127.0.0.1)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port to listen on (default: 8000)",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Restart the server when source files change (development only)",
    )
    parser.add_argument(
        "--log-level",
        choices=["critical", "error", "warning", "info", "debug"],
        default="info",
        metavar="LEVEL",
        help="uvicorn log level (default: info)",
    )
    parser.add_argument(
        "--migrate",
        action="store_true",
        help="Create the database tables and exit without starting the server",
    )
    return parser


def migrate() -> None:
    """Create the users and documents tables in the configured database."""
    settings = get_settings()
    engine = create_db_engine(build_database_url(settings))
    wait_for_db(engine, attempts=settings.db_connect_attempts, delay=settings.db_connect_delay)
    UserStore(engine).migrate()
    DocumentStore(engine).migrate()
    engine.dispose()
    logger.info("Database migrations applied")


def main(argv: Optional[list[str]] = None) -> None:
    args = build_parser().parse_args(argv)

    if args.migrate:
        logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)-5s %(name)s %(message)s")
        migrate()
        return

    uvicorn.run(
        "api.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=args.log_level,
    )


if __name__ == "__main__":
    main()
