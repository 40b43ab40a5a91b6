#!/usr/bin/env python3
"""
Team Task Board server runner

Usage:
  python run.py                    # Development server with reload
  python run.py --production       # Multi-worker, no reload
  python run.py --setup-db         # Create tables, then serve
"""
import argparse
import asyncio
import os
import sys

import uvicorn


async def prepare_database(create_tables: bool) -> bool:
    """Optionally create tables, then verify the database answers"""
    from sqlalchemy import text
    from teamboard.core.database import async_session_factory, close_db, init_db
    from teamboard.core.logging import get_logger

    logger = get_logger("teamboard.run")
    try:
        if create_tables:
            await init_db()
        async with async_session_factory() as db:
            await db.execute(text("SELECT 1"))
        logger.info("Database connection verified")
        return True
    except Exception as e:
        logger.error(f"Database not reachable: {e}")
        return False
    finally:
        await close_db()


def server_options(production: bool, port: int) -> dict:
    options = {"host": "0.0.0.0", "port": port, "log_level": "info"}
    if production:
        options.update(workers=min(4, (os.cpu_count() or 1) + 1), access_log=True, use_colors=False)
    else:
        options.update(reload=True, reload_dirs=["teamboard"])
    return options


def main():
    parser = argparse.ArgumentParser(description="Team Task Board server")
    parser.add_argument("--production", action="store_true", help="Run in production mode")
    parser.add_argument("--setup-db", action="store_true", help="Create tables before starting")
    parser.add_argument("--skip-db-check", action="store_true", help="Start without checking the database")
    parser.add_argument("--port", type=int, default=8000)
    args = parser.parse_args()

    if not args.skip_db_check and not asyncio.run(prepare_database(args.setup_db)):
        sys.exit(1)

    uvicorn.run("teamboard.main:app", **server_options(args.production, args.port))


if __name__ == "__main__":
    main()
