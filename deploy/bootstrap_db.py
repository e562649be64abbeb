#!/usr/bin/env python3
"""
Database bootstrap.

Creates missing tables, applies column compatibility fixes, migrates legacy
feedback flags and upserts the admin account, all in one transaction.
Idempotent: safe to run on every deploy.

Use --with-demo-content to also seed sample articles, events and gallery images.
"""
import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy.exc import SQLAlchemyError

from app.config import Settings
from app.db import bootstrap_database, create_engine_from_settings, seed_demo_content

logger = logging.getLogger("AISolutions.bootstrap")


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create the schema and seed the admin account.")
    parser.add_argument(
        "--with-demo-content",
        action="store_true",
        help="Also insert sample articles, events and gallery images",
    )
    return parser.parse_args(argv)


async def run(settings: Settings, with_demo_content: bool = False) -> None:
    engine = create_engine_from_settings(settings)
    try:
        await bootstrap_database(engine, settings.admin_email, settings.admin_password)
        if with_demo_content:
            await seed_demo_content(engine)
    finally:
        await engine.dispose()


def main(argv: Optional[Sequence[str]] = None, settings: Optional[Settings] = None) -> int:
    args = parse_args(argv)
    settings = settings or Settings.from_env()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    try:
        asyncio.run(run(settings, with_demo_content=args.with_demo_content))
    except (SQLAlchemyError, OSError) as e:
        print(f"ERROR: Database bootstrap failed: {e}", file=sys.stderr)
        return 1

    print("Database bootstrap complete.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
