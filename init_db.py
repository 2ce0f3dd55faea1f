"""
Create the relational tables for DATABASE_URL.

    python init_db.py          # create missing tables
    python init_db.py --reset  # drop and recreate (destroys data)
"""
import argparse
import asyncio

from donation_sync.config import get_settings
from donation_sync.database import create_engine_from_url, create_tables
from donation_sync.utils.logger import get_logger

logger = get_logger("init_db")


async def init(reset: bool = False) -> None:
    settings = get_settings()
    engine = create_engine_from_url(settings.DATABASE_URL)
    try:
        await create_tables(engine, drop_existing=reset)
    finally:
        await engine.dispose()
    logger.info(f"Tables ready on {engine.url} (reset={reset})")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("--reset", action="store_true", help="drop existing tables first")
    args = parser.parse_args()
    asyncio.run(init(reset=args.reset))
