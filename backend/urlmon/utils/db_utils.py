"""Database utility functions."""
import asyncio
import logging

from sqlalchemy import text
from sqlalchemy.exc import OperationalError, InterfaceError
from sqlalchemy.ext.asyncio import AsyncEngine

logger = logging.getLogger(__name__)


async def wait_for_database(engine: AsyncEngine, delay: float = 5.0) -> int:
    """Block until the database accepts a connection.

    Retries indefinitely with a fixed delay between attempts. Only connection
    errors are retried; anything else propagates.

    Args:
        engine: Engine to connect with
        delay: Seconds to wait between attempts

    Returns:
        Number of attempts it took to connect
    """
    attempt = 0
    while True:
        attempt += 1
        try:
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            if attempt > 1:
                logger.info(f"Connected to database after {attempt} attempts")
            return attempt
        except (OperationalError, InterfaceError, OSError) as e:
            logger.warning(f"Database not reachable ({e}), retrying in {delay}s (attempt {attempt})")
            await asyncio.sleep(delay)
