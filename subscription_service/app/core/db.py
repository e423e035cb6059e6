"""
PostgreSQL integration.

This module creates the asyncpg connection pool used by the store
(``create_pool``), verifies that the database is reachable before the
application starts serving (the probe is part of ``create_pool``) and
optionally bootstraps the ``subscriptions`` table (``init_db``).

The pool is owned by the application: it is created in the lifespan
handler, stored on ``app.state`` and handed to the store through a
FastAPI dependency.  No module-level connection state exists.
"""

import asyncio
import logging

import asyncpg

from .config import Settings

logger = logging.getLogger(__name__)


SCHEMA = """
CREATE TABLE IF NOT EXISTS subscriptions (
    id UUID PRIMARY KEY,
    service_name TEXT NOT NULL,
    price INTEGER NOT NULL CHECK (price >= 0),
    user_id UUID NOT NULL,
    start_date DATE NOT NULL,
    end_date DATE,
    created_at TIMESTAMPTZ NOT NULL DEFAULT now()
);

CREATE INDEX IF NOT EXISTS idx_subscriptions_user_id ON subscriptions(user_id);
CREATE INDEX IF NOT EXISTS idx_subscriptions_created_at ON subscriptions(created_at DESC);
"""


async def create_pool(settings: Settings) -> asyncpg.Pool:
    """Open the connection pool and probe it with ``SELECT 1``.

    Both steps together are bounded by ``settings.db_connect_timeout``.
    Any failure is logged and re-raised so that the application never
    starts serving without a database.
    """
    try:
        pool = await asyncio.wait_for(
            asyncpg.create_pool(
                dsn=settings.dsn,
                min_size=settings.db_pool_min_size,
                max_size=settings.db_pool_max_size,
            ),
            timeout=settings.db_connect_timeout,
        )
    except (asyncio.TimeoutError, OSError, asyncpg.PostgresError, asyncpg.InterfaceError) as exc:
        logger.error(
            "failed to connect to database %s:%s/%s: %s",
            settings.db_host,
            settings.db_port,
            settings.db_name,
            exc,
        )
        raise

    try:
        await pool.fetchval("SELECT 1", timeout=settings.db_connect_timeout)
    except (asyncio.TimeoutError, OSError, asyncpg.PostgresError, asyncpg.InterfaceError) as exc:
        logger.error("failed to ping database: %s", exc)
        await pool.close()
        raise

    logger.info(
        "Connected to database %s:%s/%s", settings.db_host, settings.db_port, settings.db_name
    )
    return pool


async def init_db(pool: asyncpg.Pool) -> None:
    """Create the subscriptions table and its indexes if they are missing.

    This is a bootstrap for empty databases only; existing tables are
    left untouched.
    """
    async with pool.acquire() as conn:
        await conn.execute(SCHEMA)
    logger.info("Database schema ensured")


async def ping(pool: asyncpg.Pool, timeout: float) -> bool:
    """Return ``True`` when a trivial query succeeds within ``timeout``."""
    try:
        await pool.fetchval("SELECT 1", timeout=timeout)
    except (asyncio.TimeoutError, OSError, asyncpg.PostgresError, asyncpg.InterfaceError) as exc:
        logger.warning("database ping failed: %s", exc)
        return False
    return True
