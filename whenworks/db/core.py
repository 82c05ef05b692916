"""Postgres connection handling.

With ``ENABLE_DB`` the lifespan opens a psycopg pool and brings the schema
up to date. Without a pool every call opens a short-lived connection, which
is what the tests and one-off scripts use.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import psycopg
from psycopg_pool import AsyncConnectionPool

from whenworks.config import get_settings

_logger = logging.getLogger(__name__)

_pool: AsyncConnectionPool | None = None


async def init_pool() -> None:
    global _pool
    if _pool is not None:
        return
    pg = get_settings().postgres
    pool = AsyncConnectionPool(
        pg.get_dsn(),
        min_size=pg.pool_min_size,
        max_size=pg.pool_max_size,
        timeout=pg.pool_timeout,
        max_lifetime=pg.pool_max_lifetime,
        max_idle=pg.pool_max_idle,
        check=AsyncConnectionPool.check_connection,
        open=False,
    )
    await pool.open()
    _pool = pool
    _logger.info("Postgres pool open (min=%d, max=%d)", pg.pool_min_size, pg.pool_max_size)

    from whenworks.db.migrations import ensure_schema

    await ensure_schema()


async def close_pool() -> None:
    global _pool
    if _pool is None:
        return
    pool, _pool = _pool, None
    await pool.close()
    _logger.info("Postgres pool closed")


@asynccontextmanager
async def _get_connection(autocommit: bool = True) -> AsyncIterator[psycopg.AsyncConnection]:
    if _pool is None:
        dsn = get_settings().postgres.get_dsn()
        async with await psycopg.AsyncConnection.connect(dsn, autocommit=autocommit) as conn:
            yield conn
        return
    async with _pool.connection() as conn:
        if autocommit:
            await conn.set_autocommit(True)
        yield conn


@asynccontextmanager
async def transaction() -> AsyncIterator[psycopg.AsyncConnection]:
    """A connection inside a transaction, committed on clean exit."""
    async with _get_connection(autocommit=False) as conn:
        async with conn.transaction():
            yield conn


def get_pool_stats() -> dict[str, object]:
    if _pool is None:
        return {"status": "not_initialized"}
    stats = _pool.get_stats()
    return {
        "status": "active",
        "size": stats.get("pool_size", 0),
        "available": stats.get("pool_available", 0),
        "waiting": stats.get("requests_waiting", 0),
    }
