"""
Connection pool and raw-SQL helpers on top of asyncpg.

The pool is process-wide: `main.lifespan` opens it on startup and closes it on
shutdown. Only `core.store` issues SQL; feature code goes through the store.

Placeholders are positional ($1, $2, ...). Rows come back as plain dicts.
"""

from __future__ import annotations

import logging
import os
from typing import Any
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import asyncpg

from .config import env_float, env_int

logger = logging.getLogger(__name__)

_pool: asyncpg.Pool | None = None

# libpq sslmode values asyncpg understands through its `ssl` argument.
_SSL_MODES = {"disable", "allow", "prefer", "require", "verify-ca", "verify-full"}


def split_ssl_mode(url: str) -> tuple[str, str | None]:
    """
    Strip `sslmode` from the URL query and return it separately for `create_pool(ssl=...)`.
    """
    parts = urlsplit(url)
    if not parts.query:
        return url, None

    ssl_mode = None
    params = []
    for key, value in parse_qsl(parts.query, keep_blank_values=True):
        if key == "sslmode":
            ssl_mode = value if value in _SSL_MODES else None
        else:
            params.append((key, value))
    dsn = urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(params), parts.fragment))
    return dsn, ssl_mode


def database_url() -> str:
    url = os.environ.get("DATABASE_URL", "").strip()
    if not url:
        raise RuntimeError("DATABASE_URL is not set.")
    return url


async def init_pool() -> None:
    global _pool
    if _pool is not None:
        return None
    dsn, ssl_mode = split_ssl_mode(database_url())
    min_size = env_int("DB_POOL_MIN_SIZE", 1)
    max_size = max(env_int("DB_POOL_MAX_SIZE", 10), min_size)
    _pool = await asyncpg.create_pool(
        dsn=dsn,
        ssl=ssl_mode,
        min_size=min_size,
        max_size=max_size,
        command_timeout=env_float("DB_COMMAND_TIMEOUT_S", 30.0),
    )
    logger.info("db_pool_opened min_size=%s max_size=%s ssl=%s", min_size, max_size, ssl_mode)


async def close_pool() -> None:
    global _pool
    if _pool is None:
        return None
    await _pool.close()
    _pool = None
    logger.info("db_pool_closed")


def pool() -> asyncpg.Pool:
    if _pool is None:
        raise RuntimeError("DB pool is not initialized. Call init_pool() on startup.")
    return _pool


async def ping() -> bool:
    """True when the pool is open and the database answers."""
    if _pool is None:
        return False
    try:
        return await _pool.fetchval("SELECT 1") == 1
    except (OSError, asyncpg.PostgresError) as exc:
        logger.warning("db_ping_failed error=%s", exc)
        return False


async def fetch_one(sql: str, *args: Any) -> dict[str, Any] | None:
    row = await pool().fetchrow(sql, *args)
    return dict(row) if row is not None else None


async def fetch_all(sql: str, *args: Any) -> list[dict[str, Any]]:
    rows = await pool().fetch(sql, *args)
    return [dict(r) for r in rows]


async def fetch_value(sql: str, *args: Any) -> Any:
    """
    First column of the first row (None when there are no rows).
    """
    return await pool().fetchval(sql, *args)
