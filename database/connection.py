"""
asyncpg pool backing the remote collection store

The pool is process-wide; every RemoteCollection borrows a connection per
call through get_db_connection().
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import List, Optional

import asyncpg

from shared.config import settings

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).parent / "migrations"

_pool: Optional[asyncpg.Pool] = None


def is_initialized() -> bool:
    return _pool is not None


async def init_database(dsn: Optional[str] = None) -> None:
    """
    Open the connection pool (no-op if it is already open)

    Args:
        dsn: Connection string (defaults to settings.DATABASE_URL)

    Raises:
        ValueError: If no connection string is configured
    """
    global _pool

    if _pool is not None:
        logger.warning("Database pool already initialized")
        return

    dsn = dsn or settings.DATABASE_URL
    if not dsn:
        raise ValueError("DATABASE_URL is not configured")

    try:
        logger.info(
            f"Opening database pool: min={settings.DB_POOL_MIN_SIZE}, max={settings.DB_POOL_MAX_SIZE}"
        )
        _pool = await asyncpg.create_pool(
            dsn=dsn,
            min_size=settings.DB_POOL_MIN_SIZE,
            max_size=settings.DB_POOL_MAX_SIZE,
            command_timeout=settings.REQUEST_TIMEOUT,
            max_inactive_connection_lifetime=300
        )

        async with _pool.acquire() as conn:
            version = await conn.fetchval("SHOW server_version")
        logger.info(f"Remote store connected: PostgreSQL {version}")

    except Exception as e:
        logger.error(f"Failed to open database pool: {e}", exc_info=True)
        raise


async def close_database() -> None:
    """Close the connection pool if it is open"""
    global _pool

    if _pool is None:
        return

    try:
        await _pool.close()
        logger.info("Database pool closed")

    except Exception as e:
        logger.error(f"Error closing database pool: {e}", exc_info=True)

    finally:
        _pool = None


@asynccontextmanager
async def get_db_connection():
    """
    Borrow a pooled connection

    Usage:
        async with get_db_connection() as conn:
            rows = await conn.fetch("SELECT * FROM goals WHERE user_id = $1", user_id)

    Raises:
        RuntimeError: If the pool could not be opened
    """
    if _pool is None:
        await init_database()

    if _pool is None:
        raise RuntimeError("Database pool is not initialized")

    async with _pool.acquire() as connection:
        yield connection


def migration_files(directory: Path = MIGRATIONS_DIR) -> List[Path]:
    """Schema scripts in execution order (file name order)"""
    return sorted(Path(directory).glob("*.sql"))


async def run_migrations(directory: Path = MIGRATIONS_DIR) -> None:
    """
    Create the remote tables

    Every script is idempotent (CREATE ... IF NOT EXISTS), so all of them run
    on each start.
    """
    for path in migration_files(directory):
        logger.info(f"Applying schema script: {path.name}")
        try:
            async with get_db_connection() as conn:
                await conn.execute(path.read_text(encoding='utf-8'))

        except Exception as e:
            logger.error(f"Schema script {path.name} failed: {e}", exc_info=True)
            raise

    logger.info("Remote schema up to date")
