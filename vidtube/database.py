"""asyncpg pool lifecycle, schema bootstrap and the StorageError boundary."""

from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional

import asyncpg
import structlog

from vidtube.config import get_settings
from vidtube.exceptions import StorageError

logger = structlog.get_logger(__name__)

MIGRATIONS_DIR = Path(__file__).parent.parent / "migrations"

# Driver-level failures that callers see as StorageError
DRIVER_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError)

_pool: Optional[asyncpg.Pool] = None


async def get_pool() -> asyncpg.Pool:
    """Return the process-wide pool.

    Raises:
        RuntimeError: If init_database() has not run
    """
    if _pool is None:
        raise RuntimeError("Database pool not initialized. Call init_database() first.")
    return _pool


async def init_database() -> asyncpg.Pool:
    """Create the pool once; later calls return the existing one.

    Any failure propagates: the app lifespan treats it as fatal.
    """
    global _pool

    if _pool is not None:
        return _pool

    settings = get_settings()
    try:
        _pool = await asyncpg.create_pool(
            settings.postgres_url,
            min_size=settings.db_pool_min_size,
            max_size=settings.db_pool_max_size,
            command_timeout=settings.db_command_timeout,
        )
    except Exception as e:
        logger.error("database_pool_creation_failed", error=str(e), error_type=type(e).__name__)
        raise

    logger.info(
        "database_pool_created",
        min_size=settings.db_pool_min_size,
        max_size=settings.db_pool_max_size,
    )
    return _pool


async def close_database() -> None:
    global _pool

    if _pool is None:
        return
    await _pool.close()
    _pool = None
    logger.info("database_pool_closed")


@asynccontextmanager
async def connection() -> AsyncIterator[asyncpg.Connection]:
    """Acquire a pooled connection, converting driver failures to StorageError."""
    pool = await get_pool()
    try:
        async with pool.acquire() as conn:
            yield conn
    except DRIVER_ERRORS as e:
        logger.error(
            "database_operation_failed",
            error=str(e),
            error_type=type(e).__name__,
        )
        raise StorageError() from e


async def run_migrations(migrations_dir: Path = MIGRATIONS_DIR) -> list[str]:
    """Apply pending ``*.sql`` files in name order.

    Each file runs in its own transaction and is recorded in
    ``schema_migrations``, so a file is applied at most once.

    Returns:
        Names of the files applied by this call
    """
    files = sorted(migrations_dir.glob("*.sql")) if migrations_dir.exists() else []
    if not files:
        logger.warning("no_migrations_found", path=str(migrations_dir))
        return []

    pool = await get_pool()
    applied: list[str] = []

    async with pool.acquire() as conn:
        await conn.execute(
            """
            CREATE TABLE IF NOT EXISTS schema_migrations (
                name TEXT PRIMARY KEY,
                applied_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
            )
            """
        )
        done = {row["name"] for row in await conn.fetch("SELECT name FROM schema_migrations")}

        for path in files:
            if path.name in done:
                continue
            async with conn.transaction():
                await conn.execute(path.read_text())
                await conn.execute("INSERT INTO schema_migrations (name) VALUES ($1)", path.name)
            applied.append(path.name)
            logger.info("migration_applied", file=path.name)

    if not applied:
        logger.info("schema_up_to_date", migrations=len(files))
    return applied


async def health_check() -> bool:
    """True when a trivial query round-trips through the pool."""
    try:
        async with connection() as conn:
            return await conn.fetchval("SELECT 1") == 1
    except (RuntimeError, StorageError) as e:
        logger.warning("database_health_check_failed", error=str(e))
        return False
