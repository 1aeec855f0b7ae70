"""
Async PostgreSQL pool (psycopg_pool) shared by the repositories.

Connections come back as dict rows in autocommit mode; anything that must
be atomic, such as completing a reminder under a row lock, goes through
`get_db_transaction()`.
"""

import asyncio
import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

import psycopg
from psycopg import sql
from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool

from keepintouch.config import settings
from keepintouch.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

STATEMENT_TIMEOUT = "30s"
# Reminder completion waits on the contact row lock at most this long
LOCK_TIMEOUT = "5s"
CLOSE_TIMEOUT = 30.0
HIGH_UTILIZATION_PERCENT = 80
UNHEALTHY_UTILIZATION_PERCENT = 90


class DatabasePool:
    """Owns the AsyncConnectionPool for the lifetime of the application."""

    def __init__(self):
        self.pool: AsyncConnectionPool | None = None
        self._closed = False

    @property
    def is_open(self) -> bool:
        return self.pool is not None and not self._closed

    async def initialize(self) -> None:
        """Open the pool and prove a connection works; called from the app lifespan."""
        if self.pool is not None:
            logger.warning("Database pool already initialized")
            return
        if self._closed:
            raise RuntimeError("Cannot reinitialize closed pool")

        pool_config = settings.get_db_pool_config()
        logger.info("Initializing database connection pool", **pool_config)

        pool = AsyncConnectionPool(
            conninfo=settings.SUPABASE_DB_URL,
            open=False,
            check=AsyncConnectionPool.check_connection,
            configure=self._configure_connection,
            **pool_config,
        )
        try:
            await pool.open()
            await pool.wait()
            self.pool = pool
            if not await self._ping():
                raise RuntimeError("connection test returned an unexpected result")
        except Exception as e:
            logger.error("Failed to initialize database pool", error=str(e))
            self.pool = None
            try:
                await pool.close()
            except Exception as cleanup_error:
                logger.warning("Error closing pool after failed init", error=str(cleanup_error))
            raise RuntimeError(f"Database pool initialization failed: {e}") from e

        logger.info("Database pool ready")

    async def _configure_connection(self, conn: psycopg.AsyncConnection) -> None:
        conn.row_factory = dict_row
        # Idle connections must never sit INTRANS
        await conn.set_autocommit(True)

        app_name = f"keepintouch-{settings.environment}"
        await conn.execute(sql.SQL("SET application_name = {}").format(sql.Literal(app_name)))
        await conn.execute("SET timezone = 'UTC'")
        await conn.execute(
            sql.SQL("SET statement_timeout = {}").format(sql.Literal(STATEMENT_TIMEOUT))
        )
        await conn.execute(sql.SQL("SET lock_timeout = {}").format(sql.Literal(LOCK_TIMEOUT)))

    async def _ping(self) -> bool:
        async with self.connection() as conn:
            cursor = await conn.execute("SELECT 1 AS ok")
            row = await cursor.fetchone()
        return bool(row) and row["ok"] == 1

    async def close(self) -> None:
        if not self.is_open:
            return

        logger.info("Closing database connection pool")
        self._closed = True
        try:
            await asyncio.wait_for(self.pool.close(), timeout=CLOSE_TIMEOUT)
        except TimeoutError:
            logger.warning("Database pool close timed out, forcing shutdown")
            return
        except Exception as e:
            logger.error("Error closing database pool", error=str(e))
            return
        logger.info("Database pool closed successfully")

    @asynccontextmanager
    async def connection(self) -> AsyncGenerator[psycopg.AsyncConnection, None]:
        if self.pool is None:
            raise RuntimeError("Database pool not initialized. Call initialize() first.")
        if self._closed:
            raise RuntimeError("Database pool is closed")

        try:
            async with self.pool.connection() as conn:
                yield conn
        except Exception as e:
            logger.error("Database connection error", error=str(e), error_type=type(e).__name__)
            raise

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[psycopg.AsyncConnection, None]:
        """
        Connection inside BEGIN ... COMMIT; rolls back if the block raises.

        Usage:
            async with await get_db_transaction() as conn:
                contact = await ContactRepository.get_contact(
                    user_id, contact_id, for_update=True, connection=conn
                )
        """
        async with self.connection() as conn:
            async with conn.transaction():
                yield conn

    async def health_check(self) -> dict[str, Any]:
        """Ping the database and report pool utilization."""
        if not self.is_open:
            error = "Pool is closed" if self._closed else "Pool not initialized"
            return {"healthy": False, "error": error, "service": "database_pool"}

        try:
            started = time.perf_counter()
            if not await self._ping():
                return {
                    "healthy": False,
                    "error": "Connection test returned unexpected result",
                    "service": "database_pool",
                }
            elapsed_ms = (time.perf_counter() - started) * 1000
        except Exception as e:
            logger.error("Database pool health check failed", error=str(e))
            return {
                "healthy": False,
                "service": "database_pool",
                "error": str(e),
                "error_type": type(e).__name__,
            }

        stats = self.pool.get_stats()
        size = stats.get("pool_size", 0)
        available = stats.get("pool_available", 0)
        utilization = (size - available) / size * 100 if size else 0.0

        result: dict[str, Any] = {
            "healthy": utilization < UNHEALTHY_UTILIZATION_PERCENT,
            "service": "database_pool",
            "connection_time_ms": round(elapsed_ms, 2),
            "pool_stats": {
                "pool_size": size,
                "pool_available": available,
                "pool_utilization_percent": round(utilization, 2),
                "requests_waiting": stats.get("requests_waiting", 0),
            },
        }
        if utilization > HIGH_UTILIZATION_PERCENT:
            result["warnings"] = [f"High pool utilization: {utilization:.1f}%"]
        return result


db_pool = DatabasePool()


async def get_db_connection():
    """Pooled autocommit connection context manager."""
    return db_pool.connection()


async def get_db_transaction():
    """Pooled connection context manager wrapped in a transaction."""
    return db_pool.transaction()


async def db_health_check() -> dict[str, Any]:
    return await db_pool.health_check()
