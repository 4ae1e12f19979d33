"""
PostgreSQL Client Wrapper for the Fulfillment Service

asyncpg connection pool with the query/query_row/execute surface the
repositories use. Rows come back as plain dicts; JSON/JSONB columns are
decoded to Python objects.

Usage:
    from core.postgres_client import get_postgres_client

    db = await get_postgres_client("fulfillment_service")

    async with db:
        rows = await db.query("SELECT * FROM fulfillment.orders WHERE order_id = $1", [order_id])
"""

import json
import logging
from typing import Any, Dict, List, Optional

import asyncpg

logger = logging.getLogger(__name__)


async def _init_connection(conn: asyncpg.Connection):
    for type_name in ("json", "jsonb"):
        await conn.set_type_codec(
            type_name,
            encoder=json.dumps,
            decoder=json.loads,
            schema="pg_catalog",
        )


def _affected_rows(status: str) -> int:
    """Parse the row count out of a command tag like 'UPDATE 1'"""
    try:
        return int(status.rsplit(" ", 1)[-1])
    except (ValueError, AttributeError, IndexError):
        return 0


class _ConnectionQueries:
    """Query helpers bound to one pooled connection"""

    def __init__(self, conn: asyncpg.Connection):
        self._conn = conn

    async def query(self, sql: str, params: Optional[List[Any]] = None) -> List[Dict[str, Any]]:
        rows = await self._conn.fetch(sql, *(params or []))
        return [dict(row) for row in rows]

    async def query_row(self, sql: str, params: Optional[List[Any]] = None) -> Optional[Dict[str, Any]]:
        row = await self._conn.fetchrow(sql, *(params or []))
        return dict(row) if row is not None else None

    async def execute(self, sql: str, params: Optional[List[Any]] = None) -> int:
        status = await self._conn.execute(sql, *(params or []))
        return _affected_rows(status)


class PostgresClientWrapper:
    """
    PostgreSQL client wrapper around an asyncpg pool.

    The pool is created lazily on first use; `async with db:` only makes
    sure it exists, it does not close it.
    """

    def __init__(
        self,
        service_name: str,
        dsn: Optional[str] = None,
        min_size: Optional[int] = None,
        max_size: Optional[int] = None,
    ):
        from core.config import get_settings

        infra = get_settings().infrastructure

        self.service_name = service_name
        self.dsn = dsn or infra.postgres_dsn
        self.min_size = min_size or infra.postgres_pool_min
        self.max_size = max_size or infra.postgres_pool_max
        self.command_timeout = infra.postgres_command_timeout
        self._pool: Optional[asyncpg.Pool] = None

        logger.info(f"PostgreSQL client initialized for {service_name}: {infra.postgres_target}")

    async def connect(self):
        if self._pool is None:
            self._pool = await asyncpg.create_pool(
                dsn=self.dsn,
                min_size=self.min_size,
                max_size=self.max_size,
                command_timeout=self.command_timeout,
                init=_init_connection,
            )
            logger.info(f"PostgreSQL pool ready for {self.service_name}")

    async def __aenter__(self):
        """Async context manager entry"""
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Pool stays open across calls"""
        return False

    async def health_check(self) -> Dict[str, Any]:
        """Check database health"""
        try:
            await self.connect()
            async with self._pool.acquire() as conn:
                await conn.fetchval("SELECT 1")
            return {"healthy": True}
        except Exception as e:
            logger.error(f"PostgreSQL health check failed: {e}")
            return {"healthy": False, "error": str(e)}

    async def query(self, sql: str, params: Optional[List[Any]] = None) -> List[Dict[str, Any]]:
        """Execute query and return results"""
        await self.connect()
        async with self._pool.acquire() as conn:
            return await _ConnectionQueries(conn).query(sql, params)

    async def query_row(self, sql: str, params: Optional[List[Any]] = None) -> Optional[Dict[str, Any]]:
        """Execute query and return single row"""
        await self.connect()
        async with self._pool.acquire() as conn:
            return await _ConnectionQueries(conn).query_row(sql, params)

    async def execute(self, sql: str, params: Optional[List[Any]] = None) -> int:
        """Execute SQL statement, returning the number of affected rows"""
        await self.connect()
        async with self._pool.acquire() as conn:
            return await _ConnectionQueries(conn).execute(sql, params)

    async def close(self):
        """Close the pool"""
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
            logger.info(f"PostgreSQL pool closed for {self.service_name}")


# Singleton instances per service
_postgres_clients: Dict[str, PostgresClientWrapper] = {}


async def get_postgres_client(service_name: str, dsn: Optional[str] = None, **kwargs) -> PostgresClientWrapper:
    """
    Get or create PostgreSQL client for a service.

    Args:
        service_name: Service name
        dsn: Optional DSN override
        **kwargs: Pool size overrides (min_size, max_size)

    Returns:
        PostgresClientWrapper instance
    """
    if service_name not in _postgres_clients:
        _postgres_clients[service_name] = PostgresClientWrapper(service_name=service_name, dsn=dsn, **kwargs)

    return _postgres_clients[service_name]
