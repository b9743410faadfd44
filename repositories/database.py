# ============================================================================
# DATABASE CONNECTION POOL
# ============================================================================
# EPOCH: 1 - SCHEMA DESIGNER CORE
# STATUS: Core - Async PostgreSQL connection management
# PURPOSE: Connection pooling and bootstrap DDL for the designs store
# CREATED: 14 SEP 2026
# ============================================================================
"""
Database Connection Pool

Manages async PostgreSQL connections using psycopg3 and psycopg_pool.
One pool per application.

Connection string: DESIGNER_DB_URL, or DESIGNER_DB_HOST/PORT/NAME/USER/
PASSWORD/SSLMODE (see core.config.defaults.StorageDefaults).

Usage:
    from repositories.database import init_pool, ensure_designs_table

    pool = await init_pool()
    await ensure_designs_table(pool)
"""

import logging
from typing import List, Optional

from psycopg import sql
from psycopg_pool import AsyncConnectionPool

from core.config.defaults import StorageDefaults
from core.schema.ddl_utils import IndexBuilder, TableBuilder, TriggerBuilder

logger = logging.getLogger(__name__)

_pool: Optional[AsyncConnectionPool] = None


class StorageError(Exception):
    """Raised when the designs store cannot complete an operation."""

    def __init__(self, message: str, operation: str = None, entity_id: str = None):
        self.operation = operation
        self.entity_id = entity_id
        super().__init__(message)


def get_connection_string(storage: Optional[StorageDefaults] = None) -> str:
    """Connection string from configuration; empty when storage is not configured."""
    return (storage or StorageDefaults.from_env()).database_url


def _safe_conninfo(conninfo: str) -> str:
    """Connection string with credentials removed, for logs."""
    if "@" in conninfo:
        return conninfo.split("@")[-1]
    if "password=" in conninfo:
        return conninfo.split("password=")[0] + "password=***"
    return conninfo


async def init_pool(
    min_size: int = 1,
    max_size: int = 5,
    connection_string: Optional[str] = None,
) -> AsyncConnectionPool:
    """
    Initialize the global connection pool.

    Args:
        min_size: Minimum connections to maintain
        max_size: Maximum connections allowed
        connection_string: Override connection string (defaults to env)

    Returns:
        AsyncConnectionPool instance
    """
    global _pool

    if _pool is not None:
        logger.warning("Pool already initialized, returning existing pool")
        return _pool

    conninfo = connection_string or get_connection_string()
    if not conninfo:
        raise StorageError("No database configured (set DESIGNER_DB_URL)", operation="init_pool")

    logger.info(f"Initializing connection pool: {_safe_conninfo(conninfo)}")
    _pool = AsyncConnectionPool(
        conninfo=conninfo,
        min_size=min_size,
        max_size=max_size,
        open=False,
    )
    await _pool.open()
    logger.info(f"Connection pool opened (min={min_size}, max={max_size})")
    return _pool


async def get_pool() -> AsyncConnectionPool:
    """Get the global connection pool, initializing if needed."""
    if _pool is None:
        await init_pool()
    return _pool


async def close_pool() -> None:
    """Close the global connection pool."""
    global _pool

    if _pool is not None:
        await _pool.close()
        _pool = None
        logger.info("Connection pool closed")


# ============================================================================
# DESIGNS TABLE
# ============================================================================

DESIGNS_SCHEMA = "public"
DESIGNS_TABLE = "designs"


def designs_table_ddl(schema: str = DESIGNS_SCHEMA) -> List[sql.Composed]:
    """Idempotent DDL for the designs table, its indexes and updated_at trigger."""
    columns = [
        TableBuilder.column("id", "uuid", primary_key=True, generated_uuid=True),
        TableBuilder.column("name", "text", not_null=True),
        TableBuilder.column("description", "text"),
        TableBuilder.column("schema_data", "jsonb", default="'{}'::jsonb", not_null=True),
        TableBuilder.column("user_id", "uuid"),
        TableBuilder.column("created_at", "timestamptz", default="now()", not_null=True),
        TableBuilder.column("updated_at", "timestamptz", default="now()", not_null=True),
    ]
    trigger_name = TriggerBuilder.trigger_name(DESIGNS_TABLE)
    return [
        TableBuilder.create(schema, DESIGNS_TABLE, columns),
        IndexBuilder.btree(schema, DESIGNS_TABLE, "user_id"),
        IndexBuilder.btree(schema, DESIGNS_TABLE, "updated_at"),
        TriggerBuilder.updated_at_function(schema),
        sql.SQL("DROP TRIGGER IF EXISTS {} ON {}.{}").format(
            sql.SQL(trigger_name), sql.SQL(schema), sql.SQL(DESIGNS_TABLE)
        ),
        TriggerBuilder.updated_at_trigger(schema, DESIGNS_TABLE),
    ]


async def ensure_designs_table(pool: AsyncConnectionPool, schema: str = DESIGNS_SCHEMA) -> int:
    """Create the designs table if missing. Returns the number of statements run."""
    statements = designs_table_ddl(schema)
    async with pool.connection() as conn:
        for stmt in statements:
            await conn.execute(stmt)
    logger.info(f"Ensured {schema}.{DESIGNS_TABLE} ({len(statements)} statements)")
    return len(statements)


__all__ = [
    "StorageError",
    "get_connection_string",
    "init_pool",
    "get_pool",
    "close_pool",
    "designs_table_ddl",
    "ensure_designs_table",
]
