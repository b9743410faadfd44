# ============================================================================
# DESIGN REPOSITORY
# ============================================================================
# EPOCH: 1 - SCHEMA DESIGNER CORE
# STATUS: Core - Design CRUD operations
# PURPOSE: Database access for the designs table
# CREATED: 14 SEP 2026
# ============================================================================
"""
Design Repository

CRUD operations for saved designs. The schema, viewport and metadata are
stored together as one JSONB document in designs.schema_data.

Database failures are logged with context and re-raised as StorageError.
"""

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import psycopg
from psycopg import sql
from psycopg.rows import dict_row
from psycopg.types.json import Json
from psycopg_pool import AsyncConnectionPool

from core.models.design import Design, DesignMetadata, DesignSummary, Viewport, build_storage_document
from core.models.schema import Schema
from .database import DESIGNS_SCHEMA, DESIGNS_TABLE, StorageError

logger = logging.getLogger(__name__)


class DesignRepository:
    """Repository for Design entities."""

    def __init__(self, pool: AsyncConnectionPool, schema: str = DESIGNS_SCHEMA):
        self.pool = pool
        self.table = sql.Identifier(schema, DESIGNS_TABLE)

    @contextmanager
    def _error_context(self, operation: str, entity_id: Optional[str] = None):
        try:
            yield
        except psycopg.Error as e:
            error_msg = f"{operation} failed"
            if entity_id:
                error_msg += f" for {entity_id}"
            error_msg += f": {e}"
            logger.error(error_msg)
            raise StorageError(error_msg, operation=operation, entity_id=entity_id) from e

    @staticmethod
    def _document(schema: Schema, viewport: Optional[Viewport]) -> Dict[str, Any]:
        metadata = DesignMetadata(last_modified=datetime.now(timezone.utc))
        return build_storage_document(schema, viewport, metadata)

    async def create(
        self,
        name: str,
        schema: Schema,
        description: Optional[str] = None,
        viewport: Optional[Viewport] = None,
        owner_id: Optional[str] = None,
    ) -> Design:
        """
        Insert a new design.

        Returns:
            The stored design, with its generated id and timestamps
        """
        with self._error_context("design creation"):
            async with self.pool.connection() as conn:
                conn.row_factory = dict_row
                result = await conn.execute(
                    sql.SQL("""
                    INSERT INTO {} (name, description, schema_data, user_id)
                    VALUES (%(name)s, %(description)s, %(schema_data)s, %(user_id)s)
                    RETURNING *
                    """).format(self.table),
                    {
                        "name": name,
                        "description": description,
                        "schema_data": Json(self._document(schema, viewport)),
                        "user_id": owner_id,
                    },
                )
                row = await result.fetchone()

        design = Design.from_row(row)
        logger.info(f"Created design {design.id} ({name}, {len(schema.tables)} tables)")
        return design

    async def update(
        self,
        design_id: str,
        schema: Schema,
        name: Optional[str] = None,
        description: Optional[str] = None,
        viewport: Optional[Viewport] = None,
    ) -> Optional[Design]:
        """
        Overwrite a design's schema; name/description only when given.

        Returns:
            Updated design, or None if no design has that id
        """
        with self._error_context("design update", design_id):
            async with self.pool.connection() as conn:
                conn.row_factory = dict_row
                result = await conn.execute(
                    sql.SQL("""
                    UPDATE {}
                    SET schema_data = %(schema_data)s,
                        name = COALESCE(%(name)s, name),
                        description = COALESCE(%(description)s, description),
                        updated_at = now()
                    WHERE id = %(id)s
                    RETURNING *
                    """).format(self.table),
                    {
                        "id": design_id,
                        "name": name,
                        "description": description,
                        "schema_data": Json(self._document(schema, viewport)),
                    },
                )
                row = await result.fetchone()

        if row is None:
            logger.warning(f"Design {design_id} not found for update")
            return None
        logger.info(f"Updated design {design_id}")
        return Design.from_row(row)

    async def get(self, design_id: str) -> Optional[Design]:
        with self._error_context("design load", design_id):
            async with self.pool.connection() as conn:
                conn.row_factory = dict_row
                result = await conn.execute(
                    sql.SQL("SELECT * FROM {} WHERE id = %s").format(self.table),
                    (design_id,),
                )
                row = await result.fetchone()

        if row is None:
            return None
        return Design.from_row(row)

    async def list(self, owner_id: Optional[str] = None) -> List[DesignSummary]:
        """Designs ordered by most recently updated; all owners when owner_id is None."""
        query = sql.SQL("""
            SELECT id, name, description, created_at, updated_at,
                   COALESCE(jsonb_array_length(schema_data->'tables'), 0) AS table_count,
                   COALESCE(jsonb_array_length(schema_data->'relationships'), 0) AS relationship_count
            FROM {}
            {}
            ORDER BY updated_at DESC
        """).format(
            self.table,
            sql.SQL("WHERE user_id = %(owner_id)s") if owner_id else sql.SQL(""),
        )

        with self._error_context("design listing"):
            async with self.pool.connection() as conn:
                conn.row_factory = dict_row
                result = await conn.execute(query, {"owner_id": owner_id})
                rows = await result.fetchall()

        return [
            DesignSummary(
                id=str(row["id"]),
                name=row["name"],
                description=row.get("description"),
                table_count=row.get("table_count") or 0,
                relationship_count=row.get("relationship_count") or 0,
                created_at=row.get("created_at"),
                updated_at=row.get("updated_at"),
            )
            for row in rows
        ]

    async def delete(self, design_id: str) -> bool:
        """Returns True if a design was deleted."""
        with self._error_context("design deletion", design_id):
            async with self.pool.connection() as conn:
                result = await conn.execute(
                    sql.SQL("DELETE FROM {} WHERE id = %s").format(self.table),
                    (design_id,),
                )
                deleted = result.rowcount > 0

        if deleted:
            logger.info(f"Deleted design {design_id}")
        return deleted


__all__ = ["DesignRepository"]
