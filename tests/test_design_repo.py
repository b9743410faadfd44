# ============================================================================
# DESIGN REPOSITORY TESTS
# ============================================================================
# EPOCH: 1 - SCHEMA DESIGNER CORE
# STATUS: Tests - Designs table access with a mocked pool
# PURPOSE: Verify row mapping, bootstrap DDL and StorageError wrapping
# CREATED: 14 SEP 2026
# ============================================================================
"""
Design Repository Tests

No database: the psycopg pool and connection are mocked.

Run with:
    pytest tests/test_design_repo.py -v
"""

import asyncio
from datetime import datetime, timezone

import psycopg
import pytest
from unittest.mock import AsyncMock, MagicMock

from core.models.design import Viewport
from core.models.schema import Schema, Table
from core.schema.ddl_utils import render
from repositories.database import StorageError, designs_table_ddl, ensure_designs_table
from repositories.design_repo import DesignRepository


# ============================================================================
# FIXTURES
# ============================================================================

def _make_pool(fetchone=None, fetchall=None, rowcount=0, side_effect=None):
    """Mock pool whose connection().execute() returns a cursor-like result."""
    result = MagicMock()
    result.fetchone = AsyncMock(return_value=fetchone)
    result.fetchall = AsyncMock(return_value=fetchall or [])
    result.rowcount = rowcount

    conn = MagicMock()
    conn.execute = AsyncMock(return_value=result, side_effect=side_effect)

    pool = MagicMock()
    pool.connection.return_value.__aenter__.return_value = conn
    return pool, conn


def _make_row(design_id="0b6f9a52-0000-0000-0000-000000000001"):
    now = datetime(2026, 9, 14, tzinfo=timezone.utc)
    return {
        "id": design_id,
        "name": "Blog",
        "description": None,
        "schema_data": {
            "tables": [{"id": "t1", "name": "posts", "enableRLS": True}],
            "relationships": [],
            "viewport": {"x": 10, "y": 20, "zoom": 1.5},
            "metadata": {"version": "1.0.0", "lastModified": now.isoformat()},
        },
        "user_id": None,
        "created_at": now,
        "updated_at": now,
    }


# ============================================================================
# BOOTSTRAP
# ============================================================================

class TestDesignsTable:

    def test_ddl(self):
        statements = [render(s) for s in designs_table_ddl()]
        assert statements[0].startswith("CREATE TABLE IF NOT EXISTS public.designs (")
        assert "  id uuid DEFAULT gen_random_uuid() PRIMARY KEY," in statements[0]
        assert "  schema_data jsonb DEFAULT '{}'::jsonb NOT NULL," in statements[0]
        assert "DROP TRIGGER IF EXISTS update_designs_updated_at ON public.designs" in statements
        assert statements[-1].startswith("CREATE TRIGGER update_designs_updated_at")

    def test_ensure_runs_every_statement(self):
        pool, conn = _make_pool()
        count = asyncio.run(ensure_designs_table(pool, "app"))
        assert count == len(designs_table_ddl("app"))
        assert conn.execute.await_count == count


# ============================================================================
# CRUD
# ============================================================================

class TestDesignRepository:

    def test_create_maps_row(self):
        pool, conn = _make_pool(fetchone=_make_row())
        repo = DesignRepository(pool)

        design = asyncio.run(repo.create("Blog", Schema(tables=[Table(id="t1", name="posts")]),
                                         viewport=Viewport(x=10, y=20, zoom=1.5)))

        assert design.name == "Blog"
        assert design.schema_data.tables[0].enable_rls is True
        assert design.viewport.zoom == 1.5
        params = conn.execute.call_args[0][1]
        document = params["schema_data"].obj
        assert document["tables"][0]["name"] == "posts"
        assert document["viewport"] == {"x": 10.0, "y": 20.0, "zoom": 1.5}
        assert document["metadata"]["version"] == "1.0.0"

    def test_update_missing_returns_none(self):
        pool, conn = _make_pool(fetchone=None)
        result = asyncio.run(DesignRepository(pool).update("ghost", Schema()))
        assert result is None

    def test_get(self):
        pool, conn = _make_pool(fetchone=_make_row("d1"))
        design = asyncio.run(DesignRepository(pool).get("d1"))
        assert design.id == "d1"
        assert design.owner_id is None

    def test_list(self):
        pool, conn = _make_pool(fetchall=[{
            "id": "d1", "name": "Blog", "description": None,
            "created_at": None, "updated_at": None,
            "table_count": 3, "relationship_count": 2,
        }])
        summaries = asyncio.run(DesignRepository(pool).list("u1"))
        assert summaries[0].table_count == 3
        assert conn.execute.call_args[0][1] == {"owner_id": "u1"}

    def test_delete(self):
        pool, conn = _make_pool(rowcount=1)
        assert asyncio.run(DesignRepository(pool).delete("d1")) is True
        pool, conn = _make_pool(rowcount=0)
        assert asyncio.run(DesignRepository(pool).delete("d1")) is False

    def test_database_error_wrapped(self):
        pool, conn = _make_pool(side_effect=psycopg.OperationalError("connection lost"))
        with pytest.raises(StorageError) as exc:
            asyncio.run(DesignRepository(pool).get("d1"))
        assert exc.value.operation == "design load"
        assert exc.value.entity_id == "d1"
