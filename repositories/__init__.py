# ============================================================================
# REPOSITORIES MODULE
# ============================================================================
# EPOCH: 1 - SCHEMA DESIGNER CORE
# STATUS: Core - Persistence layer
# PURPOSE: Designs table access and local schema snapshots
# CREATED: 14 SEP 2026
# ============================================================================
"""
Repositories Module

PostgreSQL access for saved designs (psycopg3 async with connection
pooling) and the local JSON snapshot of the working schema.

Usage:
    from repositories import DesignRepository, init_pool

    pool = await init_pool()
    repo = DesignRepository(pool)
    designs = await repo.list()
"""

from .database import (
    StorageError,
    init_pool,
    get_pool,
    close_pool,
    ensure_designs_table,
)
from .design_repo import DesignRepository
from .snapshot_store import SnapshotStore

__all__ = [
    "StorageError",
    "init_pool",
    "get_pool",
    "close_pool",
    "ensure_designs_table",
    "DesignRepository",
    "SnapshotStore",
]
