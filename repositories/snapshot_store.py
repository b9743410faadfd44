# ============================================================================
# SNAPSHOT STORE
# ============================================================================
# EPOCH: 1 - SCHEMA DESIGNER CORE
# STATUS: Core - Local autosave of the working schema
# PURPOSE: Persist the graph after every mutation; restore it on startup
# CREATED: 14 SEP 2026
# ============================================================================
"""
Snapshot Store

Keeps the working schema in a local JSON file so an unsaved design
survives a restart. Written after every graph mutation (wired as the
SchemaGraph persist hook); writes replace the file atomically.

File shape: {"tables": [...], "relationships": [...]} (camelCase).
"""

import logging
import os
from pathlib import Path
from typing import Optional, Union

from pydantic import ValidationError

from core.models.schema import Schema

logger = logging.getLogger(__name__)


class SnapshotStore:
    """JSON-file snapshot of the working schema."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def write(self, schema: Schema) -> None:
        """Replace the snapshot file. Raises OSError on failure."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(schema.model_dump_json(by_alias=True, indent=2), encoding="utf-8")
        os.replace(tmp, self.path)
        logger.debug(f"Wrote snapshot to {self.path} ({len(schema.tables)} tables)")

    def read(self) -> Optional[Schema]:
        """
        Load the snapshot.

        Returns:
            The stored schema, or None when the file is missing or unreadable
        """
        if not self.path.exists():
            return None
        try:
            schema = Schema.model_validate_json(self.path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, ValidationError) as e:
            logger.error(f"Ignoring unreadable snapshot {self.path}: {e}")
            return None

        problems = schema.structural_problems()
        if problems:
            logger.error(f"Ignoring inconsistent snapshot {self.path}: {'; '.join(problems)}")
            return None
        return schema

    def clear(self) -> None:
        if self.path.exists():
            self.path.unlink()


__all__ = ["SnapshotStore"]
