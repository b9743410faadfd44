# ============================================================================
# DESIGN MODEL
# ============================================================================
# EPOCH: 1 - SCHEMA DESIGNER CORE
# STATUS: Domain model - Persisted schema designs
# PURPOSE: A named, saved schema plus canvas viewport and metadata
# CREATED: 14 SEP 2026
# ============================================================================
"""
Design Model

A Design is what the persistence collaborator stores: a schema snapshot,
the canvas viewport at save time, and bookkeeping metadata.

Maps to: public.designs (schema_data JSONB holds tables, relationships,
viewport and metadata)
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from core.models.schema import CAMEL_CONFIG, Schema


DESIGN_FORMAT_VERSION = "1.0.0"


class Viewport(BaseModel):
    """Canvas pan/zoom at save time."""
    x: float = 0.0
    y: float = 0.0
    zoom: float = Field(default=1.0, gt=0)


class DesignMetadata(BaseModel):
    version: str = DESIGN_FORMAT_VERSION
    last_modified: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = CAMEL_CONFIG


class Design(BaseModel):
    """A saved design as loaded from storage."""
    id: str
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    schema_data: Schema = Field(default_factory=Schema)
    viewport: Viewport = Field(default_factory=Viewport)
    metadata: DesignMetadata = Field(default_factory=DesignMetadata)
    owner_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = CAMEL_CONFIG

    def storage_document(self) -> Dict[str, Any]:
        """JSONB payload stored in designs.schema_data."""
        return build_storage_document(self.schema_data, self.viewport, self.metadata)

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Design":
        """Build from a designs row (dict_row)."""
        document = row.get("schema_data") or {}
        return cls(
            id=str(row["id"]),
            name=row["name"],
            description=row.get("description"),
            schema_data=Schema.model_validate({
                "tables": document.get("tables", []),
                "relationships": document.get("relationships", []),
            }),
            viewport=Viewport.model_validate(document.get("viewport") or {}),
            metadata=DesignMetadata.model_validate(document.get("metadata") or {}),
            owner_id=str(row["user_id"]) if row.get("user_id") else None,
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )


class DesignSummary(BaseModel):
    """A design listing entry: no schema body, just counts."""
    id: str
    name: str
    description: Optional[str] = None
    table_count: int = 0
    relationship_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = CAMEL_CONFIG


def build_storage_document(
    schema: Schema,
    viewport: Optional[Viewport] = None,
    metadata: Optional[DesignMetadata] = None,
) -> Dict[str, Any]:
    """The JSON document written to designs.schema_data."""
    document = schema.model_dump(mode="json", by_alias=True)
    document["viewport"] = (viewport or Viewport()).model_dump(mode="json")
    document["metadata"] = (metadata or DesignMetadata()).model_dump(mode="json", by_alias=True)
    return document


__all__ = [
    "DESIGN_FORMAT_VERSION",
    "Viewport",
    "DesignMetadata",
    "Design",
    "DesignSummary",
    "build_storage_document",
]
