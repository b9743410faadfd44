# ============================================================================
# MODELS MODULE
# ============================================================================
# EPOCH: 1 - SCHEMA DESIGNER CORE
# STATUS: Model exports
# PURPOSE: Central export point for all Pydantic models
# CREATED: 14 SEP 2026
# ============================================================================
"""
Models Module - Central Export Point

Pydantic models for the schema designer. Attributes are snake_case; JSON
is camelCase through aliases, so dumps use by_alias=True.
"""

from core.models.schema import (
    new_id,
    FieldReference,
    SchemaField,
    Policy,
    Position,
    Table,
    Relationship,
    Schema,
)
from core.models.updates import TableUpdate, FieldUpdate, PolicyUpdate, RelationshipUpdate
from core.models.design import Viewport, DesignMetadata, Design, DesignSummary

__all__ = [
    # Schema
    "new_id",
    "FieldReference",
    "SchemaField",
    "Policy",
    "Position",
    "Table",
    "Relationship",
    "Schema",
    # Patches
    "TableUpdate",
    "FieldUpdate",
    "PolicyUpdate",
    "RelationshipUpdate",
    # Designs
    "Viewport",
    "DesignMetadata",
    "Design",
    "DesignSummary",
]
