# ============================================================================
# CORE MODULE
# ============================================================================
# EPOCH: 1 - SCHEMA DESIGNER CORE
# STATUS: Core module initialization
# PURPOSE: Export core contracts, models, and schema utilities
# CREATED: 14 SEP 2026
# ============================================================================

from core.contracts import (
    RelationshipType,
    ReferentialAction,
    ResolutionMode,
    PolicyCommand,
    TypeFamily,
)
from core.models import (
    SchemaField,
    FieldReference,
    Policy,
    Position,
    Table,
    Relationship,
    Schema,
    Design,
)
from core.schema import SchemaToSQL, compatible, explain

__all__ = [
    # Enums
    "RelationshipType",
    "ReferentialAction",
    "ResolutionMode",
    "PolicyCommand",
    "TypeFamily",
    # Models
    "SchemaField",
    "FieldReference",
    "Policy",
    "Position",
    "Table",
    "Relationship",
    "Schema",
    "Design",
    # Schema
    "SchemaToSQL",
    "compatible",
    "explain",
]
