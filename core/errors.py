# ============================================================================
# SCHEMA ERRORS
# ============================================================================
# EPOCH: 1 - SCHEMA DESIGNER CORE
# STATUS: Foundation - Exception taxonomy for graph and resolver rejections
# PURPOSE: Typed rejections the API layer maps onto HTTP responses
# CREATED: 14 SEP 2026
# ============================================================================
"""
Schema designer exceptions.

Every rejection leaves the schema graph unchanged. The API layer maps
these onto HTTP status codes; nothing below it converts them to strings.
"""

from typing import Optional


class SchemaError(Exception):
    """Base exception for schema graph and resolver rejections."""
    pass


class InvalidReferenceError(SchemaError):
    """Raised when a table, field, policy or relationship id does not resolve."""

    def __init__(self, kind: str, entity_id: str, parent_id: Optional[str] = None):
        self.kind = kind
        self.entity_id = entity_id
        self.parent_id = parent_id
        where = f" in table {parent_id}" if parent_id else ""
        super().__init__(f"Unknown {kind}: {entity_id}{where}")


class DuplicateRelationshipError(SchemaError):
    """
    Raised when the requested link already exists in either direction.

    Informational: the caller may treat it as a no-op.
    """

    def __init__(self, existing_id: str):
        self.existing_id = existing_id
        super().__init__(f"Relationship already exists: {existing_id}")


class TypeIncompatibleError(SchemaError):
    """Raised in strict resolution when the supplied target field cannot accept the source type."""

    def __init__(self, source_type: str, target_type: str, explanation: str):
        self.source_type = source_type
        self.target_type = target_type
        super().__init__(explanation)


class FieldCreationFailedError(SchemaError):
    """Raised when the resolver ends up without a usable target field."""

    def __init__(self, table_id: str):
        self.table_id = table_id
        super().__init__(f"Could not create or find a target field in table {table_id}")


class SelfLinkError(SchemaError):
    """Raised when both ends of a requested link are the same field."""

    def __init__(self, table_id: str, field_id: str):
        self.table_id = table_id
        self.field_id = field_id
        super().__init__(f"Cannot link field {table_id}.{field_id} to itself")


class DuplicateTableNameError(SchemaError):
    """Raised when a table name is already used in the schema."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Table name already in use: {name}")


class DuplicateEntityError(SchemaError):
    """Raised when an id is already used by a sibling entity."""

    def __init__(self, kind: str, entity_id: str):
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(f"Duplicate {kind} id: {entity_id}")


class DuplicatePrimaryKeyError(SchemaError):
    """Raised when a second primary-key field would be added to a table."""

    def __init__(self, table_id: str, existing_field_id: str):
        self.table_id = table_id
        self.existing_field_id = existing_field_id
        super().__init__(
            f"Table {table_id} already has primary key field {existing_field_id}"
        )


class ProtectedTableError(SchemaError):
    """Raised on an attempt to modify or delete a protected system table."""

    def __init__(self, table_id: str):
        self.table_id = table_id
        super().__init__(f"Table {table_id} is a protected system table")


class CandidateSchemaError(SchemaError):
    """Raised when an imported or generated schema fails validation."""
    pass


class GenerationError(Exception):
    """Raised when the generation collaborator fails or returns unusable output."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "SchemaError",
    "InvalidReferenceError",
    "DuplicateRelationshipError",
    "TypeIncompatibleError",
    "FieldCreationFailedError",
    "SelfLinkError",
    "DuplicateTableNameError",
    "DuplicateEntityError",
    "DuplicatePrimaryKeyError",
    "ProtectedTableError",
    "CandidateSchemaError",
    "GenerationError",
]
