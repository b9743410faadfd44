# ============================================================================
# BASE CONTRACTS & ENUMS
# ============================================================================
# EPOCH: 1 - SCHEMA DESIGNER CORE
# STATUS: Foundation - Core enums shared by models, graph and emitters
# PURPOSE: Closed vocabularies for relationships, policies and column types
# CREATED: 14 SEP 2026
# ============================================================================
"""
Base contracts for the schema designer.

These enums cross every boundary:
- JSON (browser client, saved designs, generation candidates)
- SQL (emitted DDL)
- Python (graph mutations, resolver decisions)
"""

from enum import Enum


# ============================================================================
# RELATIONSHIP ENUMS
# ============================================================================

class RelationshipType(str, Enum):
    """Cardinality of a relationship between two fields."""
    ONE_TO_ONE = "one-to-one"
    ONE_TO_MANY = "one-to-many"      # Default for resolver-created links
    MANY_TO_MANY = "many-to-many"


class ReferentialAction(str, Enum):
    """ON DELETE / ON UPDATE behaviour recorded on a relationship."""
    CASCADE = "CASCADE"
    SET_NULL = "SET NULL"
    RESTRICT = "RESTRICT"
    NO_ACTION = "NO ACTION"


class ResolutionMode(str, Enum):
    """
    How the resolver treats a supplied target field whose type does not match.

    AUTO_BRIDGE -> synthesize a compatible foreign-key field instead
    STRICT      -> reject the drop with TypeIncompatibleError
    """
    AUTO_BRIDGE = "auto_bridge"
    STRICT = "strict"


# ============================================================================
# POLICY ENUMS
# ============================================================================

class PolicyCommand(str, Enum):
    """Statement class a row-level security policy applies to."""
    SELECT = "SELECT"
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    ALL = "ALL"

    def allows_check(self) -> bool:
        """WITH CHECK is only meaningful for commands that write rows."""
        return self in (PolicyCommand.INSERT, PolicyCommand.UPDATE, PolicyCommand.ALL)


# ============================================================================
# COLUMN TYPE FAMILIES
# ============================================================================

class TypeFamily(str, Enum):
    """
    Compatibility class of a column type.

    UNKNOWN covers any type string the designer does not recognise; such
    types are only ever compatible with the identical type string.
    """
    UUID = "uuid"
    INTEGER = "integer"
    DECIMAL = "decimal"
    TEXT = "text"
    TIMESTAMP = "timestamp"
    TIME = "time"
    DATE = "date"
    INTERVAL = "interval"
    BOOLEAN = "boolean"
    JSON = "json"
    ARRAY = "array"
    BINARY = "binary"
    UNKNOWN = "unknown"


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "RelationshipType",
    "ReferentialAction",
    "ResolutionMode",
    "PolicyCommand",
    "TypeFamily",
]
