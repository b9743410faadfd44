# ============================================================================
# TYPE COMPATIBILITY ORACLE
# ============================================================================
# EPOCH: 1 - SCHEMA DESIGNER CORE
# STATUS: Core - Pure predicate over column type names
# PURPOSE: Decide whether two column types may be joined by a foreign key
# CREATED: 14 SEP 2026
# ============================================================================
"""
Type Compatibility Oracle

Column types are normalized (case, whitespace, length/precision suffixes,
common aliases) and then compared against a rule table of compatibility
classes. Compatibility is checked in both directions, so compatible(a, b)
always equals compatible(b, a) even if a rule entry is one-sided.

Every function here is pure and total: any string (or None) is accepted
and nothing raises.

Usage:
    from core.schema.type_compat import compatible, explain

    compatible("int", "bigint")       # True
    compatible("uuid", "text")        # False
    explain("uuid", "text")
    # 'Cannot create relationship: "uuid" can only connect to [uuid], but target field is "text"'
"""

import re
from typing import Dict, FrozenSet, List

from core.contracts import TypeFamily


# ============================================================================
# RULE TABLE
# ============================================================================

# type -> types it may be linked to (including itself)
COMPATIBILITY_RULES: Dict[str, List[str]] = {
    "uuid": ["uuid"],

    "bigint": ["bigint", "int", "smallint"],
    "int": ["bigint", "int", "smallint"],
    "smallint": ["bigint", "int", "smallint"],

    "decimal": ["decimal", "numeric", "real", "double precision"],
    "numeric": ["decimal", "numeric", "real", "double precision"],
    "real": ["decimal", "numeric", "real", "double precision"],
    "double precision": ["decimal", "numeric", "real", "double precision"],

    "text": ["text", "varchar", "char"],
    "varchar": ["text", "varchar", "char"],
    "char": ["text", "varchar", "char"],

    "timestamp": ["timestamp", "timestamptz"],
    "timestamptz": ["timestamp", "timestamptz"],

    "date": ["date"],

    "time": ["time", "timetz"],
    "timetz": ["time", "timetz"],

    "interval": ["interval"],
    "boolean": ["boolean"],

    "json": ["json", "jsonb"],
    "jsonb": ["json", "jsonb"],

    "array": ["array"],
    "bytea": ["bytea"],
}

TYPE_ALIASES: Dict[str, str] = {
    "integer": "int",
    "int4": "int",
    "int8": "bigint",
    "int2": "smallint",
    "serial": "int",
    "serial4": "int",
    "bigserial": "bigint",
    "serial8": "bigint",
    "smallserial": "smallint",
    "serial2": "smallint",
    "float4": "real",
    "float8": "double precision",
    "float": "double precision",
    "bool": "boolean",
    "character varying": "varchar",
    "character": "char",
    "bpchar": "char",
    "timestamp without time zone": "timestamp",
    "timestamp with time zone": "timestamptz",
    "time without time zone": "time",
    "time with time zone": "timetz",
}

_FAMILIES: Dict[TypeFamily, FrozenSet[str]] = {
    TypeFamily.UUID: frozenset({"uuid"}),
    TypeFamily.INTEGER: frozenset({"bigint", "int", "smallint"}),
    TypeFamily.DECIMAL: frozenset({"decimal", "numeric", "real", "double precision"}),
    TypeFamily.TEXT: frozenset({"text", "varchar", "char"}),
    TypeFamily.TIMESTAMP: frozenset({"timestamp", "timestamptz"}),
    TypeFamily.TIME: frozenset({"time", "timetz"}),
    TypeFamily.DATE: frozenset({"date"}),
    TypeFamily.INTERVAL: frozenset({"interval"}),
    TypeFamily.BOOLEAN: frozenset({"boolean"}),
    TypeFamily.JSON: frozenset({"json", "jsonb"}),
    TypeFamily.ARRAY: frozenset({"array"}),
    TypeFamily.BINARY: frozenset({"bytea"}),
}

_SUFFIX = re.compile(r"\s*\([^)]*\)")
_WHITESPACE = re.compile(r"\s+")


# ============================================================================
# NORMALIZATION
# ============================================================================

def normalize_type(raw) -> str:
    """
    Canonical spelling of a column type.

    "VARCHAR(255)" -> "varchar", "Integer" -> "int", "text[]" -> "array",
    "timestamp(3) with time zone" -> "timestamptz". Non-strings become "".
    """
    if not isinstance(raw, str):
        return ""
    value = _SUFFIX.sub("", raw.strip().lower())
    value = _WHITESPACE.sub(" ", value).strip()
    if value.endswith("[]"):
        return "array"
    return TYPE_ALIASES.get(value, value)


def type_family(raw) -> TypeFamily:
    """Compatibility class of a column type, UNKNOWN for unrecognised types."""
    normalized = normalize_type(raw)
    for family, members in _FAMILIES.items():
        if normalized in members:
            return family
    return TypeFamily.UNKNOWN


# ============================================================================
# PREDICATE
# ============================================================================

def compatible(type_a, type_b) -> bool:
    """
    True if a foreign key may join a column of type_a to one of type_b.

    Identical normalized types are always compatible; otherwise the rule
    table is consulted in both directions. Unknown types are compatible
    only with themselves.
    """
    a = normalize_type(type_a)
    b = normalize_type(type_b)
    if a == b:
        return True
    return b in COMPATIBILITY_RULES.get(a, ()) or a in COMPATIBILITY_RULES.get(b, ())


def allowed_targets(type_a) -> List[str]:
    """Types a column of type_a may link to; [type_a] for unknown types."""
    a = normalize_type(type_a)
    return list(COMPATIBILITY_RULES.get(a, [a]))


def explain(type_a, type_b) -> str:
    """Human-readable reason type_a cannot link to type_b."""
    allowed = ", ".join(allowed_targets(type_a))
    return (
        f'Cannot create relationship: "{type_a}" can only connect to '
        f'[{allowed}], but target field is "{type_b}"'
    )


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "COMPATIBILITY_RULES",
    "TYPE_ALIASES",
    "normalize_type",
    "type_family",
    "compatible",
    "allowed_targets",
    "explain",
]
