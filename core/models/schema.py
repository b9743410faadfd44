# ============================================================================
# SCHEMA MODEL
# ============================================================================
# EPOCH: 1 - SCHEMA DESIGNER CORE
# STATUS: Domain model - Tables, fields, policies and relationships
# PURPOSE: The unit of save, load, export and generation
# CREATED: 14 SEP 2026
# ============================================================================
"""
Schema Model

A Schema is an ordered list of tables plus an ordered list of
relationships between their fields. Insertion order is significant: the
SQL emitter walks both lists in order.

JSON shape (camelCase, as exchanged with the browser client):

    {
      "tables": [
        {"id": "t1", "name": "users", "position": {"x": 100, "y": 100},
         "color": "#3B82F6", "enableRLS": true, "policies": [],
         "fields": [{"id": "f1", "name": "id", "type": "uuid",
                     "isPrimaryKey": true, "isForeignKey": false,
                     "isUnique": true, "isNullable": false}]}
      ],
      "relationships": [
        {"id": "rel-1", "source": "t1", "target": "t2",
         "sourceField": "f1", "targetField": "f9", "type": "one-to-many"}
      ]
    }

Field invariant: isForeignKey is true exactly when references is set.
"""

import uuid
from typing import Dict, List, Optional, Tuple

from pydantic import AliasChoices, BaseModel, Field, model_validator
from pydantic.alias_generators import to_camel

from core.contracts import PolicyCommand, ReferentialAction, RelationshipType


CAMEL_CONFIG = {
    "alias_generator": to_camel,
    "populate_by_name": True,
    "frozen": False,
}


def new_id(prefix: str) -> str:
    """Fresh entity id, e.g. new_id("rel") -> "rel-3f9c0d1e2a4b"."""
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


# ============================================================================
# FIELDS
# ============================================================================

class FieldReference(BaseModel):
    """The (table id, field id) a foreign-key field points at."""
    table: str = Field(..., min_length=1)
    field: str = Field(..., min_length=1)

    model_config = CAMEL_CONFIG


class SchemaField(BaseModel):
    """A single column of a table."""
    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    type: str = Field(..., min_length=1, description="Column type as typed by the user, e.g. 'uuid'")
    is_primary_key: bool = False
    is_foreign_key: bool = False
    is_unique: bool = False
    is_nullable: bool = True
    default_value: Optional[str] = Field(default=None, description="Raw SQL default expression")
    references: Optional[FieldReference] = None

    model_config = CAMEL_CONFIG

    @model_validator(mode="after")
    def _foreign_key_consistency(self) -> "SchemaField":
        if self.is_foreign_key != (self.references is not None):
            raise ValueError(
                f"Field {self.id}: isForeignKey must be set exactly when references is set"
            )
        return self


# ============================================================================
# POLICIES
# ============================================================================

class Policy(BaseModel):
    """
    Row-level security policy.

    Older saved designs use "operation"/"withCheck"; both spellings are
    accepted on input and "command"/"check" are written back.
    """
    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    command: PolicyCommand = Field(
        default=PolicyCommand.ALL,
        validation_alias=AliasChoices("command", "operation"),
    )
    role: str = Field(default="authenticated", min_length=1)
    using: Optional[str] = None
    check: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("check", "withCheck"),
    )

    model_config = CAMEL_CONFIG


# ============================================================================
# TABLES
# ============================================================================

class Position(BaseModel):
    """Canvas coordinates."""
    x: float = 0.0
    y: float = 0.0


class Table(BaseModel):
    """A table: ordered fields plus canvas attributes and RLS settings."""
    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    fields: List[SchemaField] = Field(default_factory=list)
    position: Position = Field(default_factory=Position)
    color: str = "#3B82F6"
    enable_rls: bool = Field(default=False, alias="enableRLS")
    policies: List[Policy] = Field(default_factory=list)

    model_config = CAMEL_CONFIG

    @model_validator(mode="after")
    def _unique_child_ids(self) -> "Table":
        for kind, items in (("field", self.fields), ("policy", self.policies)):
            seen = set()
            for item in items:
                if item.id in seen:
                    raise ValueError(f"Table {self.id}: duplicate {kind} id {item.id}")
                seen.add(item.id)
        return self

    def get_field(self, field_id: str) -> Optional[SchemaField]:
        for f in self.fields:
            if f.id == field_id:
                return f
        return None

    def field_named(self, name: str) -> Optional[SchemaField]:
        for f in self.fields:
            if f.name == name:
                return f
        return None

    def get_policy(self, policy_id: str) -> Optional[Policy]:
        for p in self.policies:
            if p.id == policy_id:
                return p
        return None

    def primary_keys(self) -> List[SchemaField]:
        return [f for f in self.fields if f.is_primary_key]


# ============================================================================
# RELATIONSHIPS
# ============================================================================

class Relationship(BaseModel):
    """A directed link from a source field to a target field."""
    id: str = Field(..., min_length=1)
    source: str = Field(..., min_length=1, description="Source table id")
    target: str = Field(..., min_length=1, description="Target table id")
    source_field: str = Field(..., min_length=1)
    target_field: str = Field(..., min_length=1)
    type: RelationshipType = RelationshipType.ONE_TO_MANY
    on_delete: Optional[ReferentialAction] = None
    on_update: Optional[ReferentialAction] = None

    model_config = CAMEL_CONFIG

    def endpoints(self) -> Tuple[Tuple[str, str], Tuple[str, str]]:
        return (self.source, self.source_field), (self.target, self.target_field)

    def connects(self, a: Tuple[str, str], b: Tuple[str, str]) -> bool:
        """True if this relationship links a and b, in either direction."""
        src, tgt = self.endpoints()
        return (src == a and tgt == b) or (src == b and tgt == a)

    def touches_table(self, table_id: str) -> bool:
        return self.source == table_id or self.target == table_id

    def touches_field(self, table_id: str, field_id: str) -> bool:
        return (
            (self.source == table_id and self.source_field == field_id)
            or (self.target == table_id and self.target_field == field_id)
        )


# ============================================================================
# SCHEMA
# ============================================================================

class Schema(BaseModel):
    """Tables and relationships; the unit of save, load and export."""
    tables: List[Table] = Field(default_factory=list)
    relationships: List[Relationship] = Field(default_factory=list)

    model_config = CAMEL_CONFIG

    def get_table(self, table_id: str) -> Optional[Table]:
        for t in self.tables:
            if t.id == table_id:
                return t
        return None

    def get_relationship(self, rel_id: str) -> Optional[Relationship]:
        for r in self.relationships:
            if r.id == rel_id:
                return r
        return None

    def table_index(self) -> Dict[str, Table]:
        return {t.id: t for t in self.tables}

    def structural_problems(self) -> List[str]:
        """
        Violations of the structural invariants, empty when the schema is sound.

        Checks unique table ids and names, resolvable relationship endpoints,
        unique relationship ids, no duplicate links, and that every
        foreign-key reference resolves.
        """
        problems: List[str] = []
        tables: Dict[str, Table] = {}
        names = set()
        for t in self.tables:
            if t.id in tables:
                problems.append(f"duplicate table id {t.id}")
            if t.name in names:
                problems.append(f"duplicate table name {t.name}")
            tables[t.id] = t
            names.add(t.name)

        for t in self.tables:
            for f in t.fields:
                if f.references is None:
                    continue
                ref_table = tables.get(f.references.table)
                if ref_table is None or ref_table.get_field(f.references.field) is None:
                    problems.append(
                        f"field {t.name}.{f.name} references unknown "
                        f"{f.references.table}.{f.references.field}"
                    )

        rel_ids = set()
        seen_links: List[Relationship] = []
        for r in self.relationships:
            if r.id in rel_ids:
                problems.append(f"duplicate relationship id {r.id}")
            rel_ids.add(r.id)

            src, tgt = tables.get(r.source), tables.get(r.target)
            if src is None or src.get_field(r.source_field) is None:
                problems.append(f"relationship {r.id} has unknown source {r.source}.{r.source_field}")
                continue
            if tgt is None or tgt.get_field(r.target_field) is None:
                problems.append(f"relationship {r.id} has unknown target {r.target}.{r.target_field}")
                continue
            a, b = r.endpoints()
            if any(other.connects(a, b) for other in seen_links):
                problems.append(f"relationship {r.id} duplicates an existing link")
            seen_links.append(r)

        return problems


__all__ = [
    "CAMEL_CONFIG",
    "new_id",
    "FieldReference",
    "SchemaField",
    "Policy",
    "Position",
    "Table",
    "Relationship",
    "Schema",
]
