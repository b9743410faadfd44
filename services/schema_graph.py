# ============================================================================
# SCHEMA GRAPH
# ============================================================================
# EPOCH: 1 - SCHEMA DESIGNER CORE
# STATUS: Service - Authoritative in-memory schema with cascading mutations
# PURPOSE: Own tables, fields, policies and relationships; keep them consistent
# CREATED: 14 SEP 2026
# ============================================================================
"""
SchemaGraph

The single owner of designer state. Every mutation is all-or-nothing: it
is validated completely, then applied, then a snapshot is handed to the
persistence hook. A rejected mutation raises and leaves the graph exactly
as it was.

Cascades:
    delete_table -> relationships touching the table, foreign-key
                    references to the table, selection
    delete_field -> relationships touching the field, foreign-key
                    references to the field, selection
    delete_relationship -> selection only

Reads return copies; callers cannot change the graph except through its
operations.

Usage:
    graph = SchemaGraph(persist=snapshot_store.write)
    graph.add_table(Table(id="t1", name="users"))
    with graph.atomic():
        graph.add_field("t2", field)
        graph.add_relationship(rel)
"""

import copy
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, Type, TypeVar, Union

from pydantic import BaseModel

from core.config.defaults import CanvasDefaults
from core.errors import (
    CandidateSchemaError,
    DuplicateEntityError,
    DuplicatePrimaryKeyError,
    DuplicateRelationshipError,
    DuplicateTableNameError,
    InvalidReferenceError,
    ProtectedTableError,
)
from core.logging import get_logger, log_context
from core.models.schema import Policy, Relationship, Schema, SchemaField, Table
from core.models.updates import FieldUpdate, PolicyUpdate, RelationshipUpdate, TableUpdate

logger = get_logger(__name__)

PersistHook = Callable[[Schema], None]

M = TypeVar("M", bound=BaseModel)


def _coerce(value: Union[M, Dict[str, Any]], model: Type[M]) -> M:
    """Accept a model instance or a plain dict (camelCase or snake_case)."""
    if isinstance(value, model):
        return value.model_copy(deep=True)
    return model.model_validate(value)


def _merge(current: M, patch: BaseModel, model: Type[M]) -> M:
    """Apply a patch's explicitly-set attributes and revalidate the result."""
    return model.model_validate({**current.model_dump(), **patch.changes()})


class SchemaGraph:
    """In-memory schema with cascading, all-or-nothing mutations."""

    def __init__(
        self,
        schema: Optional[Schema] = None,
        persist: Optional[PersistHook] = None,
        protected_table_ids: Optional[Iterable[str]] = None,
    ):
        self._tables: List[Table] = []
        self._relationships: List[Relationship] = []
        self._persist = persist
        if protected_table_ids is None:
            protected_table_ids = CanvasDefaults().protected_table_ids
        self._protected = frozenset(protected_table_ids)

        self.selected_table: Optional[str] = None
        self.selected_relationship: Optional[str] = None
        self.current_design_id: Optional[str] = None
        self.current_design_name: Optional[str] = None

        self._batch_depth = 0
        self._dirty = False

        if schema is not None:
            self._replace(schema)

    # ================================================================
    # READS
    # ================================================================

    @property
    def tables(self) -> List[Table]:
        return [t.model_copy(deep=True) for t in self._tables]

    @property
    def relationships(self) -> List[Relationship]:
        return [r.model_copy(deep=True) for r in self._relationships]

    def snapshot(self) -> Schema:
        """Deep copy of the current {tables, relationships}."""
        return Schema(tables=self.tables, relationships=self.relationships)

    def get_table(self, table_id: str) -> Optional[Table]:
        table = self._find_table(table_id)
        return table.model_copy(deep=True) if table else None

    def get_field(self, table_id: str, field_id: str) -> Optional[SchemaField]:
        table = self._find_table(table_id)
        field = table.get_field(field_id) if table else None
        return field.model_copy(deep=True) if field else None

    def get_relationship(self, rel_id: str) -> Optional[Relationship]:
        rel = self._find_relationship(rel_id)
        return rel.model_copy(deep=True) if rel else None

    def find_link(
        self, a: Tuple[str, str], b: Tuple[str, str]
    ) -> Optional[Relationship]:
        """Existing relationship joining (table, field) a and b in either direction."""
        for rel in self._relationships:
            if rel.connects(a, b):
                return rel.model_copy(deep=True)
        return None

    def is_protected(self, table_id: str) -> bool:
        return table_id in self._protected

    # ================================================================
    # TABLES
    # ================================================================

    def add_table(self, table: Union[Table, Dict[str, Any]]) -> Table:
        """Append a table. Rejects id reuse, name reuse and a second primary key."""
        table = _coerce(table, Table)
        if self._find_table(table.id) is not None:
            raise DuplicateEntityError("table", table.id)
        self._check_table_name(table.name)
        self._check_primary_keys(table)
        for field in table.fields:
            self._check_reference(field, extra_table=table)

        self._tables.append(table)
        logger.debug(f"Added table {table.name} ({table.id})")
        self._commit()
        return table.model_copy(deep=True)

    def update_table(self, table_id: str, patch: Union[TableUpdate, Dict[str, Any]]) -> Table:
        """Patch name/position/color/RLS of a table."""
        current = self._require_table(table_id)
        self._guard_protected(table_id)
        patch = _coerce(patch, TableUpdate)
        changes = patch.changes()
        if "name" in changes and changes["name"] != current.name:
            self._check_table_name(changes["name"])

        updated = _merge(current, patch, Table)
        self._tables[self._tables.index(current)] = updated
        self._commit()
        return updated.model_copy(deep=True)

    def delete_table(self, table_id: str) -> List[str]:
        """
        Remove a table and everything that depends on it.

        Returns:
            Ids of the relationships removed by the cascade
        """
        table = self._require_table(table_id)
        self._guard_protected(table_id)

        with log_context(table_id=table_id, operation="delete_table"):
            removed = [r.id for r in self._relationships if r.touches_table(table_id)]
            self._relationships = [r for r in self._relationships if not r.touches_table(table_id)]
            self._tables = [t for t in self._tables if t.id != table_id]
            self._clear_references(lambda ref: ref.table == table_id)

            if self.selected_table == table_id:
                self.selected_table = None
            if self.selected_relationship in removed:
                self.selected_relationship = None

            logger.info(f"Deleted table {table.name}; cascaded {len(removed)} relationships")
        self._commit()
        return removed

    # ================================================================
    # FIELDS
    # ================================================================

    def add_field(self, table_id: str, field: Union[SchemaField, Dict[str, Any]]) -> SchemaField:
        """Append a field to a table."""
        table = self._require_table(table_id)
        field = _coerce(field, SchemaField)
        if table.get_field(field.id) is not None:
            raise DuplicateEntityError("field", field.id)
        if field.is_primary_key:
            self._check_single_primary_key(table, field.id)
        self._check_reference(field)

        table.fields.append(field)
        logger.debug(f"Added field {table.name}.{field.name}")
        self._commit()
        return field.model_copy(deep=True)

    def update_field(
        self,
        table_id: str,
        field_id: str,
        patch: Union[FieldUpdate, Dict[str, Any]],
    ) -> SchemaField:
        """Patch a field. The foreign-key flag and reference must stay paired."""
        table = self._require_table(table_id)
        current = self._require_field(table, field_id)
        patch = _coerce(patch, FieldUpdate)

        updated = _merge(current, patch, SchemaField)
        if updated.is_primary_key:
            self._check_single_primary_key(table, field_id)
        self._check_reference(updated)

        table.fields[table.fields.index(current)] = updated
        self._commit()
        return updated.model_copy(deep=True)

    def delete_field(self, table_id: str, field_id: str) -> List[str]:
        """
        Remove a field and every relationship using it.

        Returns:
            Ids of the relationships removed by the cascade
        """
        table = self._require_table(table_id)
        field = self._require_field(table, field_id)

        with log_context(table_id=table_id, field_id=field_id, operation="delete_field"):
            removed = [r.id for r in self._relationships if r.touches_field(table_id, field_id)]
            self._relationships = [
                r for r in self._relationships if not r.touches_field(table_id, field_id)
            ]
            table.fields = [f for f in table.fields if f.id != field_id]
            self._clear_references(lambda ref: ref.table == table_id and ref.field == field_id)

            if self.selected_relationship in removed:
                self.selected_relationship = None

            logger.info(f"Deleted field {table.name}.{field.name}; cascaded {len(removed)} relationships")
        self._commit()
        return removed

    # ================================================================
    # RELATIONSHIPS
    # ================================================================

    def add_relationship(self, rel: Union[Relationship, Dict[str, Any]]) -> Relationship:
        """
        Append a relationship.

        Only structural integrity is checked here (both endpoints resolve, id
        unused, link not already present); type rules belong to the resolver.
        """
        rel = _coerce(rel, Relationship)
        if self._find_relationship(rel.id) is not None:
            raise DuplicateEntityError("relationship", rel.id)

        source = self._require_table(rel.source)
        self._require_field(source, rel.source_field)
        target = self._require_table(rel.target)
        self._require_field(target, rel.target_field)

        existing = self.find_link(*rel.endpoints())
        if existing is not None:
            raise DuplicateRelationshipError(existing.id)

        self._relationships.append(rel)
        self._commit()
        return rel.model_copy(deep=True)

    def update_relationship(
        self, rel_id: str, patch: Union[RelationshipUpdate, Dict[str, Any]]
    ) -> Relationship:
        """Change type or referential actions; endpoints are immutable."""
        current = self._require_relationship(rel_id)
        patch = _coerce(patch, RelationshipUpdate)
        updated = _merge(current, patch, Relationship)
        self._relationships[self._relationships.index(current)] = updated
        self._commit()
        return updated.model_copy(deep=True)

    def delete_relationship(self, rel_id: str) -> None:
        self._require_relationship(rel_id)
        self._relationships = [r for r in self._relationships if r.id != rel_id]
        if self.selected_relationship == rel_id:
            self.selected_relationship = None
        self._commit()

    # ================================================================
    # POLICIES
    # ================================================================

    def add_policy(self, table_id: str, policy: Union[Policy, Dict[str, Any]]) -> Policy:
        table = self._require_table(table_id)
        policy = _coerce(policy, Policy)
        if table.get_policy(policy.id) is not None:
            raise DuplicateEntityError("policy", policy.id)
        table.policies.append(policy)
        self._commit()
        return policy.model_copy(deep=True)

    def update_policy(
        self,
        table_id: str,
        policy_id: str,
        patch: Union[PolicyUpdate, Dict[str, Any]],
    ) -> Policy:
        table = self._require_table(table_id)
        current = table.get_policy(policy_id)
        if current is None:
            raise InvalidReferenceError("policy", policy_id, table_id)
        patch = _coerce(patch, PolicyUpdate)
        updated = _merge(current, patch, Policy)
        table.policies[table.policies.index(current)] = updated
        self._commit()
        return updated.model_copy(deep=True)

    def delete_policy(self, table_id: str, policy_id: str) -> None:
        table = self._require_table(table_id)
        if table.get_policy(policy_id) is None:
            raise InvalidReferenceError("policy", policy_id, table_id)
        table.policies = [p for p in table.policies if p.id != policy_id]
        self._commit()

    # ================================================================
    # SELECTION & DESIGN STATE
    # ================================================================

    def select_table(self, table_id: Optional[str]) -> None:
        if table_id is not None:
            self._require_table(table_id)
        self.selected_table = table_id

    def select_relationship(self, rel_id: Optional[str]) -> None:
        if rel_id is not None:
            self._require_relationship(rel_id)
        self.selected_relationship = rel_id

    def set_current_design(self, design_id: Optional[str], design_name: Optional[str]) -> None:
        self.current_design_id = design_id
        self.current_design_name = design_name

    def load_schema(
        self,
        schema: Schema,
        design_id: Optional[str] = None,
        design_name: Optional[str] = None,
    ) -> None:
        """
        Replace the whole graph.

        Raises:
            CandidateSchemaError: the schema violates a structural invariant
        """
        problems = schema.structural_problems()
        if problems:
            raise CandidateSchemaError("Cannot load schema: " + "; ".join(problems))

        self._replace(schema)
        self.set_current_design(design_id, design_name)
        logger.info(
            f"Loaded schema: {len(self._tables)} tables, "
            f"{len(self._relationships)} relationships (design={design_id})"
        )
        self._commit()

    def clear(self) -> None:
        """Empty the graph and forget the current design."""
        self._tables = []
        self._relationships = []
        self.selected_table = None
        self.selected_relationship = None
        self.set_current_design(None, None)
        self._commit()

    # ================================================================
    # BATCHING
    # ================================================================

    @contextmanager
    def atomic(self):
        """
        Group mutations into one unit.

        If the block raises, the graph is restored to its state on entry
        and the exception propagates. On success the persistence hook runs
        once for the whole block.
        """
        saved = self._capture()
        self._batch_depth += 1
        try:
            yield self
        except BaseException:
            self._restore(saved)
            raise
        finally:
            self._batch_depth -= 1
        if self._batch_depth == 0 and self._dirty:
            self._dirty = False
            self._persist_snapshot()

    # ================================================================
    # INTERNALS
    # ================================================================

    def _replace(self, schema: Schema) -> None:
        self._tables = [t.model_copy(deep=True) for t in schema.tables]
        self._relationships = [r.model_copy(deep=True) for r in schema.relationships]
        self.selected_table = None
        self.selected_relationship = None

    def _capture(self) -> Dict[str, Any]:
        return {
            "tables": copy.deepcopy(self._tables),
            "relationships": copy.deepcopy(self._relationships),
            "selected_table": self.selected_table,
            "selected_relationship": self.selected_relationship,
            "current_design_id": self.current_design_id,
            "current_design_name": self.current_design_name,
        }

    def _restore(self, saved: Dict[str, Any]) -> None:
        self._tables = saved["tables"]
        self._relationships = saved["relationships"]
        self.selected_table = saved["selected_table"]
        self.selected_relationship = saved["selected_relationship"]
        self.current_design_id = saved["current_design_id"]
        self.current_design_name = saved["current_design_name"]
        if self._batch_depth <= 1:
            self._dirty = False
        logger.warning("Rolled back schema graph to state before failed batch")

    def _commit(self) -> None:
        if self._batch_depth > 0:
            self._dirty = True
            return
        self._persist_snapshot()

    def _persist_snapshot(self) -> None:
        if self._persist is None:
            return
        try:
            self._persist(self.snapshot())
        except Exception:
            # In-memory state stays authoritative; the next mutation retries.
            logger.exception("Failed to persist schema snapshot")

    def _find_table(self, table_id: str) -> Optional[Table]:
        for t in self._tables:
            if t.id == table_id:
                return t
        return None

    def _find_relationship(self, rel_id: str) -> Optional[Relationship]:
        for r in self._relationships:
            if r.id == rel_id:
                return r
        return None

    def _require_table(self, table_id: str) -> Table:
        table = self._find_table(table_id)
        if table is None:
            raise InvalidReferenceError("table", table_id)
        return table

    @staticmethod
    def _require_field(table: Table, field_id: str) -> SchemaField:
        field = table.get_field(field_id)
        if field is None:
            raise InvalidReferenceError("field", field_id, table.id)
        return field

    def _require_relationship(self, rel_id: str) -> Relationship:
        rel = self._find_relationship(rel_id)
        if rel is None:
            raise InvalidReferenceError("relationship", rel_id)
        return rel

    def _guard_protected(self, table_id: str) -> None:
        if table_id in self._protected:
            raise ProtectedTableError(table_id)

    def _check_table_name(self, name: str) -> None:
        if any(t.name == name for t in self._tables):
            raise DuplicateTableNameError(name)

    @staticmethod
    def _check_primary_keys(table: Table) -> None:
        keys = table.primary_keys()
        if len(keys) > 1:
            raise DuplicatePrimaryKeyError(table.id, keys[0].id)

    @staticmethod
    def _check_single_primary_key(table: Table, field_id: str) -> None:
        for f in table.fields:
            if f.is_primary_key and f.id != field_id:
                raise DuplicatePrimaryKeyError(table.id, f.id)

    def _check_reference(self, field: SchemaField, extra_table: Optional[Table] = None) -> None:
        """A foreign-key reference must point at an existing field."""
        if field.references is None:
            return
        ref = field.references
        table = self._find_table(ref.table)
        if table is None and extra_table is not None and extra_table.id == ref.table:
            table = extra_table
        if table is None:
            raise InvalidReferenceError("table", ref.table)
        self._require_field(table, ref.field)

    def _clear_references(self, matches) -> None:
        """Drop foreign-key references (and their flag) that point at removed entities."""
        for table in self._tables:
            for i, field in enumerate(table.fields):
                if field.references is not None and matches(field.references):
                    table.fields[i] = field.model_copy(
                        update={"references": None, "is_foreign_key": False}
                    )
                    logger.debug(f"Cleared dangling reference on {table.name}.{field.name}")


__all__ = ["SchemaGraph", "PersistHook"]
