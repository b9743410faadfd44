# ============================================================================
# SCHEMA GRAPH TESTS
# ============================================================================
# EPOCH: 1 - SCHEMA DESIGNER CORE
# STATUS: Tests - Authoritative schema state and cascades
# PURPOSE: Verify mutations, cascades, rejections and batching
# CREATED: 14 SEP 2026
# ============================================================================
"""
Schema Graph Tests

Covers:
1. Table/field/policy/relationship CRUD
2. Cascading deletes (relationships, foreign-key references, selection)
3. Rejections leave the graph unchanged
4. Protected system tables
5. atomic() rollback and single persist per batch
6. Persistence hook failures never break a mutation

Run with:
    pytest tests/test_schema_graph.py -v
"""

import pytest
from unittest.mock import MagicMock

from core.contracts import PolicyCommand, ReferentialAction, RelationshipType
from core.errors import (
    CandidateSchemaError,
    DuplicateEntityError,
    DuplicatePrimaryKeyError,
    DuplicateRelationshipError,
    DuplicateTableNameError,
    InvalidReferenceError,
    ProtectedTableError,
)
from core.models.schema import FieldReference, Relationship, Schema, SchemaField, Table
from services.schema_graph import SchemaGraph


# ============================================================================
# FIXTURES
# ============================================================================

def _make_field(field_id, name, type_="uuid", pk=False, references=None, **kwargs):
    return SchemaField(
        id=field_id,
        name=name,
        type=type_,
        is_primary_key=pk,
        is_foreign_key=references is not None,
        is_unique=pk,
        is_nullable=not pk,
        references=references,
        **kwargs,
    )


def _make_users():
    return Table(id="users", name="users", fields=[
        _make_field("users-id", "id", pk=True),
        _make_field("users-email", "email", "text"),
    ])


def _make_posts():
    return Table(id="posts", name="posts", fields=[
        _make_field("posts-id", "id", pk=True),
        _make_field(
            "posts-author", "author_id",
            references=FieldReference(table="users", field="users-id"),
        ),
    ])


def _make_link(rel_id="rel-1"):
    return Relationship(
        id=rel_id,
        source="users",
        target="posts",
        source_field="users-id",
        target_field="posts-author",
    )


def _make_graph(persist=None, protected=()):
    graph = SchemaGraph(persist=persist, protected_table_ids=protected)
    graph.add_table(_make_users())
    graph.add_table(_make_posts())
    graph.add_relationship(_make_link())
    return graph


# ============================================================================
# READS
# ============================================================================

class TestReads:

    def test_snapshot_is_a_copy(self):
        graph = _make_graph()
        snap = graph.snapshot()
        snap.tables[0].name = "mutated"
        snap.relationships.clear()
        assert graph.get_table("users").name == "users"
        assert len(graph.relationships) == 1

    def test_get_table_returns_copy(self):
        graph = _make_graph()
        table = graph.get_table("users")
        table.fields.clear()
        assert len(graph.get_table("users").fields) == 2

    def test_find_link_either_direction(self):
        graph = _make_graph()
        assert graph.find_link(("users", "users-id"), ("posts", "posts-author")).id == "rel-1"
        assert graph.find_link(("posts", "posts-author"), ("users", "users-id")).id == "rel-1"
        assert graph.find_link(("users", "users-email"), ("posts", "posts-author")) is None

    def test_initial_schema(self):
        graph = SchemaGraph(Schema(tables=[_make_users()]), protected_table_ids=())
        assert [t.id for t in graph.tables] == ["users"]


# ============================================================================
# TABLES
# ============================================================================

class TestTables:

    def test_add_table_from_dict(self):
        graph = SchemaGraph(protected_table_ids=())
        table = graph.add_table({
            "id": "t1",
            "name": "profiles",
            "enableRLS": True,
            "fields": [{"id": "f1", "name": "id", "type": "uuid", "isPrimaryKey": True}],
        })
        assert table.enable_rls is True
        assert graph.get_field("t1", "f1").is_primary_key

    def test_duplicate_table_id_rejected(self):
        graph = _make_graph()
        with pytest.raises(DuplicateEntityError):
            graph.add_table(Table(id="users", name="other"))

    def test_duplicate_table_name_rejected(self):
        graph = _make_graph()
        with pytest.raises(DuplicateTableNameError):
            graph.add_table(Table(id="users-2", name="users"))
        assert len(graph.tables) == 2

    def test_two_primary_keys_rejected(self):
        graph = SchemaGraph(protected_table_ids=())
        with pytest.raises(DuplicatePrimaryKeyError):
            graph.add_table(Table(id="t", name="t", fields=[
                _make_field("a", "a", pk=True),
                _make_field("b", "b", pk=True),
            ]))
        assert graph.tables == []

    def test_reference_to_unknown_table_rejected(self):
        graph = SchemaGraph(protected_table_ids=())
        with pytest.raises(InvalidReferenceError):
            graph.add_table(Table(id="t", name="t", fields=[
                _make_field("a", "a", references=FieldReference(table="ghost", field="x")),
            ]))

    def test_self_reference_in_new_table_allowed(self):
        graph = SchemaGraph(protected_table_ids=())
        graph.add_table(Table(id="emp", name="employees", fields=[
            _make_field("emp-id", "id", pk=True),
            _make_field("emp-mgr", "manager_id", references=FieldReference(table="emp", field="emp-id")),
        ]))
        assert graph.get_field("emp", "emp-mgr").is_foreign_key

    def test_update_table(self):
        graph = _make_graph()
        updated = graph.update_table("users", {"name": "accounts", "enableRLS": True})
        assert updated.name == "accounts"
        assert updated.enable_rls is True
        assert len(updated.fields) == 2

    def test_update_table_name_clash(self):
        graph = _make_graph()
        with pytest.raises(DuplicateTableNameError):
            graph.update_table("users", {"name": "posts"})
        assert graph.get_table("users").name == "users"

    def test_update_table_keeps_own_name(self):
        graph = _make_graph()
        updated = graph.update_table("users", {"name": "users", "color": "#000000"})
        assert updated.color == "#000000"

    def test_update_rejects_unknown_attribute(self):
        graph = _make_graph()
        with pytest.raises(ValueError):
            graph.update_table("users", {"fields": []})

    def test_delete_table_cascades(self):
        graph = _make_graph()
        graph.select_table("users")
        graph.select_relationship("rel-1")

        removed = graph.delete_table("users")

        assert removed == ["rel-1"]
        assert graph.relationships == []
        assert [t.id for t in graph.tables] == ["posts"]
        author = graph.get_field("posts", "posts-author")
        assert author.references is None
        assert author.is_foreign_key is False
        assert graph.selected_table is None
        assert graph.selected_relationship is None

    def test_delete_unknown_table(self):
        graph = _make_graph()
        with pytest.raises(InvalidReferenceError):
            graph.delete_table("ghost")


# ============================================================================
# PROTECTED TABLES
# ============================================================================

class TestProtectedTables:

    def test_protected_table_cannot_be_deleted(self):
        graph = _make_graph(protected=("users",))
        with pytest.raises(ProtectedTableError):
            graph.delete_table("users")
        assert graph.get_table("users") is not None
        assert len(graph.relationships) == 1

    def test_protected_table_cannot_be_renamed(self):
        graph = _make_graph(protected=("users",))
        with pytest.raises(ProtectedTableError):
            graph.update_table("users", {"name": "renamed"})

    def test_default_protection_from_canvas_defaults(self):
        graph = SchemaGraph()
        assert graph.is_protected("auth-users-table")


# ============================================================================
# FIELDS
# ============================================================================

class TestFields:

    def test_add_field(self):
        graph = _make_graph()
        graph.add_field("users", _make_field("users-name", "name", "text"))
        assert [f.name for f in graph.get_table("users").fields] == ["id", "email", "name"]

    def test_add_field_duplicate_id(self):
        graph = _make_graph()
        with pytest.raises(DuplicateEntityError):
            graph.add_field("users", _make_field("users-email", "email2", "text"))

    def test_second_primary_key_rejected(self):
        graph = _make_graph()
        with pytest.raises(DuplicatePrimaryKeyError) as exc:
            graph.add_field("users", _make_field("users-pk2", "code", "text", pk=True))
        assert exc.value.existing_field_id == "users-id"

    def test_update_field_to_primary_key_rejected(self):
        graph = _make_graph()
        with pytest.raises(DuplicatePrimaryKeyError):
            graph.update_field("users", "users-email", {"isPrimaryKey": True})

    def test_update_field(self):
        graph = _make_graph()
        field = graph.update_field("users", "users-email", {"isUnique": True, "isNullable": False})
        assert field.is_unique and not field.is_nullable
        assert field.name == "email"

    def test_update_field_breaking_fk_pairing_rejected(self):
        graph = _make_graph()
        with pytest.raises(ValueError):
            graph.update_field("posts", "posts-author", {"isForeignKey": False})
        assert graph.get_field("posts", "posts-author").is_foreign_key

    def test_delete_field_cascades(self):
        graph = _make_graph()
        graph.select_relationship("rel-1")

        removed = graph.delete_field("users", "users-id")

        assert removed == ["rel-1"]
        assert graph.relationships == []
        assert graph.selected_relationship is None
        assert graph.get_field("posts", "posts-author").references is None

    def test_delete_unrelated_field_keeps_relationships(self):
        graph = _make_graph()
        assert graph.delete_field("users", "users-email") == []
        assert len(graph.relationships) == 1

    def test_delete_unknown_field(self):
        graph = _make_graph()
        with pytest.raises(InvalidReferenceError) as exc:
            graph.delete_field("users", "ghost")
        assert exc.value.parent_id == "users"


# ============================================================================
# RELATIONSHIPS
# ============================================================================

class TestRelationships:

    def test_duplicate_link_rejected(self):
        graph = _make_graph()
        with pytest.raises(DuplicateRelationshipError) as exc:
            graph.add_relationship(Relationship(
                id="rel-2",
                source="posts",
                target="users",
                source_field="posts-author",
                target_field="users-id",
            ))
        assert exc.value.existing_id == "rel-1"

    def test_duplicate_relationship_id_rejected(self):
        graph = _make_graph()
        with pytest.raises(DuplicateEntityError):
            graph.add_relationship(_make_link("rel-1"))

    def test_dangling_endpoint_rejected(self):
        graph = _make_graph()
        with pytest.raises(InvalidReferenceError):
            graph.add_relationship(Relationship(
                id="rel-x", source="users", target="posts",
                source_field="users-email", target_field="ghost",
            ))
        assert len(graph.relationships) == 1

    def test_update_relationship(self):
        graph = _make_graph()
        rel = graph.update_relationship("rel-1", {"type": "one-to-one", "onDelete": "SET NULL"})
        assert rel.type == RelationshipType.ONE_TO_ONE
        assert rel.on_delete == ReferentialAction.SET_NULL
        assert rel.source_field == "users-id"

    def test_endpoints_not_patchable(self):
        graph = _make_graph()
        with pytest.raises(ValueError):
            graph.update_relationship("rel-1", {"source": "posts"})

    def test_delete_relationship_clears_selection(self):
        graph = _make_graph()
        graph.select_relationship("rel-1")
        graph.delete_relationship("rel-1")
        assert graph.relationships == []
        assert graph.selected_relationship is None


# ============================================================================
# POLICIES
# ============================================================================

class TestPolicies:

    def test_policy_crud(self):
        graph = _make_graph()
        graph.add_policy("users", {"id": "p1", "name": "own rows", "operation": "SELECT", "using": "true"})
        policy = graph.get_table("users").policies[0]
        assert policy.command == PolicyCommand.SELECT

        updated = graph.update_policy("users", "p1", {"withCheck": "auth.uid() = id", "command": "UPDATE"})
        assert updated.check == "auth.uid() = id"
        assert updated.command == PolicyCommand.UPDATE

        graph.delete_policy("users", "p1")
        assert graph.get_table("users").policies == []

    def test_unknown_policy(self):
        graph = _make_graph()
        with pytest.raises(InvalidReferenceError):
            graph.delete_policy("users", "ghost")


# ============================================================================
# SELECTION & LOAD
# ============================================================================

class TestSelectionAndLoad:

    def test_select_unknown_table(self):
        graph = _make_graph()
        with pytest.raises(InvalidReferenceError):
            graph.select_table("ghost")

    def test_load_schema_replaces_state(self):
        graph = _make_graph()
        graph.select_table("users")
        graph.load_schema(Schema(tables=[Table(id="x", name="x")]), design_id="d1", design_name="Mine")
        assert [t.id for t in graph.tables] == ["x"]
        assert graph.relationships == []
        assert graph.selected_table is None
        assert graph.current_design_id == "d1"

    def test_load_unsound_schema_rejected(self):
        graph = _make_graph()
        bad = Schema(
            tables=[Table(id="a", name="dup"), Table(id="b", name="dup")],
        )
        with pytest.raises(CandidateSchemaError):
            graph.load_schema(bad)
        assert [t.id for t in graph.tables] == ["users", "posts"]

    def test_clear(self):
        graph = _make_graph()
        graph.set_current_design("d1", "Mine")
        graph.clear()
        assert graph.tables == []
        assert graph.relationships == []
        assert graph.current_design_id is None


# ============================================================================
# BATCHING & PERSISTENCE
# ============================================================================

class TestAtomicAndPersistence:

    def test_persist_called_per_mutation(self):
        persist = MagicMock()
        _make_graph(persist=persist)
        assert persist.call_count == 3
        last = persist.call_args[0][0]
        assert isinstance(last, Schema)
        assert len(last.relationships) == 1

    def test_atomic_persists_once(self):
        persist = MagicMock()
        graph = _make_graph(persist=persist)
        persist.reset_mock()

        with graph.atomic():
            graph.add_field("users", _make_field("users-a", "a", "text"))
            graph.add_field("users", _make_field("users-b", "b", "text"))

        assert persist.call_count == 1

    def test_atomic_rolls_back(self):
        persist = MagicMock()
        graph = _make_graph(persist=persist)
        persist.reset_mock()
        before = graph.snapshot()

        with pytest.raises(DuplicateRelationshipError):
            with graph.atomic():
                graph.add_field("posts", _make_field("posts-extra", "extra"))
                graph.add_relationship(_make_link("rel-2"))

        assert graph.snapshot() == before
        persist.assert_not_called()

    def test_persist_failure_does_not_break_mutation(self):
        persist = MagicMock(side_effect=OSError("disk full"))
        graph = SchemaGraph(persist=persist, protected_table_ids=())

        graph.add_table(_make_users())

        assert graph.get_table("users") is not None
        persist.assert_called_once()
