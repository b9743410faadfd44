# ============================================================================
# SNAPSHOT STORE TESTS
# ============================================================================
# EPOCH: 1 - SCHEMA DESIGNER CORE
# STATUS: Tests - Local autosave
# PURPOSE: Verify snapshot write/read and graph restore
# CREATED: 14 SEP 2026
# ============================================================================
"""
Snapshot Store Tests

Run with:
    pytest tests/test_snapshot_store.py -v
"""

import json

from core.models.schema import Relationship, Schema, SchemaField, Table
from repositories.snapshot_store import SnapshotStore
from services.schema_graph import SchemaGraph


def _make_schema():
    return Schema(
        tables=[
            Table(id="a", name="a", enable_rls=True, fields=[SchemaField(id="a1", name="id", type="uuid")]),
            Table(id="b", name="b", fields=[SchemaField(id="b1", name="a_id", type="uuid")]),
        ],
        relationships=[
            Relationship(id="r1", source="a", target="b", source_field="a1", target_field="b1"),
        ],
    )


class TestSnapshotStore:

    def test_missing_file(self, tmp_path):
        assert SnapshotStore(tmp_path / "none.json").read() is None

    def test_write_then_read(self, tmp_path):
        store = SnapshotStore(tmp_path / "nested" / "snapshot.json")
        store.write(_make_schema())
        assert store.read() == _make_schema()

    def test_file_is_camel_case(self, tmp_path):
        path = tmp_path / "snapshot.json"
        SnapshotStore(path).write(_make_schema())
        data = json.loads(path.read_text())
        assert data["tables"][0]["enableRLS"] is True
        assert data["relationships"][0]["sourceField"] == "a1"
        assert not path.with_suffix(".json.tmp").exists()

    def test_corrupt_file_ignored(self, tmp_path):
        path = tmp_path / "snapshot.json"
        path.write_text("{not json")
        assert SnapshotStore(path).read() is None

    def test_undecodable_file_ignored(self, tmp_path):
        path = tmp_path / "snapshot.json"
        path.write_bytes(b"\xff\xfe\x00garbage")
        assert SnapshotStore(path).read() is None

    def test_file_matches_model_json(self, tmp_path):
        path = tmp_path / "snapshot.json"
        SnapshotStore(path).write(_make_schema())
        text = path.read_text()
        assert text.startswith("{\n  \"tables\"")
        assert Schema.model_validate_json(text) == _make_schema()

    def test_inconsistent_file_ignored(self, tmp_path):
        path = tmp_path / "snapshot.json"
        data = _make_schema().model_dump(mode="json", by_alias=True)
        data["relationships"][0]["targetField"] = "ghost"
        path.write_text(json.dumps(data))
        assert SnapshotStore(path).read() is None

    def test_clear(self, tmp_path):
        store = SnapshotStore(tmp_path / "snapshot.json")
        store.write(_make_schema())
        store.clear()
        assert store.read() is None
        store.clear()

    def test_graph_autosave_round_trip(self, tmp_path):
        store = SnapshotStore(tmp_path / "snapshot.json")
        graph = SchemaGraph(persist=store.write, protected_table_ids=())
        graph.load_schema(_make_schema())
        graph.delete_table("a")

        restored = SchemaGraph(store.read(), protected_table_ids=())
        assert [t.id for t in restored.tables] == ["b"]
        assert restored.relationships == []
