# ============================================================================
# SCHEMA + DESIGN ROUTES TESTS
# ============================================================================
# EPOCH: 1 - SCHEMA DESIGNER CORE
# STATUS: Tests - HTTP surface
# PURPOSE: Verify endpoints, camelCase bodies and error mapping
# CREATED: 14 SEP 2026
# ============================================================================
"""
Schema + Design Routes Tests

Uses FastAPI TestClient with a real SchemaGraph and mocked collaborators.

Run with:
    pytest tests/test_routes.py -v
"""

import httpx
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from fastapi import FastAPI
from fastapi.testclient import TestClient

from core.config.defaults import GenerationDefaults
from core.errors import CandidateSchemaError, GenerationError
from core.models.design import Design
from repositories.database import StorageError
from services.generation_client import GenerationClient
from services.generation_service import ScriptExporter
from services.relationship_resolver import RelationshipResolver
from services.schema_graph import SchemaGraph

from api.routes import router, set_services
from api.design_routes import router as design_router, set_design_service


# ============================================================================
# FIXTURES
# ============================================================================

def _make_test_app(assistant=None, design_service=None, protected=(), exporter=None):
    """Create a test app with a fresh graph behind the schema routes."""
    graph = SchemaGraph(protected_table_ids=protected)
    set_services(graph, RelationshipResolver(graph), exporter or ScriptExporter(), assistant)
    set_design_service(design_service)

    app = FastAPI()
    app.include_router(router, prefix="/api/v1")
    app.include_router(design_router, prefix="/api/v1")
    return TestClient(app), graph


def _table_body(table_id, name, pk_type="uuid"):
    return {
        "id": table_id,
        "name": name,
        "fields": [
            {"id": f"{table_id}-id", "name": "id", "type": pk_type, "isPrimaryKey": True,
             "isUnique": True, "isNullable": False},
        ],
    }


@pytest.fixture
def client():
    test_client, graph = _make_test_app()
    test_client.post("/api/v1/schema/tables", json=_table_body("users", "users"))
    test_client.post("/api/v1/schema/tables", json=_table_body("posts", "posts", "bigint"))
    return test_client


# ============================================================================
# SCHEMA STATE
# ============================================================================

class TestSchemaState:

    def test_get_schema(self, client):
        resp = client.get("/api/v1/schema")
        assert resp.status_code == 200
        data = resp.json()
        assert [t["name"] for t in data["schemaData"]["tables"]] == ["users", "posts"]
        assert data["selectedTable"] is None
        assert data["schemaData"]["tables"][0]["enableRLS"] is False

    def test_clear(self, client):
        resp = client.delete("/api/v1/schema")
        assert resp.json()["schemaData"]["tables"] == []

    def test_service_not_initialized(self):
        set_services(None, None, None)
        app = FastAPI()
        app.include_router(router, prefix="/api/v1")
        resp = TestClient(app).get("/api/v1/schema")
        assert resp.status_code == 503

    def test_import_external_format(self, client):
        resp = client.post("/api/v1/schema/import", json={
            "tables": [
                {"id": "a", "name": "a", "fields": [{"name": "id", "type": "uuid"}]},
                {"id": "b", "name": "b", "fields": [{"name": "a_id", "type": "uuid"}]},
            ],
            "relationships": [{"fromTable": "a", "fromField": "id", "toTable": "b", "toField": "a_id"}],
        })
        assert resp.status_code == 200
        data = resp.json()
        assert data["currentDesignName"] == "Imported Schema"
        assert len(data["schemaData"]["relationships"]) == 1

    def test_import_invalid(self, client):
        resp = client.post("/api/v1/schema/import", json={"tables": []})
        assert resp.status_code == 400
        assert len(client.get("/api/v1/schema").json()["schemaData"]["tables"]) == 2


# ============================================================================
# TABLES, FIELDS, POLICIES
# ============================================================================

class TestMutations:

    def test_add_table_generates_id(self, client):
        resp = client.post("/api/v1/schema/tables", json={"name": "tags"})
        assert resp.status_code == 201
        assert resp.json()["id"].startswith("table-")

    def test_duplicate_table_name(self, client):
        resp = client.post("/api/v1/schema/tables", json={"name": "users"})
        assert resp.status_code == 409

    def test_update_table(self, client):
        resp = client.patch("/api/v1/schema/tables/users", json={"enableRLS": True})
        assert resp.status_code == 200
        assert resp.json()["enableRLS"] is True

    def test_update_unknown_table(self, client):
        resp = client.patch("/api/v1/schema/tables/ghost", json={"name": "x"})
        assert resp.status_code == 404

    def test_protected_table(self):
        test_client, graph = _make_test_app(protected=("users",))
        test_client.post("/api/v1/schema/tables", json=_table_body("users", "users"))
        resp = test_client.delete("/api/v1/schema/tables/users")
        assert resp.status_code == 403

    def test_field_lifecycle(self, client):
        resp = client.post("/api/v1/schema/tables/users/fields", json={"name": "email", "type": "text"})
        assert resp.status_code == 201
        field_id = resp.json()["id"]

        resp = client.patch(f"/api/v1/schema/tables/users/fields/{field_id}", json={"isUnique": True})
        assert resp.json()["isUnique"] is True

        resp = client.delete(f"/api/v1/schema/tables/users/fields/{field_id}")
        assert resp.json() == {"deleted": field_id, "cascadedRelationships": []}

    def test_second_primary_key(self, client):
        resp = client.post(
            "/api/v1/schema/tables/users/fields",
            json={"name": "code", "type": "text", "isPrimaryKey": True},
        )
        assert resp.status_code == 400

    def test_inconsistent_foreign_key_flag(self, client):
        resp = client.post(
            "/api/v1/schema/tables/users/fields",
            json={"name": "x", "type": "uuid", "isForeignKey": True},
        )
        assert resp.status_code == 422

    def test_policy_lifecycle(self, client):
        resp = client.post(
            "/api/v1/schema/tables/users/policies",
            json={"name": "own", "operation": "SELECT", "using": "auth.uid() = id"},
        )
        assert resp.status_code == 201
        policy = resp.json()
        assert policy["command"] == "SELECT"

        resp = client.patch(f"/api/v1/schema/tables/users/policies/{policy['id']}", json={"role": "anon"})
        assert resp.json()["role"] == "anon"

        resp = client.delete(f"/api/v1/schema/tables/users/policies/{policy['id']}")
        assert resp.status_code == 200


# ============================================================================
# RELATIONSHIPS
# ============================================================================

class TestRelationships:

    def test_resolve_bridges_field(self, client):
        resp = client.post("/api/v1/schema/relationships/resolve", json={
            "sourceTableId": "users",
            "targetTableId": "posts",
            "sourceFieldId": "users-id",
        })
        assert resp.status_code == 201
        data = resp.json()
        assert data["fieldCreated"]["name"] == "id_ref"
        assert data["relationship"]["targetField"] == data["fieldCreated"]["id"]

    def test_resolve_duplicate(self, client):
        body = {"sourceTableId": "users", "targetTableId": "posts", "sourceFieldId": "users-id"}
        first = client.post("/api/v1/schema/relationships/resolve", json=body).json()
        resp = client.post("/api/v1/schema/relationships/resolve", json=body)
        assert resp.status_code == 409
        assert resp.json()["detail"]["existingId"] == first["relationship"]["id"]

    def test_resolve_strict(self, client):
        resp = client.post("/api/v1/schema/relationships/resolve", json={
            "sourceTableId": "users",
            "targetTableId": "posts",
            "sourceFieldId": "users-id",
            "targetFieldId": "posts-id",
            "strict": True,
        })
        assert resp.status_code == 400
        assert "can only connect to [uuid]" in resp.json()["detail"]

    def test_resolve_self_link(self, client):
        resp = client.post("/api/v1/schema/relationships/resolve", json={
            "sourceTableId": "users",
            "targetTableId": "users",
            "sourceFieldId": "users-id",
            "targetFieldId": "users-id",
        })
        assert resp.status_code == 400

    def test_update_and_delete_relationship(self, client):
        rel = client.post("/api/v1/schema/relationships/resolve", json={
            "sourceTableId": "users", "targetTableId": "posts", "sourceFieldId": "users-id",
        }).json()["relationship"]

        resp = client.patch(f"/api/v1/schema/relationships/{rel['id']}", json={"type": "one-to-one"})
        assert resp.json()["type"] == "one-to-one"

        resp = client.put("/api/v1/schema/selection", json={"relationshipId": rel["id"]})
        assert resp.json()["selectedRelationship"] == rel["id"]

        resp = client.delete("/api/v1/schema/tables/posts")
        assert resp.json()["cascadedRelationships"] == [rel["id"]]
        assert client.get("/api/v1/schema").json()["selectedRelationship"] is None


# ============================================================================
# EXPORT & ASSISTANT
# ============================================================================

class TestExportAndAssistant:

    def test_export_sql(self, client):
        resp = client.get("/api/v1/schema/export/sql")
        data = resp.json()
        assert data["source"] == "deterministic"
        assert "CREATE TABLE IF NOT EXISTS public.users" in data["script"]

    def test_export_prompt(self, client):
        resp = client.get("/api/v1/schema/export/prompt")
        assert "### posts" in resp.json()["prompt"]

    def test_assistant_not_configured(self, client):
        resp = client.post("/api/v1/schema/assistant", json={"instruction": "add tags"})
        assert resp.status_code == 503

    def test_assistant_errors(self):
        assistant = MagicMock(modify_schema=AsyncMock())
        test_client, graph = _make_test_app(assistant=assistant)

        assistant.modify_schema.side_effect = GenerationError("down")
        assert test_client.post("/api/v1/schema/assistant", json={"instruction": "x"}).status_code == 502

        assistant.modify_schema.side_effect = CandidateSchemaError("bad")
        assert test_client.post("/api/v1/schema/assistant", json={"instruction": "x"}).status_code == 422

    @patch("services.generation_client.httpx.AsyncClient")
    def test_export_sql_falls_back_on_timeout(self, mock_cls):
        mock_cls.return_value.__aenter__.return_value.post = AsyncMock(side_effect=httpx.ReadTimeout("slow"))
        client = GenerationClient(GenerationDefaults(api_url="https://llm.example/v1", api_key="sk-test"))
        test_client, graph = _make_test_app(exporter=ScriptExporter(client=client))
        test_client.post("/api/v1/schema/tables", json=_table_body("users", "users"))

        resp = test_client.get("/api/v1/schema/export/sql")

        assert resp.status_code == 200
        data = resp.json()
        assert data["source"] == "deterministic"
        assert "timeout" in data["fallbackReason"]
        assert "CREATE TABLE IF NOT EXISTS public.users" in data["script"]


# ============================================================================
# DESIGNS
# ============================================================================

class TestDesignRoutes:

    def test_storage_not_configured(self, client):
        assert client.get("/api/v1/designs").status_code == 503

    def test_save_and_load(self):
        svc = MagicMock()
        svc.save = AsyncMock(return_value=Design(id="d1", name="Blog"))
        svc.load = AsyncMock(return_value=Design(id="d1", name="Blog"))
        test_client, graph = _make_test_app(design_service=svc)

        resp = test_client.post("/api/v1/designs", json={"name": "Blog", "ownerId": "u1"})
        assert resp.status_code == 201
        assert resp.json()["id"] == "d1"
        assert svc.save.call_args[1]["owner_id"] == "u1"

        resp = test_client.post("/api/v1/designs/d1/load")
        assert resp.json()["schemaData"] == {"tables": [], "relationships": []}

    def test_storage_error(self):
        svc = MagicMock()
        svc.list = AsyncMock(side_effect=StorageError("db down"))
        test_client, graph = _make_test_app(design_service=svc)
        assert test_client.get("/api/v1/designs").status_code == 503

    def test_delete_missing(self):
        svc = MagicMock()
        svc.delete = AsyncMock(return_value=False)
        test_client, graph = _make_test_app(design_service=svc)
        assert test_client.delete("/api/v1/designs/ghost").status_code == 404
