# ============================================================================
# SCHEMA ROUTES
# ============================================================================
# EPOCH: 1 - SCHEMA DESIGNER CORE
# STATUS: Core - Schema graph mutation HTTP endpoints
# PURPOSE: HTTP API the canvas uses to edit, link, export and generate schemas
# CREATED: 14 SEP 2026
# ============================================================================
"""
Schema Routes

Endpoints:
- GET    /api/v1/schema                                  - Working schema + selection
- DELETE /api/v1/schema                                  - Clear the canvas
- POST   /api/v1/schema/import                           - Load a schema document
- POST   /api/v1/schema/tables                           - Add table
- PATCH  /api/v1/schema/tables/{table_id}                - Update table
- DELETE /api/v1/schema/tables/{table_id}                - Delete table (cascades)
- POST   /api/v1/schema/tables/{table_id}/fields         - Add field
- PATCH  /api/v1/schema/tables/{table_id}/fields/{id}    - Update field
- DELETE /api/v1/schema/tables/{table_id}/fields/{id}    - Delete field (cascades)
- POST   /api/v1/schema/tables/{table_id}/policies       - Add policy
- PATCH  /api/v1/schema/tables/{table_id}/policies/{id}  - Update policy
- DELETE /api/v1/schema/tables/{table_id}/policies/{id}  - Delete policy
- POST   /api/v1/schema/relationships/resolve            - Resolve a drop into a relationship
- PATCH  /api/v1/schema/relationships/{rel_id}           - Update relationship
- DELETE /api/v1/schema/relationships/{rel_id}           - Delete relationship
- PUT    /api/v1/schema/selection                        - Select table/relationship
- GET    /api/v1/schema/export/sql                       - Migration script
- GET    /api/v1/schema/export/prompt                    - Natural-language description
- POST   /api/v1/schema/assistant                        - Natural-language edit

Relationships are only ever created through /relationships/resolve.
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Body, HTTPException
from pydantic import ValidationError

from core.contracts import ResolutionMode
from core.errors import (
    CandidateSchemaError,
    DuplicateEntityError,
    DuplicateRelationshipError,
    DuplicateTableNameError,
    GenerationError,
    InvalidReferenceError,
    ProtectedTableError,
    SchemaError,
)
from core.models.schema import Policy, SchemaField, Table
from core.models.updates import FieldUpdate, PolicyUpdate, RelationshipUpdate, TableUpdate
from core.schema.importer import load_schema_data
from services.relationship_resolver import RelationshipResolver

from .schemas import (
    AssistantRequest,
    DeleteResponse,
    FieldCreate,
    PolicyCreate,
    PromptExportResponse,
    ResolveRequest,
    ResolveResponse,
    SchemaStateResponse,
    SelectionRequest,
    SqlExportResponse,
    TableCreate,
    dump,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/schema", tags=["schema"])


# ============================================================================
# DEPENDENCY INJECTION
# ============================================================================

_graph = None
_resolver = None
_exporter = None
_assistant = None


def set_services(graph, resolver, exporter, assistant=None):
    """Called by main.py at startup to inject the schema services."""
    global _graph, _resolver, _exporter, _assistant
    _graph = graph
    _resolver = resolver
    _exporter = exporter
    _assistant = assistant


def _get_graph():
    if _graph is None:
        raise HTTPException(503, "Schema graph not initialized")
    return _graph


def _get_resolver(strict: bool = False):
    if _resolver is None:
        raise HTTPException(503, "Relationship resolver not initialized")
    if strict and _resolver.mode != ResolutionMode.STRICT:
        return RelationshipResolver(_resolver.graph, ResolutionMode.STRICT)
    return _resolver


def _get_exporter():
    if _exporter is None:
        raise HTTPException(503, "Exporter not initialized")
    return _exporter


def _get_assistant():
    if _assistant is None:
        raise HTTPException(503, "Schema assistant not configured (set GENERATION_API_KEY)")
    return _assistant


# ============================================================================
# ERROR MAPPING
# ============================================================================

def _http_error(e: Exception) -> HTTPException:
    """Map a graph/resolver rejection onto an HTTP error."""
    if isinstance(e, InvalidReferenceError):
        return HTTPException(404, str(e))
    if isinstance(e, DuplicateRelationshipError):
        return HTTPException(409, {"message": str(e), "existingId": e.existing_id})
    if isinstance(e, (DuplicateTableNameError, DuplicateEntityError)):
        return HTTPException(409, str(e))
    if isinstance(e, ProtectedTableError):
        return HTTPException(403, str(e))
    if isinstance(e, ValidationError):
        return HTTPException(422, e.errors(include_url=False))
    return HTTPException(400, str(e))


def _state() -> Dict[str, Any]:
    graph = _get_graph()
    return dump(SchemaStateResponse(
        schema_data=graph.snapshot(),
        selected_table=graph.selected_table,
        selected_relationship=graph.selected_relationship,
        current_design_id=graph.current_design_id,
        current_design_name=graph.current_design_name,
    ))


# ============================================================================
# WHOLE SCHEMA
# ============================================================================

@router.get("")
async def get_schema():
    """Working schema, selection and current design."""
    return _state()


@router.delete("")
async def clear_schema():
    _get_graph().clear()
    return _state()


@router.post("/import")
async def import_schema(document: Dict[str, Any] = Body(...)):
    """
    Replace the working schema with an uploaded document.

    Accepts the designer's own format and the fromTable/toTable format.
    """
    graph = _get_graph()
    try:
        schema = load_schema_data(document)
        graph.load_schema(schema, design_id=None, design_name="Imported Schema")
    except CandidateSchemaError as e:
        raise HTTPException(400, str(e))
    return _state()


# ============================================================================
# TABLES
# ============================================================================

@router.post("/tables", status_code=201)
async def add_table(request: TableCreate):
    graph = _get_graph()
    try:
        table = graph.add_table(Table.model_validate(request.model_dump()))
    except (SchemaError, ValidationError) as e:
        raise _http_error(e)
    return dump(table)


@router.patch("/tables/{table_id}")
async def update_table(table_id: str, patch: TableUpdate):
    graph = _get_graph()
    try:
        table = graph.update_table(table_id, patch)
    except (SchemaError, ValidationError) as e:
        raise _http_error(e)
    return dump(table)


@router.delete("/tables/{table_id}")
async def delete_table(table_id: str):
    graph = _get_graph()
    try:
        removed = graph.delete_table(table_id)
    except SchemaError as e:
        raise _http_error(e)
    return dump(DeleteResponse(deleted=table_id, cascaded_relationships=removed))


# ============================================================================
# FIELDS
# ============================================================================

@router.post("/tables/{table_id}/fields", status_code=201)
async def add_field(table_id: str, request: FieldCreate):
    graph = _get_graph()
    try:
        field = graph.add_field(table_id, SchemaField.model_validate(request.model_dump()))
    except (SchemaError, ValidationError) as e:
        raise _http_error(e)
    return dump(field)


@router.patch("/tables/{table_id}/fields/{field_id}")
async def update_field(table_id: str, field_id: str, patch: FieldUpdate):
    graph = _get_graph()
    try:
        field = graph.update_field(table_id, field_id, patch)
    except (SchemaError, ValidationError) as e:
        raise _http_error(e)
    return dump(field)


@router.delete("/tables/{table_id}/fields/{field_id}")
async def delete_field(table_id: str, field_id: str):
    graph = _get_graph()
    try:
        removed = graph.delete_field(table_id, field_id)
    except SchemaError as e:
        raise _http_error(e)
    return dump(DeleteResponse(deleted=field_id, cascaded_relationships=removed))


# ============================================================================
# POLICIES
# ============================================================================

@router.post("/tables/{table_id}/policies", status_code=201)
async def add_policy(table_id: str, request: PolicyCreate):
    graph = _get_graph()
    try:
        policy = graph.add_policy(table_id, Policy.model_validate(request.model_dump()))
    except (SchemaError, ValidationError) as e:
        raise _http_error(e)
    return dump(policy)


@router.patch("/tables/{table_id}/policies/{policy_id}")
async def update_policy(table_id: str, policy_id: str, patch: PolicyUpdate):
    graph = _get_graph()
    try:
        policy = graph.update_policy(table_id, policy_id, patch)
    except (SchemaError, ValidationError) as e:
        raise _http_error(e)
    return dump(policy)


@router.delete("/tables/{table_id}/policies/{policy_id}")
async def delete_policy(table_id: str, policy_id: str):
    graph = _get_graph()
    try:
        graph.delete_policy(table_id, policy_id)
    except SchemaError as e:
        raise _http_error(e)
    return dump(DeleteResponse(deleted=policy_id))


# ============================================================================
# RELATIONSHIPS
# ============================================================================

@router.post("/relationships/resolve", status_code=201)
async def resolve_relationship(request: ResolveRequest):
    """
    Turn a drop into a relationship, synthesizing a target field if needed.

    409 when the link already exists (nothing changed).
    """
    resolver = _get_resolver(strict=request.strict)
    try:
        resolution = resolver.resolve(
            request.source_table_id,
            request.target_table_id,
            request.source_field_id,
            request.target_field_id,
        )
    except SchemaError as e:
        raise _http_error(e)
    return dump(ResolveResponse(
        relationship=resolution.relationship,
        field_created=resolution.field_created,
    ))


@router.patch("/relationships/{rel_id}")
async def update_relationship(rel_id: str, patch: RelationshipUpdate):
    graph = _get_graph()
    try:
        rel = graph.update_relationship(rel_id, patch)
    except (SchemaError, ValidationError) as e:
        raise _http_error(e)
    return dump(rel)


@router.delete("/relationships/{rel_id}")
async def delete_relationship(rel_id: str):
    graph = _get_graph()
    try:
        graph.delete_relationship(rel_id)
    except SchemaError as e:
        raise _http_error(e)
    return dump(DeleteResponse(deleted=rel_id))


@router.put("/selection")
async def select(request: SelectionRequest):
    graph = _get_graph()
    try:
        graph.select_table(request.table_id)
        graph.select_relationship(request.relationship_id)
    except SchemaError as e:
        raise _http_error(e)
    return _state()


# ============================================================================
# EXPORT & GENERATION
# ============================================================================

@router.get("/export/sql")
async def export_sql(use_generation: bool = True):
    """Migration script; falls back to the deterministic emitter on any generation failure."""
    result = await _get_exporter().export_sql(_get_graph().snapshot(), use_generation=use_generation)
    return dump(SqlExportResponse(
        script=result.script,
        source=result.source,
        fallback_reason=result.fallback_reason,
    ))


@router.get("/export/prompt")
async def export_prompt():
    return dump(PromptExportResponse(prompt=_get_exporter().export_prompt(_get_graph().snapshot())))


@router.post("/assistant")
async def modify_with_assistant(request: AssistantRequest):
    """Apply a natural-language edit; the schema is unchanged on any failure."""
    assistant = _get_assistant()
    try:
        await assistant.modify_schema(request.instruction)
    except GenerationError as e:
        logger.error(f"Schema assistant unavailable: {e}")
        raise HTTPException(502, str(e))
    except CandidateSchemaError as e:
        logger.warning(f"Schema assistant candidate rejected: {e}")
        raise HTTPException(422, str(e))
    return _state()
