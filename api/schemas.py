# ============================================================================
# API SCHEMAS
# ============================================================================
# EPOCH: 1 - SCHEMA DESIGNER CORE
# STATUS: Core - Request/response models for the HTTP surface
# PURPOSE: Pydantic bodies for schema mutation, export and design endpoints
# CREATED: 14 SEP 2026
# ============================================================================
"""
API Schemas

Request and response bodies. JSON is camelCase, matching the browser
client and the stored schema documents.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from core.models.design import Viewport
from core.models.schema import CAMEL_CONFIG, Policy, Relationship, Schema, SchemaField, Table, new_id


# ============================================================================
# CREATE BODIES (id optional, generated when absent)
# ============================================================================

class TableCreate(Table):
    id: str = Field(default_factory=lambda: new_id("table"), min_length=1)


class FieldCreate(SchemaField):
    id: str = Field(default_factory=lambda: new_id("field"), min_length=1)


class PolicyCreate(Policy):
    id: str = Field(default_factory=lambda: new_id("policy"), min_length=1)


# ============================================================================
# SCHEMA GRAPH
# ============================================================================

class SchemaStateResponse(BaseModel):
    """The working schema plus selection and current-design state."""
    schema_data: Schema
    selected_table: Optional[str] = None
    selected_relationship: Optional[str] = None
    current_design_id: Optional[str] = None
    current_design_name: Optional[str] = None

    model_config = CAMEL_CONFIG


class SelectionRequest(BaseModel):
    table_id: Optional[str] = None
    relationship_id: Optional[str] = None

    model_config = CAMEL_CONFIG


class DeleteResponse(BaseModel):
    deleted: str
    cascaded_relationships: List[str] = Field(default_factory=list)

    model_config = CAMEL_CONFIG


# ============================================================================
# RELATIONSHIP RESOLUTION
# ============================================================================

class ResolveRequest(BaseModel):
    """A drop gesture: source field onto a target table or field."""
    source_table_id: str
    target_table_id: str
    source_field_id: str
    target_field_id: Optional[str] = None
    strict: bool = False

    model_config = CAMEL_CONFIG


class ResolveResponse(BaseModel):
    relationship: Relationship
    field_created: Optional[SchemaField] = None

    model_config = CAMEL_CONFIG


# ============================================================================
# EXPORT & GENERATION
# ============================================================================

class SqlExportResponse(BaseModel):
    script: str
    source: str
    fallback_reason: Optional[str] = None

    model_config = CAMEL_CONFIG


class PromptExportResponse(BaseModel):
    prompt: str


class AssistantRequest(BaseModel):
    instruction: str = Field(..., min_length=1, max_length=4000)


# ============================================================================
# DESIGNS
# ============================================================================

class SaveDesignRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    viewport: Optional[Viewport] = None
    owner_id: Optional[str] = None
    as_new: bool = False

    model_config = CAMEL_CONFIG


def dump(model: BaseModel) -> Dict[str, Any]:
    """JSON-ready camelCase dict."""
    return model.model_dump(mode="json", by_alias=True)


__all__ = [
    "TableCreate",
    "FieldCreate",
    "PolicyCreate",
    "SchemaStateResponse",
    "SelectionRequest",
    "DeleteResponse",
    "ResolveRequest",
    "ResolveResponse",
    "SqlExportResponse",
    "PromptExportResponse",
    "AssistantRequest",
    "SaveDesignRequest",
    "dump",
]
