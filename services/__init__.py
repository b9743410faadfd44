# ============================================================================
# SERVICES MODULE
# ============================================================================
# EPOCH: 1 - SCHEMA DESIGNER CORE
# STATUS: Core - Business logic layer
# PURPOSE: Schema graph, relationship resolution, export and design services
# CREATED: 14 SEP 2026
# ============================================================================
"""
Services Module

Business logic for the schema designer. Every service works on an
explicitly passed SchemaGraph instance.

Usage:
    from services import SchemaGraph, RelationshipResolver

    graph = SchemaGraph()
    resolver = RelationshipResolver(graph)
    resolution = resolver.resolve("users", "posts", "users-id")
"""

from .schema_graph import SchemaGraph
from .relationship_resolver import RelationshipResolver, Resolution
from .generation_client import GenerationClient
from .generation_service import ScriptExporter, SchemaAssistant, ExportResult
from .design_service import DesignService

__all__ = [
    "SchemaGraph",
    "RelationshipResolver",
    "Resolution",
    "GenerationClient",
    "ScriptExporter",
    "SchemaAssistant",
    "ExportResult",
    "DesignService",
]
