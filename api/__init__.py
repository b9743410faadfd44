# ============================================================================
# API MODULE
# ============================================================================
# EPOCH: 1 - SCHEMA DESIGNER CORE
# STATUS: Core - FastAPI routes
# PURPOSE: HTTP API for the schema canvas and saved designs
# CREATED: 14 SEP 2026
# ============================================================================
"""
API Module

FastAPI routers for the schema designer.
"""

from .routes import router, set_services
from .design_routes import router as design_router, set_design_service
from .schemas import (
    ResolveRequest,
    ResolveResponse,
    SchemaStateResponse,
    SqlExportResponse,
)

__all__ = [
    "router",
    "set_services",
    "design_router",
    "set_design_service",
    "ResolveRequest",
    "ResolveResponse",
    "SchemaStateResponse",
    "SqlExportResponse",
]
