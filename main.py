# ============================================================================
# SCHEMA DESIGNER - MAIN APPLICATION
# ============================================================================
# EPOCH: 1 - SCHEMA DESIGNER CORE
# STATUS: Core - FastAPI application entry point
# PURPOSE: Wire the schema graph, exporters and design storage into the API
# CREATED: 14 SEP 2026
# ============================================================================
"""
Schema Designer Main Application

FastAPI application that:
1. Restores the working schema from the local snapshot
2. Serves the schema mutation, export and assistant API
3. Serves saved designs when a database is configured

Usage:
    uvicorn main:app --host 0.0.0.0 --port 8000
"""

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from __version__ import __version__, BUILD_DATE, EPOCH
from core.config import get_defaults
from core.schema.sql_generator import SchemaToSQL
from repositories import (
    DesignRepository,
    SnapshotStore,
    close_pool,
    ensure_designs_table,
    init_pool,
)
from services import (
    DesignService,
    GenerationClient,
    RelationshipResolver,
    SchemaAssistant,
    SchemaGraph,
    ScriptExporter,
)
from api.routes import router, set_services
from api.design_routes import router as design_router, set_design_service

# Configure logging using our structured logging system
from core.logging import configure_logging, get_logger

configure_logging(
    level=os.environ.get("LOG_LEVEL", "INFO"),
    json_output=os.environ.get("LOG_FORMAT", "").lower() == "json",
)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Initializes services on startup, cleans up on shutdown.
    """
    defaults = get_defaults()
    logger.info(f"Starting Schema Designer v{__version__} (Epoch {EPOCH}, Build {BUILD_DATE})")

    # Restore the working schema
    store = None
    restored = None
    if defaults.storage.snapshot_enabled:
        store = SnapshotStore(defaults.storage.snapshot_path)
        restored = store.read()
        if restored is not None:
            logger.info(f"Restored snapshot with {len(restored.tables)} tables")

    graph = SchemaGraph(
        schema=restored,
        persist=store.write if store else None,
        protected_table_ids=defaults.canvas.protected_table_ids,
    )
    resolver = RelationshipResolver(graph)

    # Generation collaborator (optional)
    client = GenerationClient(defaults.generation)
    exporter = ScriptExporter(SchemaToSQL(defaults=defaults.emitter), client)
    assistant = SchemaAssistant(graph, client, defaults.canvas) if client.enabled else None
    if client.enabled:
        logger.info(f"Generation enabled (model={defaults.generation.model})")
    else:
        logger.info("Generation disabled, exports use the deterministic emitter")

    set_services(graph, resolver, exporter, assistant)

    # Design storage (optional)
    pool = None
    if defaults.storage.database_url:
        pool = await init_pool(
            min_size=defaults.storage.pool_min_size,
            max_size=defaults.storage.pool_max_size,
            connection_string=defaults.storage.database_url,
        )
        await ensure_designs_table(pool, defaults.storage.designs_schema)
        repo = DesignRepository(pool, defaults.storage.designs_schema)
        set_design_service(DesignService(graph, repo))
        logger.info("Design storage initialized")
    else:
        logger.info("No database configured, design storage disabled")

    yield

    # Shutdown
    logger.info("Shutting down Schema Designer...")
    if pool is not None:
        await close_pool()
    logger.info("Schema Designer stopped")


# Create FastAPI app
app = FastAPI(
    title="Schema Designer",
    description=f"Epoch {EPOCH} visual database schema designer",
    version=__version__,
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=os.environ.get("CORS_ORIGINS", "*").split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(router, prefix="/api/v1")
app.include_router(design_router, prefix="/api/v1")


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": "Schema Designer",
        "version": __version__,
        "epoch": EPOCH,
        "build_date": BUILD_DATE,
        "status": "running",
        "docs": "/docs",
    }


# ============================================================================
# MAIN ENTRY POINT
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    host = os.environ.get("HOST", "0.0.0.0")
    port = int(os.environ.get("PORT", "8000"))

    uvicorn.run(
        "main:app",
        host=host,
        port=port,
        reload=os.environ.get("RELOAD", "false").lower() == "true",
    )
