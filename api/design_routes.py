# ============================================================================
# DESIGN ROUTES
# ============================================================================
# EPOCH: 1 - SCHEMA DESIGNER CORE
# STATUS: Core - Saved design HTTP endpoints
# PURPOSE: Save, list, load and delete designs
# CREATED: 14 SEP 2026
# ============================================================================
"""
Design Routes

Endpoints:
- POST   /api/v1/designs                    - Save working schema (update or insert)
- GET    /api/v1/designs                    - List designs, newest first
- POST   /api/v1/designs/{design_id}/load   - Replace working schema with a design
- DELETE /api/v1/designs/{design_id}        - Delete a design

Storage failures return 503 and leave the working schema unchanged.
"""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException

from core.errors import CandidateSchemaError, InvalidReferenceError
from repositories.database import StorageError

from .schemas import SaveDesignRequest, dump

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/designs", tags=["designs"])


# ============================================================================
# DEPENDENCY INJECTION
# ============================================================================

_design_service = None


def set_design_service(design_service):
    """Called by main.py at startup when a database is configured."""
    global _design_service
    _design_service = design_service


def _get_design_service():
    if _design_service is None:
        raise HTTPException(503, "Design storage not configured (set DESIGNER_DB_URL)")
    return _design_service


def _storage_unavailable(e: StorageError, action: str) -> HTTPException:
    logger.error(f"Design {action} failed: {e}")
    return HTTPException(503, str(e))


# ============================================================================
# ENDPOINTS
# ============================================================================

@router.post("", status_code=201)
async def save_design(request: SaveDesignRequest):
    svc = _get_design_service()
    try:
        design = await svc.save(
            name=request.name,
            description=request.description,
            viewport=request.viewport,
            owner_id=request.owner_id,
            as_new=request.as_new,
        )
    except ValueError as e:
        raise HTTPException(400, str(e))
    except StorageError as e:
        raise _storage_unavailable(e, "save")
    return dump(design)


@router.get("")
async def list_designs(owner_id: Optional[str] = None):
    svc = _get_design_service()
    try:
        designs = await svc.list(owner_id)
    except StorageError as e:
        raise _storage_unavailable(e, "list")
    return [dump(d) for d in designs]


@router.post("/{design_id}/load")
async def load_design(design_id: str):
    svc = _get_design_service()
    try:
        design = await svc.load(design_id)
    except InvalidReferenceError as e:
        raise HTTPException(404, str(e))
    except CandidateSchemaError as e:
        raise HTTPException(422, str(e))
    except StorageError as e:
        raise _storage_unavailable(e, "load")
    return dump(design)


@router.delete("/{design_id}")
async def delete_design(design_id: str):
    svc = _get_design_service()
    try:
        deleted = await svc.delete(design_id)
    except StorageError as e:
        raise _storage_unavailable(e, "delete")
    if not deleted:
        raise HTTPException(404, f"Design not found: {design_id}")
    return {"deleted": design_id}
