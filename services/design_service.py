# ============================================================================
# DESIGN SERVICE
# ============================================================================
# EPOCH: 1 - SCHEMA DESIGNER CORE
# STATUS: Service - Save/load designs between the graph and the store
# PURPOSE: Coordinate SchemaGraph state with DesignRepository persistence
# CREATED: 14 SEP 2026
# ============================================================================
"""
DesignService

Saving writes the graph's snapshot to the designs table: an update when
the graph already tracks a saved design, an insert otherwise. Loading
replaces the graph with a stored design. Storage is always touched before
the graph, so a StorageError leaves the graph exactly as it was.
"""

from typing import List, Optional

from core.errors import InvalidReferenceError
from core.logging import get_logger, log_context
from core.models.design import Design, DesignSummary, Viewport
from repositories.design_repo import DesignRepository
from services.schema_graph import SchemaGraph

logger = get_logger(__name__)


class DesignService:
    """Save, load, list and delete designs for one SchemaGraph."""

    def __init__(self, graph: SchemaGraph, repo: DesignRepository):
        self.graph = graph
        self.repo = repo

    async def save(
        self,
        name: Optional[str] = None,
        description: Optional[str] = None,
        viewport: Optional[Viewport] = None,
        owner_id: Optional[str] = None,
        as_new: bool = False,
    ) -> Design:
        """
        Persist the current graph.

        Args:
            name: Design name (required for a new design)
            description: Optional description
            viewport: Canvas viewport to store alongside the schema
            owner_id: Owner for new designs
            as_new: Insert a new design even if one is loaded ("save as")

        Raises:
            ValueError: new design without a name
            StorageError: the store rejected the write (graph unchanged)
        """
        snapshot = self.graph.snapshot()
        current_id = self.graph.current_design_id

        with log_context(design_id=current_id, operation="save_design"):
            design = None
            if current_id and not as_new:
                design = await self.repo.update(current_id, snapshot, name, description, viewport)
                if design is None:
                    logger.warning(f"Current design {current_id} no longer exists; saving as new")

            if design is None:
                name = name or self.graph.current_design_name
                if not name:
                    raise ValueError("A name is required to save a new design")
                design = await self.repo.create(name, snapshot, description, viewport, owner_id)

        self.graph.set_current_design(design.id, design.name)
        return design

    async def load(self, design_id: str) -> Design:
        """
        Replace the graph with a stored design.

        Raises:
            InvalidReferenceError: no design with that id
            CandidateSchemaError: stored schema is structurally unsound
            StorageError: the store could not be read
        """
        design = await self.repo.get(design_id)
        if design is None:
            raise InvalidReferenceError("design", design_id)
        self.graph.load_schema(design.schema_data, design_id=design.id, design_name=design.name)
        return design

    async def list(self, owner_id: Optional[str] = None) -> List[DesignSummary]:
        return await self.repo.list(owner_id)

    async def delete(self, design_id: str) -> bool:
        """Delete a stored design; the graph keeps its contents but forgets the design id."""
        deleted = await self.repo.delete(design_id)
        if deleted and self.graph.current_design_id == design_id:
            self.graph.set_current_design(None, None)
        return deleted


__all__ = ["DesignService"]
