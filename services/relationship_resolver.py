# ============================================================================
# RELATIONSHIP RESOLVER
# ============================================================================
# EPOCH: 1 - SCHEMA DESIGNER CORE
# STATUS: Service - Turn a drag-and-drop gesture into a consistent relationship
# PURPOSE: Pick, reuse or synthesize the target field, then link both ends
# CREATED: 14 SEP 2026
# ============================================================================
"""
RelationshipResolver

A drop names a source field and a target table, and optionally a target
field. The resolver decides which target field the relationship uses:

    target field supplied and type-compatible   -> use it
    otherwise, target has a same-named field:
        compatible                               -> reuse it
        incompatible                             -> synthesize <name>_ref
    otherwise                                    -> synthesize <name>

Synthesized fields copy the source type and are nullable, non-unique
foreign keys referencing the source field. The new field (if any) and the
relationship are committed together through SchemaGraph.atomic(), so a
rejected drop never leaves a stray field behind.

In STRICT mode a supplied but incompatible target field is rejected with
TypeIncompatibleError instead of being bridged.
"""

from dataclasses import dataclass
from typing import Optional

from core.contracts import RelationshipType, ResolutionMode
from core.errors import (
    DuplicateRelationshipError,
    FieldCreationFailedError,
    InvalidReferenceError,
    SelfLinkError,
    TypeIncompatibleError,
)
from core.logging import get_logger, log_checkpoint, log_context
from core.models.schema import FieldReference, Relationship, SchemaField, Table, new_id
from core.schema.type_compat import compatible, explain
from services.schema_graph import SchemaGraph

logger = get_logger(__name__)

BRIDGE_SUFFIX = "_ref"


@dataclass
class Resolution:
    """Outcome of a successful resolve()."""
    relationship: Relationship
    field_created: Optional[SchemaField] = None


class RelationshipResolver:
    """Resolves drag-and-drop link requests against a SchemaGraph."""

    def __init__(self, graph: SchemaGraph, mode: ResolutionMode = ResolutionMode.AUTO_BRIDGE):
        self.graph = graph
        self.mode = ResolutionMode(mode)

    def resolve(
        self,
        source_table_id: str,
        target_table_id: str,
        source_field_id: str,
        target_field_id: Optional[str] = None,
    ) -> Resolution:
        """
        Create the relationship implied by a drop.

        Args:
            source_table_id: Table the drag started from
            target_table_id: Table the drop landed on
            source_field_id: Field the drag started from
            target_field_id: Field the drop landed on, None for a table drop

        Returns:
            Resolution with the new relationship and the synthesized field, if any

        Raises:
            SelfLinkError: both ends are the same field
            InvalidReferenceError: a table or field does not exist
            TypeIncompatibleError: STRICT mode, supplied target field has an incompatible type
            DuplicateRelationshipError: the link already exists (no change made)
            FieldCreationFailedError: no usable target field could be produced
        """
        with log_context(table_id=source_table_id, operation="resolve_relationship"):
            if source_table_id == target_table_id and source_field_id == target_field_id:
                raise SelfLinkError(source_table_id, source_field_id)

            source_table = self._table(source_table_id)
            source_field = source_table.get_field(source_field_id)
            if source_field is None:
                raise InvalidReferenceError("field", source_field_id, source_table_id)

            target_table = self._table(target_table_id)
            target_field: Optional[SchemaField] = None
            if target_field_id is not None:
                target_field = target_table.get_field(target_field_id)
                if target_field is None:
                    raise InvalidReferenceError("field", target_field_id, target_table_id)

            created: Optional[SchemaField] = None
            if target_field is not None and not compatible(source_field.type, target_field.type):
                if self.mode == ResolutionMode.STRICT:
                    raise TypeIncompatibleError(
                        source_field.type,
                        target_field.type,
                        explain(source_field.type, target_field.type),
                    )
                logger.info(
                    f"Target {target_table.name}.{target_field.name} ({target_field.type}) "
                    f"cannot hold {source_field.type}; bridging"
                )
                target_field = None

            if target_field is None:
                target_field, created = self._pick_or_synthesize(
                    source_table, source_field, target_table
                )

            if target_field is None:
                raise FieldCreationFailedError(target_table_id)

            if created is None:
                existing = self.graph.find_link(
                    (source_table_id, source_field_id), (target_table_id, target_field.id)
                )
                if existing is not None:
                    logger.info(f"Relationship already exists: {existing.id}")
                    raise DuplicateRelationshipError(existing.id)

            relationship = Relationship(
                id=new_id("rel"),
                source=source_table_id,
                target=target_table_id,
                source_field=source_field_id,
                target_field=target_field.id,
                type=RelationshipType.ONE_TO_MANY,
            )

            with self.graph.atomic():
                if created is not None:
                    self.graph.add_field(target_table_id, created)
                self.graph.add_relationship(relationship)

            log_checkpoint("relationship_resolved", {
                "relationship_id": relationship.id,
                "source": f"{source_table.name}.{source_field.name}",
                "target": f"{target_table.name}.{target_field.name}",
                "field_created": created is not None,
            })
            return Resolution(relationship=relationship, field_created=created)

    # ================================================================
    # HELPERS
    # ================================================================

    def _table(self, table_id: str) -> Table:
        table = self.graph.get_table(table_id)
        if table is None:
            raise InvalidReferenceError("table", table_id)
        return table

    def _pick_or_synthesize(
        self,
        source_table: Table,
        source_field: SchemaField,
        target_table: Table,
    ):
        """
        Reuse the target's same-named field when compatible, else build a new one.

        Returns:
            (target field, created field or None)
        """
        same_name = target_table.field_named(source_field.name)
        is_source = (
            same_name is not None
            and target_table.id == source_table.id
            and same_name.id == source_field.id
        )
        if same_name is None:
            name = source_field.name
        elif not is_source and compatible(source_field.type, same_name.type):
            return same_name, None
        else:
            # Incompatible namesake, or a self-referential drop that found
            # the source field itself: bridge through <name>_ref.
            bridge_name = f"{source_field.name}{BRIDGE_SUFFIX}"
            bridge = target_table.field_named(bridge_name)
            if bridge is not None and compatible(source_field.type, bridge.type):
                return bridge, None
            name = self._free_name(target_table, bridge_name)

        created = SchemaField(
            id=new_id("field"),
            name=name,
            type=source_field.type,
            is_primary_key=False,
            is_foreign_key=True,
            is_unique=False,
            is_nullable=True,
            references=FieldReference(table=source_table.id, field=source_field.id),
        )
        logger.info(f"Synthesizing field {target_table.name}.{name} ({source_field.type})")
        return created, created

    @staticmethod
    def _free_name(table: Table, base: str) -> str:
        """base, or base_2, base_3... if a field already uses the name."""
        if table.field_named(base) is None:
            return base
        n = 2
        while table.field_named(f"{base}_{n}") is not None:
            n += 1
        return f"{base}_{n}"


__all__ = ["Resolution", "RelationshipResolver", "BRIDGE_SUFFIX"]
