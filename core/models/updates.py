# ============================================================================
# PATCH MODELS
# ============================================================================
# EPOCH: 1 - SCHEMA DESIGNER CORE
# STATUS: Domain model - Partial updates for graph entities
# PURPOSE: Typed patches accepted by the schema graph update operations
# CREATED: 14 SEP 2026
# ============================================================================
"""
Patch models for SchemaGraph.update_* operations.

Only fields explicitly set on a patch are applied (exclude_unset). Ids and
child collections are not patchable: fields and policies have their own
operations, and relationship endpoints never change after creation.
"""

from typing import Any, Dict, Optional

from pydantic import AliasChoices, BaseModel, Field

from core.contracts import PolicyCommand, ReferentialAction, RelationshipType
from core.models.schema import CAMEL_CONFIG, FieldReference, Position


PATCH_CONFIG = {**CAMEL_CONFIG, "extra": "forbid"}


class _Patch(BaseModel):
    model_config = PATCH_CONFIG

    def changes(self) -> Dict[str, Any]:
        """Python-named attributes explicitly set on this patch."""
        return self.model_dump(exclude_unset=True)


class TableUpdate(_Patch):
    name: Optional[str] = Field(default=None, min_length=1)
    position: Optional[Position] = None
    color: Optional[str] = None
    enable_rls: Optional[bool] = Field(default=None, alias="enableRLS")


class FieldUpdate(_Patch):
    name: Optional[str] = Field(default=None, min_length=1)
    type: Optional[str] = Field(default=None, min_length=1)
    is_primary_key: Optional[bool] = None
    is_foreign_key: Optional[bool] = None
    is_unique: Optional[bool] = None
    is_nullable: Optional[bool] = None
    default_value: Optional[str] = None
    references: Optional[FieldReference] = None


class PolicyUpdate(_Patch):
    name: Optional[str] = Field(default=None, min_length=1)
    command: Optional[PolicyCommand] = Field(
        default=None,
        validation_alias=AliasChoices("command", "operation"),
    )
    role: Optional[str] = Field(default=None, min_length=1)
    using: Optional[str] = None
    check: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("check", "withCheck"),
    )


class RelationshipUpdate(_Patch):
    type: Optional[RelationshipType] = None
    on_delete: Optional[ReferentialAction] = None
    on_update: Optional[ReferentialAction] = None


__all__ = [
    "TableUpdate",
    "FieldUpdate",
    "PolicyUpdate",
    "RelationshipUpdate",
]
