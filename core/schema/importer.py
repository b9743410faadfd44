# ============================================================================
# SCHEMA IMPORTER
# ============================================================================
# EPOCH: 1 - SCHEMA DESIGNER CORE
# STATUS: Core - Untrusted schema documents to validated Schema models
# PURPOSE: Normalize generated candidates and convert external schema files
# CREATED: 14 SEP 2026
# ============================================================================
"""
Schema Importer

Schemas arrive from outside the graph in two shapes:

Internal format (what the designer itself saves):
    relationships: [{"source", "target", "sourceField", "targetField", ...}]

External format (exported by other diagram tools):
    relationships: [{"fromTable", "fromField", "toTable", "toField", ...}]
    where fromField/toField are field NAMES, not ids.

Both are normalized (missing canvas attributes and boolean flags filled
in), validated with pydantic, and checked for structural soundness before
anything is handed to the graph. Any failure raises CandidateSchemaError.
"""

import logging
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from core.config.defaults import CanvasDefaults
from core.contracts import ReferentialAction
from core.errors import CandidateSchemaError
from core.models.schema import Schema, new_id

logger = logging.getLogger(__name__)


def _require_arrays(data: Any) -> None:
    if not isinstance(data, dict):
        raise CandidateSchemaError("Schema document must be a JSON object")
    if not isinstance(data.get("tables"), list):
        raise CandidateSchemaError("Invalid schema: missing tables array")
    if not isinstance(data.get("relationships"), list):
        raise CandidateSchemaError("Invalid schema: missing relationships array")


def _objects(value: Any, label: str) -> List[Dict[str, Any]]:
    """A JSON array of objects; None reads as empty."""
    if value is None:
        return []
    if not isinstance(value, list):
        raise CandidateSchemaError(f"Invalid schema: {label} must be an array")
    for index, item in enumerate(value):
        if not isinstance(item, dict):
            raise CandidateSchemaError(f"Invalid schema: {label} #{index} is not an object")
    return value


def is_external_format(data: Dict[str, Any]) -> bool:
    """True when relationships use fromTable/toTable naming."""
    relationships = data.get("relationships") or []
    first = relationships[0] if relationships else None
    return isinstance(first, dict) and ("fromTable" in first or "toTable" in first)


# ============================================================================
# NORMALIZATION
# ============================================================================

def _normalize_field(raw: Dict[str, Any]) -> Dict[str, Any]:
    field = dict(raw)
    field.setdefault("id", new_id("field"))
    is_pk = bool(field.get("isPrimaryKey", False))
    field["isPrimaryKey"] = is_pk
    field["isUnique"] = bool(field.get("isUnique", False)) or is_pk
    if field.get("isNullable") is None:
        field["isNullable"] = not is_pk
    # A foreign-key flag without a reference (or the reverse) is repaired
    # from the reference, which is the only part the graph can check.
    field["isForeignKey"] = field.get("references") is not None
    return field


def normalize_candidate(data: Dict[str, Any], canvas: Optional[CanvasDefaults] = None) -> Dict[str, Any]:
    """
    Fill defaults on a candidate schema document (camelCase keys).

    Tables without canvas attributes get a staggered position, a palette
    color, RLS enabled and no policies. Primary keys default to unique and
    not nullable.
    """
    canvas = canvas or CanvasDefaults()
    _require_arrays(data)

    tables: List[Dict[str, Any]] = []
    for index, raw_table in enumerate(_objects(data["tables"], "tables")):
        label = f"table {raw_table.get('name') or index}"
        table = dict(raw_table)
        table.setdefault("id", new_id("table"))
        if not table.get("position"):
            x, y = canvas.position_for(index)
            table["position"] = {"x": x, "y": y}
        table["color"] = table.get("color") or canvas.color_for(index)
        if table.get("enableRLS") is None:
            table["enableRLS"] = True
        table["policies"] = [
            {**p, "id": p.get("id") or new_id("policy")}
            for p in _objects(table.get("policies"), f"{label} policies")
        ]
        table["fields"] = [_normalize_field(f) for f in _objects(table.get("fields"), f"{label} fields")]
        tables.append(table)

    relationships = []
    for raw_rel in _objects(data["relationships"], "relationships"):
        rel = dict(raw_rel)
        rel.setdefault("id", new_id("rel"))
        relationships.append(rel)

    return {"tables": tables, "relationships": relationships}


# ============================================================================
# EXTERNAL FORMAT
# ============================================================================

def _table_by_id(by_id: Dict[str, Dict[str, Any]], ref: Any) -> Optional[Dict[str, Any]]:
    return by_id.get(ref) if isinstance(ref, str) else None


def convert_external_schema(data: Dict[str, Any], canvas: Optional[CanvasDefaults] = None) -> Dict[str, Any]:
    """
    Convert the fromTable/toTable format into the internal document shape.

    Relationship fields are matched by name. The target field of each
    relationship becomes a foreign key referencing the source field.
    """
    canvas = canvas or CanvasDefaults()
    _require_arrays(data)

    tables = []
    for index, raw_table in enumerate(_objects(data["tables"], "tables")):
        label = f"table {raw_table.get('name') or index}"
        fields = []
        for raw_field in _objects(raw_table.get("fields"), f"{label} fields"):
            fields.append({
                "id": raw_field.get("id") or new_id("field"),
                "name": raw_field.get("name"),
                "type": raw_field.get("type"),
                "isPrimaryKey": bool(raw_field.get("isPrimaryKey", False)),
                "isForeignKey": False,
                "isUnique": bool(raw_field.get("isUnique", False)),
                "isNullable": raw_field.get("isNullable") is not False,
                "defaultValue": raw_field.get("defaultValue"),
            })
        x, y = canvas.position_for(index)
        tables.append({
            "id": raw_table.get("id") or new_id("table"),
            "name": raw_table.get("name"),
            "fields": fields,
            "position": raw_table.get("position") or {"x": x, "y": y},
            "color": canvas.color_for(index),
            "enableRLS": True,
            "policies": [],
        })

    by_id = {t["id"]: t for t in tables}
    relationships = []
    for raw_rel in _objects(data["relationships"], "relationships"):
        source = _table_by_id(by_id, raw_rel.get("fromTable"))
        target = _table_by_id(by_id, raw_rel.get("toTable"))
        if source is None or target is None:
            raise CandidateSchemaError(
                f"Relationship {raw_rel.get('id')} references an unknown table"
            )
        source_field = next((f for f in source["fields"] if f["name"] == raw_rel.get("fromField")), None)
        target_field = next((f for f in target["fields"] if f["name"] == raw_rel.get("toField")), None)
        if source_field is None or target_field is None:
            raise CandidateSchemaError(
                f"Relationship {raw_rel.get('id')} references an unknown field"
            )

        target_field["isForeignKey"] = True
        target_field["references"] = {"table": source["id"], "field": source_field["id"]}

        relationships.append({
            "id": raw_rel.get("id") or new_id("rel"),
            "source": source["id"],
            "target": target["id"],
            "sourceField": source_field["id"],
            "targetField": target_field["id"],
            "type": raw_rel.get("type") or "one-to-many",
            "onDelete": ReferentialAction.CASCADE.value,
            "onUpdate": ReferentialAction.CASCADE.value,
        })

    logger.info(f"Converted external schema: {len(tables)} tables, {len(relationships)} relationships")
    return {"tables": tables, "relationships": relationships}


# ============================================================================
# VALIDATION
# ============================================================================

def validate_schema_document(data: Dict[str, Any]) -> Schema:
    """Pydantic validation plus structural checks; raises CandidateSchemaError."""
    try:
        schema = Schema.model_validate(data)
    except ValidationError as e:
        raise CandidateSchemaError(f"Invalid schema document: {e.error_count()} errors: {e}") from e

    problems = schema.structural_problems()
    if problems:
        raise CandidateSchemaError("Invalid schema: " + "; ".join(problems))

    for table in schema.tables:
        if len(table.primary_keys()) > 1:
            logger.warning(f"Table {table.name} declares {len(table.primary_keys())} primary keys")
    return schema


def load_schema_data(data: Any, canvas: Optional[CanvasDefaults] = None) -> Schema:
    """
    Parse an imported schema document in either format.

    Args:
        data: Decoded JSON document
        canvas: Layout/palette defaults for tables lacking canvas attributes

    Returns:
        Validated Schema

    Raises:
        CandidateSchemaError: malformed or structurally unsound document
    """
    _require_arrays(data)
    if is_external_format(data):
        document = convert_external_schema(data, canvas)
    else:
        document = normalize_candidate(data, canvas)
    return validate_schema_document(document)


__all__ = [
    "is_external_format",
    "normalize_candidate",
    "convert_external_schema",
    "validate_schema_document",
    "load_schema_data",
]
