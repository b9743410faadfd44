# ============================================================================
# SCHEMA MODULE
# ============================================================================
# EPOCH: 1 - SCHEMA DESIGNER CORE
# STATUS: Core - Type oracle, emitters and importer
# PURPOSE: Pure functions over Schema models
# CREATED: 14 SEP 2026
# ============================================================================

from core.schema.type_compat import compatible, explain, normalize_type, type_family
from core.schema.sql_generator import SchemaToSQL, emit
from core.schema.prompt_generator import generate_prompt, describe_schema
from core.schema.importer import load_schema_data, normalize_candidate, validate_schema_document

__all__ = [
    # Type compatibility
    "compatible",
    "explain",
    "normalize_type",
    "type_family",
    # Emitters
    "SchemaToSQL",
    "emit",
    "generate_prompt",
    "describe_schema",
    # Importer
    "load_schema_data",
    "normalize_candidate",
    "validate_schema_document",
]
