# ============================================================================
# SCHEMA PROMPT GENERATOR
# ============================================================================
# EPOCH: 1 - SCHEMA DESIGNER CORE
# STATUS: Core - Natural-language rendering of a schema
# PURPOSE: Text descriptions for prompt export and the generation collaborator
# CREATED: 14 SEP 2026
# ============================================================================
"""
Natural-language schema rendering.

generate_prompt() is the user-facing "export as prompt" text that can be
pasted into an app builder. describe_schema() is the exhaustive listing
sent to the generation collaborator alongside SCRIPT_SYSTEM_PROMPT.

Both are deterministic and, like the SQL emitter, skip relationships whose
endpoints do not resolve.
"""

import json
from typing import List, Optional, Tuple

from core.config.defaults import CanvasDefaults
from core.models.schema import Relationship, Schema, SchemaField, Table

EMPTY_SCHEMA_PROMPT = "No schema defined"

PROMPT_REQUIREMENTS = (
    "Use public schema prefix for all tables",
    "Foreign keys must use ON DELETE CASCADE",
    "UUID primary keys should use gen_random_uuid()",
    "Include created_at and updated_at timestamps",
    "Enable RLS where specified and create policies",
    "Add indexes for all foreign keys",
    "Follow Supabase naming conventions",
)


def _resolve(schema: Schema, rel: Relationship) -> Optional[Tuple[Table, SchemaField, Table, SchemaField]]:
    src = schema.get_table(rel.source)
    tgt = schema.get_table(rel.target)
    if src is None or tgt is None:
        return None
    src_field = src.get_field(rel.source_field)
    tgt_field = tgt.get_field(rel.target_field)
    if src_field is None or tgt_field is None:
        return None
    return src, src_field, tgt, tgt_field


def _yes_no(flag: bool) -> str:
    return "YES" if flag else "NO"


# ============================================================================
# PROMPT EXPORT
# ============================================================================

def _field_attributes(field: SchemaField) -> List[str]:
    attributes = []
    if field.is_primary_key:
        attributes.append("primary key")
    if field.is_foreign_key:
        attributes.append("foreign key")
    if field.is_unique and not field.is_primary_key:
        attributes.append("unique")
    if not field.is_nullable:
        attributes.append("required")
    if field.default_value:
        attributes.append(f"default: {field.default_value}")
    return attributes


def generate_prompt(schema: Schema) -> str:
    """Structured description of the schema for app-builder tools."""
    if not schema.tables:
        return EMPTY_SCHEMA_PROMPT

    lines = ["Create a Supabase database with the following schema:", "", "## Tables", ""]

    for table in schema.tables:
        lines.append(f"### {table.name}")
        if table.fields:
            lines.append("Fields:")
            for field in table.fields:
                attributes = _field_attributes(field)
                suffix = f" ({', '.join(attributes)})" if attributes else ""
                lines.append(f"- {field.name}: {field.type}{suffix}")

        if table.enable_rls:
            lines.extend(["", "Row Level Security: Enabled"])
            if table.policies:
                lines.append("Policies:")
                for policy in table.policies:
                    line = f"- {policy.name}: {policy.command.value} for {policy.role}"
                    if policy.using:
                        line += f" using ({policy.using})"
                    if policy.check and policy.command.allows_check():
                        line += f" with check ({policy.check})"
                    lines.append(line)
        lines.append("")

    resolved = [(rel, _resolve(schema, rel)) for rel in schema.relationships]
    resolved = [(rel, ends) for rel, ends in resolved if ends]
    if resolved:
        lines.extend(["## Relationships", ""])
        for rel, (src, src_field, tgt, tgt_field) in resolved:
            lines.append(f"- {src.name}.{src_field.name} → {tgt.name}.{tgt_field.name} ({rel.type.value})")
        lines.append("")

    lines.append("## Requirements")
    lines.extend(f"- {item}" for item in PROMPT_REQUIREMENTS)
    return "\n".join(lines) + "\n"


# ============================================================================
# GENERATION COLLABORATOR PROMPTS
# ============================================================================

SCRIPT_SYSTEM_PROMPT = """You are an expert Supabase database engineer. Generate production-ready PostgreSQL migration scripts that follow Supabase conventions.

REQUIREMENTS:
1. Use PostgreSQL syntax compatible with Supabase
2. Always include "IF NOT EXISTS" or "IF EXISTS" for safety
3. Use UUID primary keys with gen_random_uuid() default
4. Include created_at and updated_at timestamptz fields with now() defaults
5. Enable Row Level Security (RLS) where specified
6. Create RLS policies using auth.uid()
7. Add foreign key constraints with CASCADE actions
8. Create indexes for all foreign key columns
9. Use snake_case naming

STRUCTURE YOUR OUTPUT AS:
1. Header comment with migration overview
2. CREATE TABLE statements
3. Foreign key constraints (separate ALTER TABLE statements)
4. RLS configuration (ALTER TABLE ENABLE RLS)
5. RLS policies (CREATE POLICY statements)
6. Indexes (CREATE INDEX statements)
7. Triggers for updated_at automation

Return ONLY the SQL script, no explanations."""


def describe_schema(schema: Schema) -> str:
    """Exhaustive schema listing used as generation input."""
    lines = [
        "DATABASE SCHEMA DESCRIPTION:",
        "",
        f"Total Tables: {len(schema.tables)}",
        f"Total Relationships: {len(schema.relationships)}",
        "",
        "TABLES DEFINITION:",
        "",
    ]

    for table in schema.tables:
        lines.extend([
            f"TABLE: {table.name}",
            f"- RLS Required: {_yes_no(table.enable_rls)}",
            f"- Total Fields: {len(table.fields)}",
            "FIELDS:",
        ])
        for field in table.fields:
            lines.extend([
                f"  * {field.name}:",
                f"    - Type: {field.type}",
                f"    - Primary Key: {_yes_no(field.is_primary_key)}",
                f"    - Foreign Key: {_yes_no(field.is_foreign_key)}",
                f"    - Unique: {_yes_no(field.is_unique)}",
                f"    - Nullable: {_yes_no(field.is_nullable)}",
            ])
            if field.default_value:
                lines.append(f"    - Default Value: {field.default_value}")
            if field.references:
                ref_table = schema.get_table(field.references.table)
                ref_field = ref_table.get_field(field.references.field) if ref_table else None
                if ref_table and ref_field:
                    lines.append(f"    - References: {ref_table.name}.{ref_field.name}")

        if table.enable_rls and table.policies:
            lines.append("RLS POLICIES:")
            for policy in table.policies:
                lines.extend([
                    f"  * {policy.name}:",
                    f"    - Command: {policy.command.value}",
                    f"    - Role: {policy.role}",
                ])
                if policy.using:
                    lines.append(f"    - Using: {policy.using}")
                if policy.check and policy.command.allows_check():
                    lines.append(f"    - With Check: {policy.check}")
        elif table.enable_rls:
            lines.append("RLS POLICIES: CREATE STANDARD AUTH-BASED POLICIES")
        lines.extend(["", "---", ""])

    resolved = [(rel, _resolve(schema, rel)) for rel in schema.relationships]
    resolved = [(rel, ends) for rel, ends in resolved if ends]
    if resolved:
        lines.extend(["RELATIONSHIPS DEFINITION:", ""])
        for rel, (src, src_field, tgt, tgt_field) in resolved:
            on_delete = rel.on_delete.value if rel.on_delete else "CASCADE"
            on_update = rel.on_update.value if rel.on_update else "CASCADE"
            lines.extend([
                f"RELATIONSHIP: {src.name}.{src_field.name} → {tgt.name}.{tgt_field.name}",
                f"- Type: {rel.type.value}",
                f"- Source: {src.name}.{src_field.name} ({src_field.type})",
                f"- Target: {tgt.name}.{tgt_field.name} ({tgt_field.type})",
                f"- On Delete: {on_delete}",
                f"- On Update: {on_update}",
                "",
            ])

    return "\n".join(lines)


def build_script_user_prompt(schema: Schema) -> str:
    return (
        "Generate a complete, production-ready Supabase migration script for the "
        "following database schema.\n\n"
        f"Schema Definition:\n{describe_schema(schema)}\n\n"
        "Generate a complete migration that can be run directly in the Supabase SQL editor."
    )


def build_modify_system_prompt(schema: Schema, canvas: Optional[CanvasDefaults] = None) -> str:
    """System prompt for the schema assistant; embeds the current schema as JSON."""
    canvas = canvas or CanvasDefaults()
    current = json.dumps(schema.model_dump(mode="json", by_alias=True), indent=2)
    palette = json.dumps(list(canvas.palette))
    return f"""You are a database schema designer assistant. You help users modify their database schemas.

Current schema:
{current}

Rules:
1. Return a valid JSON object with "tables" and "relationships" arrays
2. Maintain existing IDs unless creating new items
3. Use PostgreSQL data types (prefer uuid, text, timestamptz, jsonb)
4. Always include id fields as primary keys (uuid type)
5. Include created_at and updated_at timestamps where appropriate
6. Enable RLS by default for new tables
7. Preserve positions of existing tables
8. Follow snake_case naming
9. Place new tables at positions that don't overlap existing ones
10. Foreign key fields set isForeignKey and references {{"table": <table id>, "field": <field id>}}
11. Add relationships between new and existing tables when relevant
12. Use colors for new tables from this palette: {palette}

Return ONLY the JSON object, no explanations."""


__all__ = [
    "EMPTY_SCHEMA_PROMPT",
    "SCRIPT_SYSTEM_PROMPT",
    "generate_prompt",
    "describe_schema",
    "build_script_user_prompt",
    "build_modify_system_prompt",
]
