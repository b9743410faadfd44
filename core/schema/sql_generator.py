# ============================================================================
# SCHEMA TO SQL EMITTER
# ============================================================================
# EPOCH: 1 - SCHEMA DESIGNER CORE
# STATUS: Core - Deterministic DDL script from a designer schema
# PURPOSE: Render tables, constraints, RLS, indexes and triggers as one script
# CREATED: 14 SEP 2026
# ============================================================================
"""
Schema to PostgreSQL Script Emitter.

Turns a Schema into a single migration script. Output is a pure function
of the input: same schema, byte-identical script. No timestamps, no ids.

Statement order:
    1. Header comment (table/relationship counts, per-table field counts)
    2. CREATE TABLE per table, columns in insertion order, with
       created_at/updated_at synthesized when absent
    3. Foreign key constraint per relationship (ON DELETE CASCADE)
    4. ENABLE ROW LEVEL SECURITY per RLS table
    5. CREATE POLICY per policy (default authenticated policy when none)
    6. Index per relationship source column
    7. updated_at trigger function once, then one trigger per table

Usage:
    from core.schema.sql_generator import SchemaToSQL

    script = SchemaToSQL(schema_name="public").emit(schema)
"""

import logging
from typing import List, NamedTuple, Optional, Tuple

from psycopg import sql

from core.config.defaults import EmitterDefaults
from core.models.schema import Relationship, Schema, SchemaField, Table
from core.schema.ddl_utils import (
    CommentBuilder,
    ConstraintBuilder,
    IndexBuilder,
    PolicyBuilder,
    TableBuilder,
    TriggerBuilder,
    render,
)
from core.schema.type_compat import normalize_type

logger = logging.getLogger(__name__)

EMPTY_SCHEMA_SCRIPT = "-- No tables defined"

TIMESTAMP_COLUMNS = ("created_at", "updated_at")


class Statement(NamedTuple):
    """One emitted statement and the comment line above it."""
    comment: Optional[str]
    body: sql.Composable


class SchemaToSQL:
    """
    Render a designer Schema as a PostgreSQL migration script.

    Identifiers are emitted verbatim; the schema namespace defaults to
    "public".
    """

    def __init__(self, schema_name: Optional[str] = None, defaults: Optional[EmitterDefaults] = None):
        self.defaults = defaults or EmitterDefaults()
        self.schema_name = schema_name or self.defaults.schema_name

    # =========================================================================
    # ENDPOINT LOOKUP
    # =========================================================================

    @staticmethod
    def _endpoints(
        schema: Schema, rel: Relationship
    ) -> Optional[Tuple[Table, SchemaField, Table, SchemaField]]:
        """Resolve a relationship to (source table, field, target table, field)."""
        src_table = schema.get_table(rel.source)
        tgt_table = schema.get_table(rel.target)
        if src_table is None or tgt_table is None:
            return None
        src_field = src_table.get_field(rel.source_field)
        tgt_field = tgt_table.get_field(rel.target_field)
        if src_field is None or tgt_field is None:
            return None
        return src_table, src_field, tgt_table, tgt_field

    def _resolved_relationships(
        self, schema: Schema
    ) -> List[Tuple[Relationship, Table, SchemaField, Table, SchemaField]]:
        resolved = []
        for rel in schema.relationships:
            endpoints = self._endpoints(schema, rel)
            if endpoints is None:
                logger.warning(f"Skipping relationship {rel.id}: endpoint does not resolve")
                continue
            resolved.append((rel, *endpoints))
        return resolved

    # =========================================================================
    # HEADER
    # =========================================================================

    def generate_header(self, schema: Schema) -> sql.SQL:
        resolved = self._resolved_relationships(schema)
        lines = [
            "# Database Schema Migration",
            "",
            "## Summary",
            f"This migration creates {len(schema.tables)} table(s) "
            f"with {len(schema.relationships)} relationship(s).",
            "",
            "## Tables",
        ]
        for table in schema.tables:
            rls = " (RLS enabled)" if table.enable_rls else ""
            lines.append(f"- {self.schema_name}.{table.name}: {len(table.fields)} fields{rls}")

        lines.extend(["", "## Relationships"])
        if resolved:
            for rel, src_table, src_field, tgt_table, tgt_field in resolved:
                lines.append(
                    f"- {src_table.name}.{src_field.name} → "
                    f"{tgt_table.name}.{tgt_field.name} ({rel.type.value})"
                )
        else:
            lines.append("- No relationships defined")
        return CommentBuilder.block(lines)

    # =========================================================================
    # TABLE GENERATION
    # =========================================================================

    def generate_column(self, field: SchemaField) -> sql.Composed:
        return TableBuilder.column(
            name=field.name,
            column_type=field.type,
            primary_key=field.is_primary_key,
            generated_uuid=normalize_type(field.type) == "uuid",
            default=field.default_value,
            not_null=not field.is_nullable,
            unique=field.is_unique,
        )

    def generate_table(self, table: Table) -> sql.Composed:
        """CREATE TABLE for one table, appending missing timestamp columns."""
        columns = [self.generate_column(f) for f in table.fields]
        present = {f.name for f in table.fields}
        for name in TIMESTAMP_COLUMNS:
            if name not in present:
                columns.append(TableBuilder.column(
                    name=name,
                    column_type=self.defaults.timestamp_type,
                    default=self.defaults.timestamp_default,
                    not_null=True,
                ))
        logger.debug(f"Generating table {self.schema_name}.{table.name} ({len(columns)} columns)")
        return TableBuilder.create(self.schema_name, table.name, columns)

    # =========================================================================
    # CONSTRAINTS, RLS, INDEXES, TRIGGERS
    # =========================================================================

    def generate_foreign_keys(self, schema: Schema) -> List[Statement]:
        statements = []
        for _rel, src_table, src_field, tgt_table, tgt_field in self._resolved_relationships(schema):
            statements.append(Statement(
                f"Add foreign key constraint for {src_table.name}.{src_field.name}",
                ConstraintBuilder.foreign_key(
                    self.schema_name,
                    src_table.name,
                    src_field.name,
                    tgt_table.name,
                    tgt_field.name,
                ),
            ))
        return statements

    def generate_rls(self, schema: Schema) -> List[Statement]:
        return [
            Statement(
                f"Enable RLS for {table.name}",
                PolicyBuilder.enable_rls(self.schema_name, table.name),
            )
            for table in schema.tables
            if table.enable_rls
        ]

    def generate_policies(self, schema: Schema) -> List[Statement]:
        statements = []
        for table in schema.tables:
            if not table.enable_rls:
                continue

            if not table.policies:
                statements.append(Statement(
                    f"Default policy for {table.name}",
                    PolicyBuilder.create_policy(
                        self.schema_name,
                        table.name,
                        name=f"{table.name}_authenticated_policy",
                        command="ALL",
                        role=self.defaults.default_policy_role,
                        using=self.defaults.default_policy_using,
                    ),
                ))
                continue

            for policy in table.policies:
                check = policy.check if policy.command.allows_check() else None
                statements.append(Statement(
                    f"Policy {policy.name} on {table.name}",
                    PolicyBuilder.create_policy(
                        self.schema_name,
                        table.name,
                        name=policy.name,
                        command=policy.command.value,
                        role=policy.role,
                        using=policy.using,
                        check=check,
                    ),
                ))
        return statements

    def generate_indexes(self, schema: Schema) -> List[Statement]:
        """One IF NOT EXISTS index per relationship, on its source column."""
        statements = []
        for _rel, src_table, src_field, _tgt_table, _tgt_field in self._resolved_relationships(schema):
            statements.append(Statement(
                f"Index for {src_table.name}.{src_field.name}",
                IndexBuilder.btree(self.schema_name, src_table.name, src_field.name),
            ))
        return statements

    def generate_triggers(self, schema: Schema) -> List[Statement]:
        """Trigger function once, then one trigger per table; every table has updated_at."""
        if not schema.tables:
            return []
        statements = [Statement(
            "Keep updated_at current",
            TriggerBuilder.updated_at_function(self.schema_name),
        )]
        for table in schema.tables:
            statements.append(Statement(
                f"updated_at trigger for {table.name}",
                TriggerBuilder.updated_at_trigger(self.schema_name, table.name),
            ))
        return statements

    # =========================================================================
    # COMPLETE SCRIPT
    # =========================================================================

    def generate_all(self, schema: Schema) -> List[Statement]:
        """Every executable statement, in script order (header excluded)."""
        statements = [
            Statement(f"Create {table.name} table", self.generate_table(table))
            for table in schema.tables
        ]
        statements.extend(self.generate_foreign_keys(schema))
        statements.extend(self.generate_rls(schema))
        statements.extend(self.generate_policies(schema))
        statements.extend(self.generate_indexes(schema))
        statements.extend(self.generate_triggers(schema))

        logger.info(
            f"Generated {len(statements)} DDL statements for "
            f"{len(schema.tables)} tables in schema {self.schema_name}"
        )
        return statements

    def emit(self, schema: Schema) -> str:
        """The complete script as text."""
        if not schema.tables:
            return EMPTY_SCHEMA_SCRIPT

        chunks = [render(self.generate_header(schema))]
        for stmt in self.generate_all(schema):
            comment = f"-- {stmt.comment}\n" if stmt.comment else ""
            chunks.append(f"{comment}{render(stmt.body)};")
        return "\n\n".join(chunks).strip()

    def execute(self, conn, schema: Schema, dry_run: bool = False) -> int:
        """
        Apply the script to a database.

        Args:
            conn: psycopg connection
            schema: Schema to create
            dry_run: If True, log statements but don't execute

        Returns:
            Number of statements executed
        """
        statements = self.generate_all(schema)

        if dry_run:
            for stmt in statements:
                logger.info(f"[DRY RUN] {render(stmt.body)[:100]}...")
            return len(statements)

        with conn.cursor() as cur:
            for stmt in statements:
                cur.execute(stmt.body)

        logger.info(f"Executed {len(statements)} DDL statements")
        return len(statements)


def emit(schema: Schema, schema_name: Optional[str] = None) -> str:
    """Shorthand for SchemaToSQL(schema_name).emit(schema)."""
    return SchemaToSQL(schema_name=schema_name).emit(schema)


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = ["EMPTY_SCHEMA_SCRIPT", "Statement", "SchemaToSQL", "emit"]
