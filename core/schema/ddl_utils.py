# ============================================================================
# DDL UTILITIES
# ============================================================================
# EPOCH: 1 - SCHEMA DESIGNER CORE
# STATUS: Core - Statement builders for the schema emitter
# PURPOSE: Table, constraint, index, RLS policy and trigger builders using psycopg.sql
# CREATED: 14 SEP 2026
# ============================================================================
"""
DDL Utilities - Statement builders for designer-authored schemas.

Every builder returns a psycopg.sql.Composed. Identifiers are emitted
verbatim as the user typed them (sql.SQL, not sql.Identifier): emitted
scripts are meant to be read and pasted, and designer names are plain
snake_case. Statements carry no trailing semicolon; the emitter adds it.

Usage:
    from core.schema.ddl_utils import IndexBuilder, render

    idx = IndexBuilder.btree("public", "posts", "author_id")
    render(idx)
    # 'CREATE INDEX IF NOT EXISTS idx_posts_author_id\\nON public.posts (author_id)'
"""

from typing import List, Optional, Sequence, Union

from psycopg import sql


def raw(text: str) -> sql.SQL:
    """A verbatim SQL fragment (identifier, type or expression)."""
    return sql.SQL(text)


def qualified(schema: str, table: str) -> sql.Composed:
    """schema.table, unquoted."""
    return sql.SQL("{}.{}").format(raw(schema), raw(table))


def render(stmt: sql.Composable) -> str:
    """Render a composed statement without a database connection."""
    return stmt.as_string(None)


# ============================================================================
# COLUMN & TABLE BUILDER
# ============================================================================

class TableBuilder:
    """Builder for CREATE TABLE statements."""

    INDENT = "  "

    @staticmethod
    def column(
        name: str,
        column_type: str,
        primary_key: bool = False,
        generated_uuid: bool = False,
        default: Optional[str] = None,
        not_null: bool = False,
        unique: bool = False,
    ) -> sql.Composed:
        """
        One column definition.

        Modifier order: PRIMARY KEY (with gen_random_uuid() default for uuid
        keys), DEFAULT, NOT NULL, UNIQUE.
        """
        parts: List[sql.Composable] = [raw(name), raw(column_type)]
        if primary_key:
            if generated_uuid:
                parts.append(sql.SQL("DEFAULT gen_random_uuid()"))
            parts.append(sql.SQL("PRIMARY KEY"))
        elif default:
            parts.append(sql.SQL("DEFAULT {}").format(raw(default)))
        if not_null:
            parts.append(sql.SQL("NOT NULL"))
        if unique and not primary_key:
            parts.append(sql.SQL("UNIQUE"))
        return sql.SQL(" ").join(parts)

    @staticmethod
    def create(schema: str, table: str, columns: Sequence[sql.Composable]) -> sql.Composed:
        """CREATE TABLE IF NOT EXISTS with one column per line."""
        body = sql.SQL(",\n").join(
            sql.SQL("{}{}").format(sql.SQL(TableBuilder.INDENT), col) for col in columns
        )
        return sql.SQL("CREATE TABLE IF NOT EXISTS {name} (\n{body}\n)").format(
            name=qualified(schema, table),
            body=body,
        )


# ============================================================================
# CONSTRAINT BUILDER
# ============================================================================

class ConstraintBuilder:
    """Builder for ALTER TABLE constraint statements."""

    @staticmethod
    def foreign_key_name(table: str, column: str) -> str:
        return f"{table}_{column}_fkey"

    @staticmethod
    def foreign_key(
        schema: str,
        table: str,
        column: str,
        ref_table: str,
        ref_column: str,
        on_delete: str = "CASCADE",
        name: Optional[str] = None,
    ) -> sql.Composed:
        """ALTER TABLE ... ADD CONSTRAINT <table>_<column>_fkey FOREIGN KEY ..."""
        return sql.SQL(
            "ALTER TABLE {table}\n"
            "ADD CONSTRAINT {name}\n"
            "FOREIGN KEY ({column})\n"
            "REFERENCES {ref_table} ({ref_column})\n"
            "ON DELETE {on_delete}"
        ).format(
            table=qualified(schema, table),
            name=raw(name or ConstraintBuilder.foreign_key_name(table, column)),
            column=raw(column),
            ref_table=qualified(schema, ref_table),
            ref_column=raw(ref_column),
            on_delete=sql.SQL(on_delete),
        )


# ============================================================================
# INDEX BUILDER
# ============================================================================

class IndexBuilder:
    """Builder for CREATE INDEX statements."""

    @staticmethod
    def _normalize_columns(columns: Union[str, Sequence[str]]) -> List[str]:
        if isinstance(columns, str):
            return [columns]
        return list(columns)

    @staticmethod
    def _generate_index_name(table: str, columns: List[str], prefix: str = "idx") -> str:
        """idx_<table>_<col1>_<col2>..."""
        return f"{prefix}_{table}_{'_'.join(columns)}"

    @staticmethod
    def btree(
        schema: str,
        table: str,
        columns: Union[str, Sequence[str]],
        name: Optional[str] = None,
    ) -> sql.Composed:
        """
        Create a B-tree index.

        Args:
            schema: Schema name
            table: Table name
            columns: Column name(s) to index
            name: Optional custom index name

        Returns:
            sql.Composed CREATE INDEX IF NOT EXISTS statement
        """
        cols = IndexBuilder._normalize_columns(columns)
        idx_name = name or IndexBuilder._generate_index_name(table, cols)
        return sql.SQL("CREATE INDEX IF NOT EXISTS {name}\nON {table} ({columns})").format(
            name=raw(idx_name),
            table=qualified(schema, table),
            columns=sql.SQL(", ").join(raw(c) for c in cols),
        )


# ============================================================================
# ROW LEVEL SECURITY BUILDER
# ============================================================================

class PolicyBuilder:
    """Builder for row-level security statements."""

    @staticmethod
    def enable_rls(schema: str, table: str) -> sql.Composed:
        return sql.SQL("ALTER TABLE {} ENABLE ROW LEVEL SECURITY").format(
            qualified(schema, table)
        )

    @staticmethod
    def create_policy(
        schema: str,
        table: str,
        name: str,
        command: str,
        role: str,
        using: Optional[str] = None,
        check: Optional[str] = None,
    ) -> sql.Composed:
        """
        CREATE POLICY "<name>" ON ... FOR <command> TO <role> [USING (..)] [WITH CHECK (..)].

        Policy names are free text, so they are the one double-quoted name.
        """
        lines: List[sql.Composable] = [
            sql.SQL('CREATE POLICY "{}"').format(raw(name.replace('"', '""'))),
            sql.SQL("ON {}").format(qualified(schema, table)),
            sql.SQL("FOR {}").format(raw(command)),
            sql.SQL("TO {}").format(raw(role)),
        ]
        if using:
            lines.append(sql.SQL("USING ({})").format(raw(using)))
        if check:
            lines.append(sql.SQL("WITH CHECK ({})").format(raw(check)))
        return sql.SQL("\n").join(lines)


# ============================================================================
# TRIGGER BUILDER
# ============================================================================

class TriggerBuilder:
    """Builder for the updated_at maintenance trigger."""

    FUNCTION_NAME = "update_updated_at_column"

    @staticmethod
    def updated_at_function(schema: str) -> sql.Composed:
        """The shared trigger function; emit once per script."""
        return sql.SQL(
            "CREATE OR REPLACE FUNCTION {schema}.{fn}()\n"
            "RETURNS TRIGGER\n"
            "LANGUAGE plpgsql\n"
            "AS $$\n"
            "BEGIN\n"
            "  NEW.updated_at = now();\n"
            "  RETURN NEW;\n"
            "END;\n"
            "$$"
        ).format(schema=raw(schema), fn=raw(TriggerBuilder.FUNCTION_NAME))

    @staticmethod
    def trigger_name(table: str) -> str:
        return f"update_{table}_updated_at"

    @staticmethod
    def updated_at_trigger(schema: str, table: str) -> sql.Composed:
        """BEFORE UPDATE trigger calling the shared function."""
        return sql.SQL(
            "CREATE TRIGGER {name}\n"
            "BEFORE UPDATE ON {table}\n"
            "FOR EACH ROW\n"
            "EXECUTE FUNCTION {schema}.{fn}()"
        ).format(
            name=raw(TriggerBuilder.trigger_name(table)),
            table=qualified(schema, table),
            schema=raw(schema),
            fn=raw(TriggerBuilder.FUNCTION_NAME),
        )


# ============================================================================
# COMMENT BUILDER
# ============================================================================

class CommentBuilder:
    """SQL comments for script annotation."""

    @staticmethod
    def line(text: str) -> sql.SQL:
        return sql.SQL("-- " + text.replace("\n", " "))

    @staticmethod
    def block(lines: Sequence[str]) -> sql.SQL:
        body = "\n".join(line.replace("*/", "* /") for line in lines)
        return sql.SQL("/*\n" + body + "\n*/")


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "raw",
    "qualified",
    "render",
    "TableBuilder",
    "ConstraintBuilder",
    "IndexBuilder",
    "PolicyBuilder",
    "TriggerBuilder",
    "CommentBuilder",
]
