# ============================================================================
# GENERATION SERVICES
# ============================================================================
# EPOCH: 1 - SCHEMA DESIGNER CORE
# STATUS: Service - Generation-backed export and schema assistant
# PURPOSE: Optional AI paths that always degrade to deterministic behaviour
# CREATED: 14 SEP 2026
# ============================================================================
"""
Generation Services

ScriptExporter
    SQL export. When the generation collaborator is configured the script
    is requested from it first; any failure, timeout, or output without a
    CREATE TABLE statement falls back to the deterministic emitter. Export
    therefore always returns a script.

SchemaAssistant
    Natural-language schema edits. The collaborator returns a candidate
    {tables, relationships} document which is normalized, validated against
    the same structural invariants the graph enforces, and only then
    replaces the graph. A bad candidate leaves the graph untouched.
"""

import json
from dataclasses import dataclass
from typing import Optional

from core.config.defaults import CanvasDefaults
from core.errors import CandidateSchemaError, GenerationError
from core.logging import get_logger, log_checkpoint
from core.models.schema import Schema
from core.schema.importer import normalize_candidate, validate_schema_document
from core.schema.prompt_generator import (
    SCRIPT_SYSTEM_PROMPT,
    build_modify_system_prompt,
    build_script_user_prompt,
    generate_prompt,
)
from core.schema.sql_generator import SchemaToSQL
from services.generation_client import GenerationClient
from services.schema_graph import SchemaGraph

logger = get_logger(__name__)

SOURCE_GENERATED = "ai"
SOURCE_DETERMINISTIC = "deterministic"

SCRIPT_TEMPERATURE = 0.1
MODIFY_TEMPERATURE = 0.3


@dataclass
class ExportResult:
    script: str
    source: str
    fallback_reason: Optional[str] = None


class ScriptExporter:
    """SQL and prompt export with an optional generation-first path."""

    def __init__(
        self,
        emitter: Optional[SchemaToSQL] = None,
        client: Optional[GenerationClient] = None,
    ):
        self.emitter = emitter or SchemaToSQL()
        self.client = client

    async def export_sql(self, schema: Schema, use_generation: bool = True) -> ExportResult:
        """
        Produce a migration script.

        Args:
            schema: Schema to export
            use_generation: Try the generation collaborator first when configured

        Returns:
            ExportResult; source tells which path produced the script
        """
        if not schema.tables:
            return ExportResult(self.emitter.emit(schema), SOURCE_DETERMINISTIC)

        if not use_generation or self.client is None or not self.client.enabled:
            return ExportResult(self.emitter.emit(schema), SOURCE_DETERMINISTIC)

        try:
            script = await self.client.complete(
                SCRIPT_SYSTEM_PROMPT,
                build_script_user_prompt(schema),
                temperature=SCRIPT_TEMPERATURE,
            )
        except GenerationError as e:
            return self._fallback(schema, str(e))

        if "CREATE TABLE" not in script:
            return self._fallback(schema, "Generated script missing table creation statements")

        logger.info(f"Generated SQL script via collaborator ({len(script)} chars)")
        return ExportResult(script, SOURCE_GENERATED)

    def export_prompt(self, schema: Schema) -> str:
        return generate_prompt(schema)

    def _fallback(self, schema: Schema, reason: str) -> ExportResult:
        logger.warning(f"Generation failed, using deterministic emitter: {reason}")
        log_checkpoint("export_fallback", {"reason": reason})
        return ExportResult(self.emitter.emit(schema), SOURCE_DETERMINISTIC, fallback_reason=reason)


class SchemaAssistant:
    """Applies natural-language modification requests to a SchemaGraph."""

    def __init__(
        self,
        graph: SchemaGraph,
        client: GenerationClient,
        canvas: Optional[CanvasDefaults] = None,
    ):
        self.graph = graph
        self.client = client
        self.canvas = canvas or CanvasDefaults()

    async def propose(self, instruction: str) -> Schema:
        """
        Ask the collaborator for a modified schema without applying it.

        Raises:
            GenerationError: collaborator unavailable or failed
            CandidateSchemaError: response is not a valid schema
        """
        current = self.graph.snapshot()
        content = await self.client.complete(
            build_modify_system_prompt(current, self.canvas),
            instruction,
            temperature=MODIFY_TEMPERATURE,
        )
        try:
            document = json.loads(content)
        except json.JSONDecodeError as e:
            raise CandidateSchemaError(f"Generated schema is not valid JSON: {e}") from e

        return validate_schema_document(normalize_candidate(document, self.canvas))

    async def modify_schema(self, instruction: str) -> Schema:
        """
        Apply a natural-language edit.

        Returns:
            The graph's new snapshot

        Raises:
            GenerationError: collaborator unavailable or failed (graph unchanged)
            CandidateSchemaError: candidate rejected (graph unchanged)
        """
        candidate = await self.propose(instruction)
        self.graph.load_schema(
            candidate,
            design_id=self.graph.current_design_id,
            design_name=self.graph.current_design_name,
        )
        log_checkpoint("schema_modified", {
            "tables": len(candidate.tables),
            "relationships": len(candidate.relationships),
        })
        return self.graph.snapshot()


__all__ = [
    "SOURCE_GENERATED",
    "SOURCE_DETERMINISTIC",
    "ExportResult",
    "ScriptExporter",
    "SchemaAssistant",
]
