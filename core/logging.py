# ============================================================================
# STRUCTURED LOGGING
# ============================================================================
# EPOCH: 1 - SCHEMA DESIGNER CORE
# STATUS: Core - Structured logging with design context
# PURPOSE: Consistent, queryable logging across graph, resolver and exporters
# CREATED: 14 SEP 2026
# ============================================================================
"""
Structured Logging

JSON or human-readable log output for the schema designer backend.

Features:
- Context fields (design_id, table_id, field_id, relationship_id, operation)
  carried in a contextvar, so concurrent requests do not mix
- JSON output for log aggregation (LOG_FORMAT=json)
- Named checkpoints for tracing resolver and export decisions

Usage:
    from core.logging import get_logger, log_context

    logger = get_logger("services.relationship_resolver")

    with log_context(design_id="d-123", operation="resolve"):
        logger.info("Resolving drop", extra={"source": "users"})
"""

import json
import logging
import os
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field, fields, replace
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, Optional, Tuple, Union


@dataclass(frozen=True)
class LogContext:
    """Contextual fields attached to every record emitted inside log_context()."""
    design_id: Optional[str] = None
    table_id: Optional[str] = None
    field_id: Optional[str] = None
    relationship_id: Optional[str] = None
    request_id: Optional[str] = None
    operation: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Set fields only, with extra merged in at the top level."""
        result = {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if f.name != "extra" and getattr(self, f.name) is not None
        }
        result.update(self.extra)
        return result


# Scoped per asyncio task and per thread
_current: ContextVar[LogContext] = ContextVar("schema_designer_log_context", default=LogContext())

# (attribute, short label) pairs shown by HumanFormatter
_HUMAN_LABELS: Tuple[Tuple[str, str], ...] = (
    ("design_id", "design"),
    ("table_id", "table"),
    ("field_id", "field"),
    ("relationship_id", "rel"),
    ("operation", "op"),
)


def get_current_context() -> LogContext:
    return _current.get()


@contextmanager
def log_context(extra: Optional[Dict[str, Any]] = None, **values: Optional[str]) -> Iterator[LogContext]:
    """
    Push logging context for the duration of a block.

    Unspecified fields are inherited from the enclosing context.

    Example:
        with log_context(table_id="users", operation="delete_table"):
            logger.info("Cascading relationship removal")
    """
    parent = _current.get()
    context = replace(parent, **values, extra={**parent.extra, **(extra or {})})
    token = _current.set(context)
    try:
        yield context
    finally:
        _current.reset(token)


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _record_data(record: logging.LogRecord) -> Dict[str, Any]:
    return getattr(record, "extra", None) or {}


class StructuredFormatter(logging.Formatter):
    """One JSON object per line, for log aggregators."""

    def __init__(self, include_source: bool = True):
        super().__init__()
        self.include_source = include_source

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": _timestamp(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        context = get_current_context().to_dict()
        if context:
            entry["context"] = context
        data = _record_data(record)
        if data:
            entry["data"] = data
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        if self.include_source:
            entry["source"] = f"{record.filename}:{record.lineno} ({record.funcName})"
        return json.dumps(entry, default=str)


class HumanFormatter(logging.Formatter):
    """Single-line output for local development."""

    def format(self, record: logging.LogRecord) -> str:
        context = get_current_context()
        tags = [
            f"{label}={getattr(context, attr)}"
            for attr, label in _HUMAN_LABELS
            if getattr(context, attr)
        ]
        line = "{} {:<8} {}{}: {}".format(
            datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S"),
            record.levelname,
            record.name,
            f" [{' '.join(tags)}]" if tags else "",
            record.getMessage(),
        )
        data = _record_data(record)
        if data:
            line += f" {data}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class ContextLogger(logging.LoggerAdapter):
    """Logger adapter that nests caller extras under record.extra."""

    def process(self, msg, kwargs):
        kwargs["extra"] = {"extra": dict(kwargs.get("extra") or {})}
        return msg, kwargs


def get_logger(name: str) -> ContextLogger:
    """Context-aware logger, e.g. get_logger(__name__)."""
    return ContextLogger(logging.getLogger(name), {})


def configure_logging(
    level: Union[str, int] = "INFO",
    json_output: bool = False,
    include_source: bool = True,
) -> None:
    """
    Install a single stdout handler on the root logger.

    Args:
        level: Log level name or number
        json_output: Emit JSON lines (also enabled by LOG_FORMAT=json)
        include_source: Add file/line to JSON output
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    use_json = json_output or os.getenv("LOG_FORMAT", "").lower() == "json"
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(StructuredFormatter(include_source) if use_json else HumanFormatter())

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)


# ============================================================================
# CHECKPOINT LOGGING
# ============================================================================

def log_checkpoint(
    name: str,
    data: Optional[Dict[str, Any]] = None,
    logger: Optional[Union[logging.Logger, logging.LoggerAdapter]] = None,
) -> None:
    """
    Log a named checkpoint.

    Checkpoints mark decisions worth querying later, e.g.
    "relationship_resolved", "field_synthesized", "export_fallback".
    The current context travels with the record.
    """
    payload: Dict[str, Any] = {"checkpoint": name, "at": _timestamp()}
    if data:
        payload["data"] = data
    target = logger if logger is not None else logging.getLogger("schema_designer.checkpoint")
    if isinstance(target, ContextLogger):
        target.info("CHECKPOINT %s", name, extra=payload)
    else:
        target.info("CHECKPOINT %s", name, extra={"extra": payload})


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "LogContext",
    "StructuredFormatter",
    "HumanFormatter",
    "ContextLogger",
    "get_logger",
    "configure_logging",
    "log_context",
    "get_current_context",
    "log_checkpoint",
]
