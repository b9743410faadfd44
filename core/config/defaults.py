# ============================================================================
# CONFIGURATION DEFAULTS
# ============================================================================
# EPOCH: 1 - SCHEMA DESIGNER CORE
# STATUS: Core - Default configuration values
# PURPOSE: Centralized defaults for emitter, canvas, generation and storage
# CREATED: 14 SEP 2026
# ============================================================================
"""
Configuration Defaults

Sensible defaults for the schema designer backend, overridable through
environment variables.

Design:
- Immutable dataclasses for defaults
- Environment variable overrides
- Type-safe access
"""

import os
from dataclasses import dataclass, field
from typing import Optional, Tuple


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class EmitterDefaults:
    """
    Defaults for SQL and prompt emission.

    The default policy is attached to RLS tables that declare no policies.
    """
    schema_name: str = "public"
    default_policy_role: str = "authenticated"
    default_policy_using: str = "auth.uid() IS NOT NULL"
    timestamp_type: str = "timestamptz"
    timestamp_default: str = "now()"

    @classmethod
    def from_env(cls) -> "EmitterDefaults":
        """Create from environment variables."""
        return cls(
            schema_name=os.getenv("SCHEMA_SQL_NAMESPACE", "public"),
            default_policy_role=os.getenv("SCHEMA_DEFAULT_POLICY_ROLE", "authenticated"),
        )


@dataclass(frozen=True)
class CanvasDefaults:
    """
    Defaults applied to tables that arrive without canvas attributes.

    Tables created by the generation collaborator or the importer are laid
    out on a staggered grid and coloured from a fixed palette.
    """
    palette: Tuple[str, ...] = (
        "#3B82F6",  # blue
        "#10B981",  # green
        "#F59E0B",  # amber
        "#EF4444",  # red
        "#8B5CF6",  # violet
        "#06B6D4",  # cyan
        "#84CC16",  # lime
        "#F97316",  # orange
    )
    origin_x: float = 100.0
    origin_y: float = 100.0
    column_spacing: float = 300.0
    row_spacing: float = 200.0
    rows: int = 3

    # System tables the designer shows but never lets users change
    protected_table_ids: Tuple[str, ...] = ("auth-users-table",)

    def color_for(self, index: int) -> str:
        """Palette color for the index-th table."""
        return self.palette[index % len(self.palette)]

    def position_for(self, index: int) -> Tuple[float, float]:
        """Staggered canvas position for the index-th table."""
        return (
            self.origin_x + index * self.column_spacing,
            self.origin_y + (index % self.rows) * self.row_spacing,
        )

    @classmethod
    def from_env(cls) -> "CanvasDefaults":
        """Create from environment variables."""
        raw = os.getenv("SCHEMA_PROTECTED_TABLES")
        if raw is None:
            return cls()
        return cls(protected_table_ids=tuple(t.strip() for t in raw.split(",") if t.strip()))


@dataclass(frozen=True)
class GenerationDefaults:
    """
    Defaults for the generation collaborator (OpenAI-compatible HTTP API).

    The collaborator is disabled when no API key is configured; exports then
    always use the deterministic emitter.
    """
    api_url: str = "https://api.openai.com/v1"
    api_key: Optional[str] = None
    model: str = "gpt-4o-mini"
    temperature: float = 0.3
    max_tokens: int = 4000

    # Seconds
    connect_timeout: float = 10.0
    read_timeout: float = 60.0

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    @classmethod
    def from_env(cls) -> "GenerationDefaults":
        """Create from environment variables."""
        return cls(
            api_url=os.getenv("GENERATION_API_URL", "https://api.openai.com/v1").rstrip("/"),
            api_key=os.getenv("GENERATION_API_KEY") or None,
            model=os.getenv("GENERATION_MODEL", "gpt-4o-mini"),
            temperature=float(os.getenv("GENERATION_TEMPERATURE", 0.3)),
            max_tokens=int(os.getenv("GENERATION_MAX_TOKENS", 4000)),
            connect_timeout=float(os.getenv("GENERATION_CONNECT_TIMEOUT", 10.0)),
            read_timeout=float(os.getenv("GENERATION_READ_TIMEOUT", 60.0)),
        )


@dataclass(frozen=True)
class StorageDefaults:
    """
    Defaults for design persistence.

    database_url empty -> the HTTP surface runs without the designs store.
    """
    database_url: str = ""
    designs_schema: str = "public"
    pool_min_size: int = 1
    pool_max_size: int = 5
    snapshot_path: str = ".schema-designer/snapshot.json"
    snapshot_enabled: bool = True

    @classmethod
    def from_env(cls) -> "StorageDefaults":
        """Create from environment variables."""
        return cls(
            database_url=_database_url_from_env(),
            designs_schema=os.getenv("DESIGNER_DB_SCHEMA", "public"),
            pool_min_size=int(os.getenv("DESIGNER_POOL_MIN", 1)),
            pool_max_size=int(os.getenv("DESIGNER_POOL_MAX", 5)),
            snapshot_path=os.getenv("DESIGNER_SNAPSHOT_PATH", ".schema-designer/snapshot.json"),
            snapshot_enabled=_env_bool("DESIGNER_SNAPSHOT_ENABLED", True),
        )


def _database_url_from_env() -> str:
    """DESIGNER_DB_URL, or a URL assembled from DESIGNER_DB_* parts."""
    url = os.getenv("DESIGNER_DB_URL")
    if url:
        return url

    host = os.getenv("DESIGNER_DB_HOST")
    if not host:
        return ""
    port = os.getenv("DESIGNER_DB_PORT", "5432")
    name = os.getenv("DESIGNER_DB_NAME", "postgres")
    user = os.getenv("DESIGNER_DB_USER", "postgres")
    password = os.getenv("DESIGNER_DB_PASSWORD", "")
    sslmode = os.getenv("DESIGNER_DB_SSLMODE", "require")
    return f"postgresql://{user}:{password}@{host}:{port}/{name}?sslmode={sslmode}"


# ============================================================================
# GLOBAL DEFAULTS INSTANCE
# ============================================================================

@dataclass
class Defaults:
    """Container for all default configurations."""
    emitter: EmitterDefaults = field(default_factory=EmitterDefaults)
    canvas: CanvasDefaults = field(default_factory=CanvasDefaults)
    generation: GenerationDefaults = field(default_factory=GenerationDefaults)
    storage: StorageDefaults = field(default_factory=StorageDefaults)

    @classmethod
    def from_env(cls) -> "Defaults":
        """Create all defaults from environment variables."""
        return cls(
            emitter=EmitterDefaults.from_env(),
            canvas=CanvasDefaults.from_env(),
            generation=GenerationDefaults.from_env(),
            storage=StorageDefaults.from_env(),
        )


_defaults: Optional[Defaults] = None


def get_defaults() -> Defaults:
    """Get global defaults instance."""
    global _defaults
    if _defaults is None:
        _defaults = Defaults.from_env()
    return _defaults


def reset_defaults() -> None:
    """Reset defaults (for testing)."""
    global _defaults
    _defaults = None


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "EmitterDefaults",
    "CanvasDefaults",
    "GenerationDefaults",
    "StorageDefaults",
    "Defaults",
    "get_defaults",
    "reset_defaults",
]
