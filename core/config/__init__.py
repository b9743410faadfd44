# ============================================================================
# CONFIGURATION MODULE
# ============================================================================
# EPOCH: 1 - SCHEMA DESIGNER CORE
# STATUS: Core - Configuration and defaults
# PURPOSE: Centralized configuration management
# CREATED: 14 SEP 2026
# ============================================================================
"""
Configuration Module

Centralized configuration and defaults for the schema designer.
"""

from core.config.defaults import (
    EmitterDefaults,
    CanvasDefaults,
    GenerationDefaults,
    StorageDefaults,
    Defaults,
    get_defaults,
    reset_defaults,
)

__all__ = [
    "EmitterDefaults",
    "CanvasDefaults",
    "GenerationDefaults",
    "StorageDefaults",
    "Defaults",
    "get_defaults",
    "reset_defaults",
]
