# ============================================================================
# TYPE COMPATIBILITY TESTS
# ============================================================================
# EPOCH: 1 - SCHEMA DESIGNER CORE
# STATUS: Tests - Column type compatibility predicate
# PURPOSE: Verify normalization, symmetry and the explanation text
# CREATED: 14 SEP 2026
# ============================================================================
"""
Type Compatibility Tests

Covers:
1. Normalization of case, length suffixes, aliases and arrays
2. Compatibility classes from the rule table
3. Symmetry and reflexivity over every known and a few unknown types
4. Totality (None, empty strings, garbage never raise)
5. The human-readable rejection message

Run with:
    pytest tests/test_type_compat.py -v
"""

import itertools

import pytest

from core.contracts import TypeFamily
from core.schema.type_compat import (
    COMPATIBILITY_RULES,
    allowed_targets,
    compatible,
    explain,
    normalize_type,
    type_family,
)


ALL_TYPES = sorted(COMPATIBILITY_RULES) + ["geometry", "citext", "", "Integer", "VARCHAR(255)"]


# ============================================================================
# NORMALIZATION
# ============================================================================

class TestNormalizeType:

    @pytest.mark.parametrize("raw,expected", [
        ("UUID", "uuid"),
        ("  text ", "text"),
        ("VARCHAR(255)", "varchar"),
        ("numeric(10, 2)", "numeric"),
        ("integer", "int"),
        ("int8", "bigint"),
        ("serial", "int"),
        ("bool", "boolean"),
        ("character varying", "varchar"),
        ("timestamp with time zone", "timestamptz"),
        ("timestamp(3) with time zone", "timestamptz"),
        ("text[]", "array"),
        ("double   precision", "double precision"),
    ])
    def test_spellings(self, raw, expected):
        assert normalize_type(raw) == expected

    def test_non_string_is_empty(self):
        assert normalize_type(None) == ""
        assert normalize_type(42) == ""

    def test_unknown_type_kept(self):
        assert normalize_type("Geometry") == "geometry"


class TestTypeFamily:

    def test_known_families(self):
        assert type_family("uuid") == TypeFamily.UUID
        assert type_family("integer") == TypeFamily.INTEGER
        assert type_family("jsonb") == TypeFamily.JSON
        assert type_family("varchar(40)") == TypeFamily.TEXT

    def test_unknown_family(self):
        assert type_family("geometry") == TypeFamily.UNKNOWN
        assert type_family(None) == TypeFamily.UNKNOWN


# ============================================================================
# PREDICATE
# ============================================================================

class TestCompatible:

    @pytest.mark.parametrize("a,b", [
        ("uuid", "uuid"),
        ("int", "bigint"),
        ("integer", "bigint"),
        ("smallint", "int4"),
        ("decimal", "double precision"),
        ("text", "varchar"),
        ("varchar(50)", "char(2)"),
        ("timestamp", "timestamptz"),
        ("json", "jsonb"),
        ("time", "timetz"),
    ])
    def test_compatible_pairs(self, a, b):
        assert compatible(a, b)

    @pytest.mark.parametrize("a,b", [
        ("uuid", "text"),
        ("uuid", "int"),
        ("int", "text"),
        ("date", "timestamp"),
        ("boolean", "int"),
        ("json", "text"),
        ("geometry", "text"),
    ])
    def test_incompatible_pairs(self, a, b):
        assert not compatible(a, b)

    def test_case_and_suffix_insensitive(self):
        assert compatible("UUID", "uuid")
        assert compatible("VARCHAR(255)", "Text")

    def test_unknown_only_matches_itself(self):
        assert compatible("geometry", "geometry")
        assert compatible("Geometry", "GEOMETRY")
        assert not compatible("geometry", "geography")

    def test_symmetric(self):
        for a, b in itertools.product(ALL_TYPES, repeat=2):
            assert compatible(a, b) == compatible(b, a), (a, b)

    def test_reflexive(self):
        for a in ALL_TYPES:
            assert compatible(a, a), a

    def test_total(self):
        for a, b in [(None, None), (None, "uuid"), ("", "text"), (3, "int"), ("))", "(")]:
            compatible(a, b)


# ============================================================================
# EXPLANATION
# ============================================================================

class TestExplain:

    def test_uuid_to_text(self):
        assert explain("uuid", "text") == (
            'Cannot create relationship: "uuid" can only connect to [uuid], '
            'but target field is "text"'
        )

    def test_lists_allowed_class(self):
        message = explain("int", "text")
        assert "[bigint, int, smallint]" in message
        assert '"text"' in message

    def test_unknown_type_allows_itself(self):
        assert allowed_targets("geometry") == ["geometry"]
