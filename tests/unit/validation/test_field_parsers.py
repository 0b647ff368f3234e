"""Unit tests for locale-aware field coercion."""

from __future__ import annotations

import pytest

from validation.field_parsers import (
    normalize_label,
    parse_count,
    parse_decimal,
    parse_optional_count,
    parse_percentage,
)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("1.234", 1234), ("1,234", 1234), ("12 345", 12345), ("7", 7), (42, 42), (3.0, 3)],
)
def test_parse_count_strips_thousands_separators(raw, expected: int) -> None:
    """Counts should accept dot, comma, and space grouping."""
    assert parse_count(raw) == expected


def test_parse_count_rejects_text_and_fractions() -> None:
    """Counts should reject words and non-integral floats."""
    with pytest.raises(ValueError):
        parse_count("many")
    with pytest.raises(ValueError):
        parse_count(2.5)


@pytest.mark.parametrize("raw", ["-", "—", "", "  ", None])
def test_parse_optional_count_maps_empty_markers_to_none(raw) -> None:
    """Empty cell markers should become None."""
    assert parse_optional_count(raw) is None


def test_parse_decimal_honors_locale_separator() -> None:
    """Decimal parsing should follow the configured or inferred separator."""
    assert parse_decimal("1.234,5", decimal_separator=",") == pytest.approx(1234.5)
    assert parse_decimal("1,234.5", decimal_separator=".") == pytest.approx(1234.5)
    assert parse_decimal("12,5") == pytest.approx(12.5)


def test_parse_percentage_strips_sign() -> None:
    """Percentages should drop the percent sign."""
    assert parse_percentage("8,3 %") == pytest.approx(8.3)


def test_normalize_label_uppercases_and_joins_words() -> None:
    """Labels should become upper snake case."""
    assert normalize_label("  Land Rover ") == "LAND_ROVER"
    assert normalize_label("Mercedes-Benz") == "MERCEDES_BENZ"
