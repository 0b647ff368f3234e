"""Locale-aware field coercion.

Source documents print numbers with local conventions: ``1.234`` or
``1,234`` thousands, ``12,5`` decimals, ``8,3 %`` shares, ``-`` for
empty cells. These parsers normalize such text before schema type
checks. Each raises ``ValueError`` so pydantic reports it as a field
validation error.
"""

from __future__ import annotations

from functools import partial
import re
from typing import Annotated, Any, Optional

from pydantic import BeforeValidator

from core.constants import EMPTY_CELL_MARKERS

_SPACE_PATTERN = re.compile(r"\s+")
_LABEL_SEPARATOR_PATTERN = re.compile(r"[\s\-]+")


def parse_count(value: Any) -> int:
    """Parse an integer count, ignoring any thousands separators."""
    if isinstance(value, bool):
        raise ValueError(f"expected a count, got boolean {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError(f"expected a whole count, got {value!r}")
        return int(value)
    text = _SPACE_PATTERN.sub("", str(value))
    digits = text.replace(".", "").replace(",", "").replace("'", "")
    if not re.fullmatch(r"[+-]?\d+", digits):
        raise ValueError(f"expected a count, got {value!r}")
    return int(digits)


def parse_optional_count(value: Any) -> int | None:
    """Parse a count where empty markers such as ``-`` mean missing."""
    if value is None or (isinstance(value, str) and value.strip() in EMPTY_CELL_MARKERS):
        return None
    return parse_count(value)


def parse_decimal(value: Any, decimal_separator: str | None = None) -> float:
    """Parse a decimal number printed with local separators.

    Args:
        value: Raw cell value.
        decimal_separator: ``","`` or ``"."``; when omitted the rightmost
            separator in the text is taken as the decimal mark.

    Returns:
        Parsed float.
    """
    if isinstance(value, bool):
        raise ValueError(f"expected a number, got boolean {value!r}")
    if isinstance(value, (int, float)):
        return float(value)
    text = _SPACE_PATTERN.sub("", str(value))
    separator = decimal_separator or _rightmost_separator(text)
    if separator == ",":
        text = text.replace(".", "").replace(",", ".")
    else:
        text = text.replace(",", "")
    try:
        return float(text)
    except ValueError as error:
        raise ValueError(f"expected a number, got {value!r}") from error


def parse_percentage(value: Any, decimal_separator: str | None = None) -> float:
    """Parse a percentage such as ``8,3 %`` into ``8.3``."""
    if isinstance(value, str):
        value = value.replace("%", "")
    return parse_decimal(value, decimal_separator)


def normalize_label(value: Any) -> str:
    """Normalize a category label to ``UPPER_SNAKE`` form."""
    text = str(value).strip().upper()
    if not text:
        raise ValueError("expected a non-empty label")
    return _LABEL_SEPARATOR_PATTERN.sub("_", text)


def _rightmost_separator(text: str) -> str:
    return "," if text.rfind(",") > text.rfind(".") else "."


Count = Annotated[int, BeforeValidator(parse_count)]
OptionalCount = Annotated[Optional[int], BeforeValidator(parse_optional_count)]
CommaDecimal = Annotated[float, BeforeValidator(partial(parse_decimal, decimal_separator=","))]
PointDecimal = Annotated[float, BeforeValidator(partial(parse_decimal, decimal_separator="."))]
Percentage = Annotated[float, BeforeValidator(parse_percentage)]
Label = Annotated[str, BeforeValidator(normalize_label)]
