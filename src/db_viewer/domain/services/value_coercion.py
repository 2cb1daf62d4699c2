"""Conversions between cell values, display text and SQL literals."""

from __future__ import annotations

import math
import re

from db_viewer.domain.value_objects import SqlValue

_BINARY_TYPES = (bytes, bytearray, memoryview)
_NUMERIC_TYPE_MARKERS = ("INT", "REAL", "NUM")
_DECIMAL_PATTERN = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1



def format_number(value: int | float) -> str:
    """Render a number the way the presentation surface prints it.

    Integral floats drop their fractional part (``3.0`` -> ``"3"``) since
    the engine hands REAL columns back as floats even for whole values.
    """
    if isinstance(value, float) and value.is_integer() and abs(value) < 1e21:
        return str(int(value))
    return repr(value) if isinstance(value, float) else str(value)


def format_cell(value: SqlValue) -> str:
    """Text shown for a cell.

    None renders empty, binary renders as ``[blob <length>]``, everything
    else as its text form.
    """
    if value is None:
        return ""
    if isinstance(value, _BINARY_TYPES):
        return f"[blob {len(value)}]"
    if isinstance(value, bool):
        return str(int(value))
    if isinstance(value, (int, float)):
        return format_number(value)
    return str(value)


def to_sql_literal(value: SqlValue) -> str:
    """Render a value as a SQLite literal."""
    if value is None:
        return "NULL"
    if isinstance(value, _BINARY_TYPES):
        return f"X'{bytes(value).hex()}'"
    if isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value):
        return format_number(value)
    text = format_cell(value)
    return "'" + text.replace("'", "''") + "'"


def is_numeric_type(declared_type: str) -> bool:
    """Substring test on the declared type, not an affinity parser."""
    normalized = declared_type.upper()
    return any(marker in normalized for marker in _NUMERIC_TYPE_MARKERS)


def parse_number(text: str) -> int | float | None:
    """Parse decimal text as a finite number, or return None.

    Integers beyond SQLite's signed 64-bit range come back as floats.
    """
    stripped = text.strip()
    if not _DECIMAL_PATTERN.fullmatch(stripped):
        return None
    try:
        number = int(stripped, 10)
    except ValueError:
        number = float(stripped)
        return number if math.isfinite(number) else None
    if _INT64_MIN <= number <= _INT64_MAX:
        return number
    try:
        return float(number)
    except OverflowError:
        return None


def normalize_input_value(value: str, declared_type: str) -> SqlValue:
    """Turn edit-form text into a bind parameter.

    Empty text becomes NULL. For columns whose declared type mentions INT,
    REAL or NUM the text is bound as a number when it parses to a finite
    one; anything else is bound as the raw text.
    """
    if value == "":
        return None
    if is_numeric_type(declared_type):
        number = parse_number(value)
        return value if number is None else number
    return value
