"""WHERE clause construction for row filters and per-column filters."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence

from db_viewer.domain.entities import ColumnMeta
from db_viewer.domain.value_objects import (
    UNFILTERED,
    ColumnFilterMode,
    FilterClause,
    SqlValue,
)

MATCH_NOTHING = FilterClause(clause="WHERE 0")


def quote_identifier(name: str) -> str:
    """Quote an identifier so any table or column name is accepted."""
    return '"' + name.replace('"', '""') + '"'


def _as_text(column: str) -> str:
    return f"CAST({quote_identifier(column)} AS TEXT)"


def build_filter(
    columns: Sequence[ColumnMeta],
    row_filter: str,
    column_filters: Mapping[str, str],
    column_modes: Mapping[str, ColumnFilterMode],
) -> FilterClause:
    """Build the WHERE clause for the current filter inputs.

    Args:
        columns: Columns of the table being filtered.
        row_filter: Free text matched as a substring against every column,
            OR-combined.
        column_filters: Filter text per column name.
        column_modes: Filter switches per column name.

    Returns:
        The clause and its positional parameters, in clause order. An empty
        clause means no filtering. A row filter on a table without columns
        yields a clause that matches nothing.
    """
    params: list[SqlValue] = []
    conditions: list[str] = []

    normalized_row_filter = row_filter.strip()
    if normalized_row_filter:
        if not columns:
            return MATCH_NOTHING
        like_value = f"%{normalized_row_filter}%"
        or_parts = [f"{_as_text(column.name)} LIKE ?" for column in columns]
        conditions.append(f"({' OR '.join(or_parts)})")
        params.extend(like_value for _ in or_parts)

    known = {column.name for column in columns}
    for column in _filter_keys(column_filters, column_modes):
        if column not in known:
            continue
        condition, column_params = _column_condition(
            column,
            (column_filters.get(column) or "").strip(),
            column_modes.get(column) or ColumnFilterMode(),
        )
        if condition:
            conditions.append(condition)
            params.extend(column_params)

    if not conditions:
        return UNFILTERED
    return FilterClause(clause=f"WHERE {' AND '.join(conditions)}", params=tuple(params))


def _filter_keys(*mappings: Mapping[str, object]) -> Iterable[str]:
    # First-seen order across both mappings keeps params aligned with the clause.
    return dict.fromkeys(key for mapping in mappings for key in mapping)


def _column_condition(
    column: str, text: str, mode: ColumnFilterMode
) -> tuple[str, list[SqlValue]]:
    parts: list[str] = []
    params: list[SqlValue] = []

    if text:
        if mode.exact:
            parts.append(f"{_as_text(column)} = ?")
            params.append(text)
        else:
            parts.append(f"{_as_text(column)} LIKE ?")
            params.append(f"%{text}%")

    if mode.non_empty:
        parts.append(f"({quote_identifier(column)} IS NOT NULL AND {_as_text(column)} <> '')")

    if not parts:
        return "", []

    condition = f"({' AND '.join(parts)})" if len(parts) > 1 else parts[0]
    if mode.invert:
        condition = f"NOT ({condition})"
    return condition, params
