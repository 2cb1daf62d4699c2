"""Row keys and the selection rules built on them.

A row key is only meaningful inside one session. When a table has no native
row identifier the key falls back to the row's position, which shifts if
rows are inserted or deleted elsewhere; such keys may then point at a
different row after a reload.
"""

from __future__ import annotations

from collections.abc import Collection, Sequence

from db_viewer.domain.entities import RowData
from db_viewer.domain.services.value_coercion import format_number
from db_viewer.domain.value_objects import ROW_KEY_ID_PREFIX, ROW_KEY_POSITION_PREFIX, RowKey


def row_key(row: RowData) -> RowKey:
    """Return ``id:<rowid>`` when a finite native id exists, else ``pos:<position>``."""
    native_id = row.native_id
    if native_id is not None:
        return RowKey(f"{ROW_KEY_ID_PREFIX}{format_number(native_id)}")
    return RowKey(f"{ROW_KEY_POSITION_PREFIX}{row.position}")


def pinned_first(rows: Sequence[RowData], pinned: Collection[str]) -> list[RowData]:
    """Order rows for display: pinned rows first, each group in fetch order."""
    if not pinned:
        return list(rows)
    head = [row for row in rows if row_key(row) in pinned]
    tail = [row for row in rows if row_key(row) not in pinned]
    return head + tail


def find_row(rows: Sequence[RowData], key: str) -> RowData | None:
    for row in rows:
        if row_key(row) == key:
            return row
    return None


def index_of(rows: Sequence[RowData], key: str) -> int | None:
    for index, row in enumerate(rows):
        if row_key(row) == key:
            return index
    return None


def keys_between(rows: Sequence[RowData], start: int, end: int) -> frozenset[str]:
    """Keys of the rows between two display indexes, both ends included."""
    low, high = min(start, end), max(start, end)
    return frozenset(row_key(row) for row in rows[low : high + 1])
