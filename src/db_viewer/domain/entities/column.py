"""Column descriptors."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ColumnMeta:
    """Describes one column of a table.

    Attributes:
        name: Column name as declared.
        declared_type: Declared type text, possibly empty. Never parsed into
            an affinity; see ``normalize_input_value``.
        is_primary_key: Whether the column is part of the primary key.
        is_row_id: True only for the synthetic row identifier column that
            navigation views prepend. It is never a real storage column.
    """

    name: str
    declared_type: str = ""
    is_primary_key: bool = False
    is_row_id: bool = False


ROW_ID_COLUMN = ColumnMeta(name="ROWID", declared_type="ROWID", is_primary_key=True, is_row_id=True)
"""Synthetic column prepended to sidebar column lists."""
