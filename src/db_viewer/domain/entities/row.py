"""Rows fetched from the engine."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

from db_viewer.domain.value_objects import SqlValue


@dataclass(frozen=True, slots=True)
class RowData:
    """One fetched row: ordered named cells plus two derived attributes.

    ``position`` is the 1-based position within the ordered, filtered result
    (not within the page). ``row_id`` is the native row identifier when the
    fetch could project one; it is None for tables without one.
    """

    columns: tuple[str, ...]
    values: tuple[SqlValue, ...]
    position: int
    row_id: int | float | None = None

    def __getitem__(self, key: str | int) -> SqlValue:
        if isinstance(key, int):
            return self.values[key]
        try:
            idx = self.columns.index(key)
        except ValueError as e:
            raise KeyError(f"Column '{key}' not found") from e
        return self.values[idx]

    def get(self, key: str, default: Any = None) -> Any:
        try:
            return self[key]
        except KeyError:
            return default

    @property
    def native_id(self) -> int | float | None:
        """The native identifier if present and finite, else None."""
        if self.row_id is None:
            return None
        if isinstance(self.row_id, float) and not math.isfinite(self.row_id):
            return None
        return self.row_id

    def as_dict(self) -> dict[str, SqlValue]:
        return dict(zip(self.columns, self.values))

    def __repr__(self) -> str:
        pairs = ", ".join(f"{c}={v!r}" for c, v in zip(self.columns, self.values))
        return f"RowData(#{self.position}, rowid={self.row_id!r}, {pairs})"
