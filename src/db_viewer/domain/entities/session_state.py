"""Per-document view state."""

from __future__ import annotations

from dataclasses import dataclass, field

from db_viewer.domain.entities.column import ColumnMeta
from db_viewer.domain.value_objects import ColumnFilterMode


@dataclass(frozen=True)
class SessionState:
    """Everything the presentation needs to know about one open document.

    Instances are never mutated; ``domain.services.session_reducer`` derives
    a new state for every intent. Mapping fields are replaced wholesale, so
    a state handed out earlier keeps describing the moment it was taken.

    Table-scoped settings (filter modes, pinned and hidden columns) are kept
    per table and survive switching away and back. The free-text row filter,
    the column filter texts and the page are reset on every table switch.
    """

    tables: tuple[str, ...] = ()
    table_filter: str = ""
    selected_table: str = ""
    table_history: tuple[str, ...] = ()
    history_index: int = -1

    page: int = 1
    page_size: int = 50

    row_filter: str = ""
    column_filters: dict[str, str] = field(default_factory=dict)
    column_modes_by_table: dict[str, dict[str, ColumnFilterMode]] = field(default_factory=dict)
    pinned_columns_by_table: dict[str, frozenset[str]] = field(default_factory=dict)
    hidden_columns_by_table: dict[str, frozenset[str]] = field(default_factory=dict)

    expanded_tables: dict[str, bool] = field(default_factory=dict)
    table_columns: dict[str, tuple[ColumnMeta, ...]] = field(default_factory=dict)

    pinned_rows: frozenset[str] = frozenset()
    selected_row_keys: frozenset[str] = frozenset()
    selected_row_key: str | None = None
    anchor_index: int | None = None

    @property
    def column_modes(self) -> dict[str, ColumnFilterMode]:
        return self.column_modes_by_table.get(self.selected_table, {})

    @property
    def pinned_columns(self) -> frozenset[str]:
        return self.pinned_columns_by_table.get(self.selected_table, frozenset())

    @property
    def hidden_columns(self) -> frozenset[str]:
        return self.hidden_columns_by_table.get(self.selected_table, frozenset())

    @property
    def can_go_back(self) -> bool:
        return self.history_index > 0

    @property
    def can_go_forward(self) -> bool:
        return self.history_index < len(self.table_history) - 1

    @property
    def filtered_tables(self) -> tuple[str, ...]:
        """Tables whose name contains the sidebar filter, case-insensitively."""
        query = self.table_filter.strip().lower()
        if not query:
            return self.tables
        return tuple(table for table in self.tables if query in table.lower())
