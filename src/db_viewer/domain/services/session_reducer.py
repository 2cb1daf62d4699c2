"""Pure state transitions for one document session.

Every function takes a ``SessionState`` plus the intent's arguments and
returns the next state; none of them touch the engine. The session
controller performs the side effects (queries, saves, messages) around
these transitions.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import replace

from db_viewer.domain.entities import ColumnMeta, RowData, SessionState
from db_viewer.domain.services.row_identity import index_of, keys_between, row_key
from db_viewer.domain.value_objects import ColumnFilterMode, FilterMode


def _without(mapping: dict, key: str) -> dict:
    return {k: v for k, v in mapping.items() if k != key}


def _toggle_member(members: frozenset[str], item: str) -> frozenset[str]:
    return members - {item} if item in members else members | {item}


def _switch_table(state: SessionState, table: str) -> SessionState:
    return replace(
        state,
        selected_table=table,
        page=1,
        row_filter="",
        column_filters={},
    )


def _push_history(state: SessionState, table: str) -> SessionState:
    next_index = state.history_index + 1
    history = state.table_history[:next_index] + (table,)
    return replace(state, table_history=history, history_index=next_index)


def _reset_history(state: SessionState, table: str) -> SessionState:
    if not table:
        return replace(state, table_history=(), history_index=-1)
    return replace(state, table_history=(table,), history_index=0)


# -- document lifecycle ---------------------------------------------------


def loaded(state: SessionState, tables: Sequence[str]) -> SessionState:
    """State right after a document (re)load: first table selected, all view state reset."""
    first = tables[0] if tables else ""
    fresh = SessionState(tables=tuple(tables), selected_table=first, page_size=state.page_size)
    return _reset_history(fresh, first)


def table_created(
    state: SessionState,
    name: str,
    tables: Sequence[str],
    columns: Sequence[ColumnMeta],
) -> SessionState:
    next_state = _switch_table(replace(state, tables=tuple(tables)), name)
    next_state = replace(
        next_state,
        expanded_tables={**state.expanded_tables, name: True},
        table_columns={**state.table_columns, name: tuple(columns)},
    )
    return _push_history(next_state, name)


def column_added(state: SessionState, table: str, columns: Sequence[ColumnMeta]) -> SessionState:
    return replace(state, table_columns={**state.table_columns, table: tuple(columns)})


def table_dropped(state: SessionState, table: str, tables: Sequence[str]) -> SessionState:
    """Purge the dropped table's cached UI state and select the first remaining table."""
    first = tables[0] if tables else ""
    next_state = replace(
        state,
        tables=tuple(tables),
        expanded_tables=_without(state.expanded_tables, table),
        table_columns=_without(state.table_columns, table),
        hidden_columns_by_table=_without(state.hidden_columns_by_table, table),
    )
    return _reset_history(_switch_table(next_state, first), first)


# -- navigation -----------------------------------------------------------


def select_table(state: SessionState, table: str) -> SessionState:
    if table == state.selected_table:
        return state
    return _push_history(_switch_table(state, table), table)


def go_back(state: SessionState) -> SessionState:
    if not state.can_go_back:
        return state
    return _go_to_history(state, state.history_index - 1)


def go_forward(state: SessionState) -> SessionState:
    if not state.can_go_forward:
        return state
    return _go_to_history(state, state.history_index + 1)


def _go_to_history(state: SessionState, index: int) -> SessionState:
    table = state.table_history[index]
    next_state = _switch_table(state, table)
    return replace(
        next_state,
        history_index=index,
        expanded_tables={**state.expanded_tables, table: True},
    )


def set_table_filter(state: SessionState, text: str) -> SessionState:
    """Filter the table list; keep the selection inside the filtered list."""
    next_state = replace(state, table_filter=text)
    visible = next_state.filtered_tables
    if visible and next_state.selected_table not in visible:
        first = visible[0]
        next_state = _reset_history(_switch_table(next_state, first), first)
    return next_state


def toggle_expanded(state: SessionState, table: str) -> SessionState:
    expanded = not state.expanded_tables.get(table, False)
    return replace(state, expanded_tables={**state.expanded_tables, table: expanded})


def set_all_expanded(state: SessionState, expanded: bool) -> SessionState:
    updates = {table: expanded for table in state.filtered_tables}
    return replace(state, expanded_tables={**state.expanded_tables, **updates})


def cache_columns(state: SessionState, table: str, columns: Sequence[ColumnMeta]) -> SessionState:
    return replace(state, table_columns={**state.table_columns, table: tuple(columns)})


# -- filters --------------------------------------------------------------


def set_row_filter(state: SessionState, text: str) -> SessionState:
    return replace(state, row_filter=text, page=1)


def set_column_filter(state: SessionState, column: str, text: str) -> SessionState:
    return replace(state, column_filters={**state.column_filters, column: text}, page=1)


def toggle_filter_mode(state: SessionState, column: str, mode: FilterMode) -> SessionState:
    if not state.selected_table:
        return state
    table_modes = dict(state.column_modes)
    table_modes[column] = table_modes.get(column, ColumnFilterMode()).toggled(mode)
    return replace(
        state,
        column_modes_by_table={**state.column_modes_by_table, state.selected_table: table_modes},
        page=1,
    )


# -- columns --------------------------------------------------------------


def toggle_column_pin(state: SessionState, column: str) -> SessionState:
    if not state.selected_table:
        return state
    pins = _toggle_member(state.pinned_columns, column)
    return replace(
        state,
        pinned_columns_by_table={**state.pinned_columns_by_table, state.selected_table: pins},
    )


def toggle_column_visibility(state: SessionState, table: str, column: str) -> SessionState:
    hidden = _toggle_member(state.hidden_columns_by_table.get(table, frozenset()), column)
    return replace(
        state,
        hidden_columns_by_table={**state.hidden_columns_by_table, table: hidden},
    )


def visible_columns(state: SessionState, columns: Sequence[ColumnMeta]) -> list[ColumnMeta]:
    """Columns not hidden for the selected table, pinned columns first."""
    hidden = state.hidden_columns
    base = [column for column in columns if column.name not in hidden]
    pins = state.pinned_columns
    if not pins:
        return base
    return [c for c in base if c.name in pins] + [c for c in base if c.name not in pins]


# -- paging ---------------------------------------------------------------


def page_count(row_count: int, page_size: int) -> int:
    if row_count <= 0:
        return 1
    return max(1, math.ceil(row_count / page_size))


def set_page(state: SessionState, page: int) -> SessionState:
    return replace(state, page=max(1, page))


def set_page_size(state: SessionState, page_size: int) -> SessionState:
    if page_size < 1:
        raise ValueError(f"page_size must be positive, got {page_size}")
    return replace(state, page_size=page_size)


def commit_page_draft(state: SessionState, draft: str, total_pages: int) -> SessionState:
    """Jump to a typed page number, clamped; unparsable input leaves the page as is."""
    try:
        parsed = int(draft.strip(), 10)
    except ValueError:
        return state
    return replace(state, page=min(max(parsed, 1), total_pages))


# -- rows -----------------------------------------------------------------


def toggle_row_pin(state: SessionState, key: str) -> SessionState:
    return replace(state, pinned_rows=_toggle_member(state.pinned_rows, key))


def select_row(
    state: SessionState,
    display_rows: Sequence[RowData],
    key: str,
    extend: bool = False,
) -> SessionState:
    """Focus one row, or with ``extend`` select the range from the anchor to it."""
    index = index_of(display_rows, key)
    if index is None:
        return state
    if extend and state.anchor_index is not None:
        return replace(
            state,
            selected_row_keys=keys_between(display_rows, state.anchor_index, index),
            selected_row_key=key,
        )
    return replace(
        state,
        selected_row_keys=frozenset({key}),
        selected_row_key=key,
        anchor_index=index,
    )


def clear_selection(state: SessionState) -> SessionState:
    return replace(state, selected_row_keys=frozenset(), selected_row_key=None, anchor_index=None)


def reconcile_selection(state: SessionState, rows: Sequence[RowData]) -> SessionState:
    """Carry the selection over a fresh fetch.

    Keeps the selected keys still present in ``rows``; if none survive the
    first row becomes the selection. The anchor moves to the first kept
    row's index in fetch order.
    """
    if not rows:
        return clear_selection(state)
    kept = [row for row in rows if row_key(row) in state.selected_row_keys]
    selection = kept or [rows[0]]
    first_key = row_key(selection[0])
    anchor = index_of(rows, first_key)
    return replace(
        state,
        selected_row_keys=frozenset(row_key(row) for row in selection),
        selected_row_key=first_key,
        anchor_index=anchor if anchor is not None else 0,
    )
