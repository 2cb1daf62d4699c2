"""Unit tests for session state transitions."""

from __future__ import annotations

import pytest

from db_viewer.domain.entities import ColumnMeta, RowData, SessionState
from db_viewer.domain.services import session_reducer as reducer
from db_viewer.domain.value_objects import ColumnFilterMode, FilterMode


def rows(count: int) -> list[RowData]:
    return [RowData(("v",), (i,), position=i, row_id=i) for i in range(1, count + 1)]


@pytest.fixture
def state() -> SessionState:
    return reducer.loaded(SessionState(page_size=25), ["alpha", "beta", "gamma"])


@pytest.mark.unit
class TestLoaded:
    """Tests for document (re)load."""

    def test_selects_first_table_and_keeps_page_size(self, state: SessionState) -> None:
        assert state.selected_table == "alpha"
        assert state.page_size == 25
        assert state.table_history == ("alpha",)
        assert state.history_index == 0

    def test_empty_document(self) -> None:
        empty = reducer.loaded(SessionState(), [])

        assert empty.selected_table == ""
        assert empty.table_history == ()
        assert not empty.can_go_back

    def test_reload_discards_view_state(self, state: SessionState) -> None:
        dirty = reducer.toggle_row_pin(reducer.set_row_filter(state, "x"), "id:1")

        fresh = reducer.loaded(dirty, ["alpha"])

        assert fresh.row_filter == ""
        assert fresh.pinned_rows == frozenset()


@pytest.mark.unit
class TestNavigation:
    """Tests for table selection and history."""

    def test_select_resets_table_scoped_view(self, state: SessionState) -> None:
        busy = reducer.set_column_filter(reducer.set_row_filter(state, "x"), "v", "y")
        busy = reducer.set_page(busy, 4)

        moved = reducer.select_table(busy, "beta")

        assert moved.selected_table == "beta"
        assert moved.page == 1
        assert moved.row_filter == ""
        assert moved.column_filters == {}

    def test_reselecting_same_table_is_noop(self, state: SessionState) -> None:
        assert reducer.select_table(state, "alpha") is state

    def test_back_and_forward(self, state: SessionState) -> None:
        state = reducer.select_table(state, "beta")
        state = reducer.select_table(state, "gamma")

        back = reducer.go_back(state)
        assert back.selected_table == "beta"
        assert back.can_go_forward
        assert back.expanded_tables["beta"] is True

        forward = reducer.go_forward(back)
        assert forward.selected_table == "gamma"
        assert not forward.can_go_forward

    def test_selecting_after_back_truncates_forward_history(self, state: SessionState) -> None:
        state = reducer.select_table(state, "beta")
        state = reducer.select_table(state, "gamma")
        state = reducer.go_back(reducer.go_back(state))

        state = reducer.select_table(state, "gamma")

        assert state.table_history == ("alpha", "gamma")
        assert not state.can_go_forward

    def test_back_at_start_is_noop(self, state: SessionState) -> None:
        assert reducer.go_back(state) is state
        assert reducer.go_forward(state) is state

    def test_table_filter_moves_selection_into_view(self, state: SessionState) -> None:
        filtered = reducer.set_table_filter(state, "GAM")

        assert filtered.filtered_tables == ("gamma",)
        assert filtered.selected_table == "gamma"
        assert filtered.table_history == ("gamma",)

    def test_table_filter_matching_nothing_keeps_selection(self, state: SessionState) -> None:
        filtered = reducer.set_table_filter(state, "zzz")

        assert filtered.filtered_tables == ()
        assert filtered.selected_table == "alpha"

    def test_expand_all_only_touches_visible_tables(self, state: SessionState) -> None:
        state = reducer.set_table_filter(state, "a")
        expanded = reducer.set_all_expanded(state, True)

        assert expanded.expanded_tables == {"alpha": True, "beta": True, "gamma": True}
        filtered = reducer.set_table_filter(state, "bet")
        assert reducer.set_all_expanded(filtered, True).expanded_tables == {"beta": True}

    def test_toggle_expanded(self, state: SessionState) -> None:
        once = reducer.toggle_expanded(state, "beta")

        assert once.expanded_tables["beta"] is True
        assert reducer.toggle_expanded(once, "beta").expanded_tables["beta"] is False


@pytest.mark.unit
class TestSchemaChanges:
    """Tests for create/drop table transitions."""

    def test_table_created_selects_and_expands(self, state: SessionState) -> None:
        columns = [ColumnMeta("id", "INTEGER", is_primary_key=True)]

        created = reducer.table_created(state, "delta", ["alpha", "beta", "delta", "gamma"], columns)

        assert created.selected_table == "delta"
        assert created.expanded_tables["delta"] is True
        assert created.table_columns["delta"] == tuple(columns)
        assert created.table_history[-1] == "delta"

    def test_table_dropped_purges_cached_state(self, state: SessionState) -> None:
        state = reducer.select_table(state, "beta")
        state = reducer.toggle_expanded(state, "beta")
        state = reducer.toggle_column_visibility(state, "beta", "v")
        state = reducer.cache_columns(state, "beta", [ColumnMeta("v")])

        dropped = reducer.table_dropped(state, "beta", ["alpha", "gamma"])

        assert dropped.tables == ("alpha", "gamma")
        assert dropped.selected_table == "alpha"
        assert "beta" not in dropped.expanded_tables
        assert "beta" not in dropped.table_columns
        assert "beta" not in dropped.hidden_columns_by_table
        assert dropped.table_history == ("alpha",)


@pytest.mark.unit
class TestFiltersAndColumns:
    """Tests for filter inputs and column pin/visibility."""

    def test_filters_reset_page(self, state: SessionState) -> None:
        paged = reducer.set_page(state, 3)

        assert reducer.set_row_filter(paged, "x").page == 1
        assert reducer.set_column_filter(paged, "v", "x").page == 1
        assert reducer.toggle_filter_mode(paged, "v", FilterMode.EXACT).page == 1

    def test_filter_modes_are_kept_per_table(self, state: SessionState) -> None:
        state = reducer.toggle_filter_mode(state, "v", FilterMode.NON_EMPTY)
        state = reducer.select_table(state, "beta")

        assert state.column_modes == {}
        back = reducer.select_table(state, "alpha")
        assert back.column_modes == {"v": ColumnFilterMode(non_empty=True)}

    def test_visible_columns_pins_first_and_hides(self, state: SessionState) -> None:
        columns = [ColumnMeta("a"), ColumnMeta("b"), ColumnMeta("c")]
        state = reducer.toggle_column_pin(state, "c")
        state = reducer.toggle_column_visibility(state, "alpha", "a")

        assert [c.name for c in reducer.visible_columns(state, columns)] == ["c", "b"]

    def test_unpin_column(self, state: SessionState) -> None:
        state = reducer.toggle_column_pin(reducer.toggle_column_pin(state, "a"), "a")

        assert state.pinned_columns == frozenset()


@pytest.mark.unit
class TestPaging:
    """Tests for page arithmetic."""

    @pytest.mark.parametrize(
        ("row_count", "page_size", "expected"),
        [(0, 50, 1), (1, 50, 1), (50, 50, 1), (51, 50, 2), (120, 25, 5)],
    )
    def test_page_count(self, row_count: int, page_size: int, expected: int) -> None:
        assert reducer.page_count(row_count, page_size) == expected

    def test_page_never_below_one(self, state: SessionState) -> None:
        assert reducer.set_page(state, -3).page == 1

    def test_page_size_must_be_positive(self, state: SessionState) -> None:
        with pytest.raises(ValueError):
            reducer.set_page_size(state, 0)

    def test_commit_page_draft_clamps(self, state: SessionState) -> None:
        assert reducer.commit_page_draft(state, " 9 ", 4).page == 4
        assert reducer.commit_page_draft(state, "0", 4).page == 1
        assert reducer.commit_page_draft(state, "3", 4).page == 3

    def test_unparsable_draft_is_ignored(self, state: SessionState) -> None:
        assert reducer.commit_page_draft(state, "two", 4) is state


@pytest.mark.unit
class TestRowSelection:
    """Tests for row focus, range selection and reconciliation."""

    def test_single_select_sets_anchor(self, state: SessionState) -> None:
        selected = reducer.select_row(state, rows(5), "id:3")

        assert selected.selected_row_keys == frozenset({"id:3"})
        assert selected.selected_row_key == "id:3"
        assert selected.anchor_index == 2

    def test_extend_selects_range_from_anchor(self, state: SessionState) -> None:
        display = rows(5)
        state = reducer.select_row(state, display, "id:4")

        extended = reducer.select_row(state, display, "id:2", extend=True)

        assert extended.selected_row_keys == frozenset({"id:2", "id:3", "id:4"})
        assert extended.selected_row_key == "id:2"
        assert extended.anchor_index == 3

    def test_extend_without_anchor_is_single_select(self, state: SessionState) -> None:
        selected = reducer.select_row(state, rows(3), "id:2", extend=True)

        assert selected.selected_row_keys == frozenset({"id:2"})

    def test_unknown_key_is_noop(self, state: SessionState) -> None:
        assert reducer.select_row(state, rows(3), "id:99") is state

    def test_reconcile_keeps_surviving_keys(self, state: SessionState) -> None:
        display = rows(5)
        state = reducer.select_row(state, display, "id:2")
        state = reducer.select_row(state, display, "id:4", extend=True)

        reconciled = reducer.reconcile_selection(state, [r for r in display if r.row_id != 3])

        assert reconciled.selected_row_keys == frozenset({"id:2", "id:4"})
        assert reconciled.selected_row_key == "id:2"
        assert reconciled.anchor_index == 1

    def test_reconcile_falls_back_to_first_row(self, state: SessionState) -> None:
        state = reducer.select_row(state, rows(5), "id:5")

        reconciled = reducer.reconcile_selection(state, rows(3))

        assert reconciled.selected_row_keys == frozenset({"id:1"})
        assert reconciled.anchor_index == 0

    def test_reconcile_with_no_rows_clears(self, state: SessionState) -> None:
        state = reducer.select_row(state, rows(2), "id:1")

        cleared = reducer.reconcile_selection(state, [])

        assert cleared.selected_row_keys == frozenset()
        assert cleared.selected_row_key is None
        assert cleared.anchor_index is None

    def test_toggle_row_pin(self, state: SessionState) -> None:
        pinned = reducer.toggle_row_pin(state, "id:1")

        assert pinned.pinned_rows == frozenset({"id:1"})
        assert reducer.toggle_row_pin(pinned, "id:1").pinned_rows == frozenset()

    def test_states_are_not_mutated(self, state: SessionState) -> None:
        before = dict(state.column_filters)

        reducer.set_column_filter(state, "v", "x")

        assert state.column_filters == before
