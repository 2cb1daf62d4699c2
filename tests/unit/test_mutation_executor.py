"""Unit tests for the mutation executor."""

from __future__ import annotations

import pytest

from db_viewer.adapters.outbound.sqlite_engine import SqliteEngine, SqliteEngineFactory
from db_viewer.application.mutation_executor import MutationExecutor
from db_viewer.application.table_reader import TableReader
from db_viewer.domain.entities import ColumnMeta, RowData
from db_viewer.infrastructure.metrics import MetricsRegistry
from db_viewer.ports.inbound import MutationError


@pytest.fixture
def engine(sample_db_bytes: bytes) -> SqliteEngine:
    engine = SqliteEngineFactory().open(sample_db_bytes)
    yield engine
    engine.close()


@pytest.fixture
def reader(engine: SqliteEngine, metrics_registry: MetricsRegistry) -> TableReader:
    return TableReader(engine, metrics_registry)


@pytest.fixture
def executor(engine: SqliteEngine, metrics_registry: MetricsRegistry) -> MutationExecutor:
    return MutationExecutor(engine, metrics_registry)


class TestSchemaMutations:
    """Tests for create/alter/drop."""

    def test_create_table_trims_name(self, executor: MutationExecutor, reader: TableReader) -> None:
        """New tables get a single integer primary key column."""
        name = executor.create_table("  notes  ", reader.list_tables())

        assert name == "notes"
        assert reader.column_meta("notes") == [ColumnMeta("id", "INTEGER", is_primary_key=True)]

    def test_create_table_with_odd_name(self, executor: MutationExecutor, reader: TableReader) -> None:
        executor.create_table('my "table"', reader.list_tables())

        assert 'my "table"' in reader.list_tables()

    @pytest.mark.parametrize(
        ("name", "message"),
        [
            ("", "Table name is required."),
            ("   ", "Table name is required."),
            ("AUTHORS", "A table with this name already exists."),
        ],
    )
    def test_create_table_validation(
        self, executor: MutationExecutor, reader: TableReader, name: str, message: str
    ) -> None:
        with pytest.raises(MutationError, match=message):
            executor.create_table(name, reader.list_tables())

    def test_add_column_defaults_to_text(self, executor: MutationExecutor, reader: TableReader) -> None:
        executor.add_column("authors", " country ", "", reader.column_meta("authors"))

        assert reader.column_meta("authors")[-1] == ColumnMeta("country", "TEXT")

    def test_add_column_keeps_declared_type(self, executor: MutationExecutor, reader: TableReader) -> None:
        executor.add_column("authors", "rating", "REAL", reader.column_meta("authors"))

        assert reader.column_meta("authors")[-1].declared_type == "REAL"

    def test_add_duplicate_column_is_case_insensitive(
        self, executor: MutationExecutor, reader: TableReader
    ) -> None:
        with pytest.raises(MutationError, match="A column with this name already exists."):
            executor.add_column("authors", "Name", "TEXT", reader.column_meta("authors"))

    def test_add_column_requires_name(self, executor: MutationExecutor) -> None:
        with pytest.raises(MutationError, match="Column name is required."):
            executor.add_column("authors", " ", "TEXT", [])

    def test_drop_table(self, executor: MutationExecutor, reader: TableReader) -> None:
        executor.drop_table("numbers")

        assert reader.list_tables() == ["authors", "tags"]

    def test_engine_error_is_passed_through(self, executor: MutationExecutor) -> None:
        with pytest.raises(MutationError, match="no such table: missing"):
            executor.drop_table("missing")


class TestRowMutations:
    """Tests for insert/update/delete."""

    def test_insert_binds_typed_values(self, executor: MutationExecutor, reader: TableReader) -> None:
        """Numeric columns bind numbers, blank text binds NULL."""
        columns = reader.column_meta("authors")

        executor.insert_row("authors", columns, {"id": "", "name": "Banks", "born": "1954"})

        row = reader.fetch_rows("authors", 1, 50)[-1]
        assert row.as_dict() == {"id": 4, "name": "Banks", "born": 1954}

    def test_insert_all_blank_uses_defaults(self, executor: MutationExecutor, reader: TableReader) -> None:
        columns = reader.column_meta("authors")

        executor.insert_row("authors", columns, {})

        row = reader.fetch_rows("authors", 1, 50)[-1]
        assert row.as_dict() == {"id": 4, "name": None, "born": None}

    def test_insert_without_columns_fails(self, executor: MutationExecutor) -> None:
        with pytest.raises(MutationError, match="No columns to insert."):
            executor.insert_row("authors", [], {"name": "x"})

    def test_insert_constraint_violation(self, executor: MutationExecutor, reader: TableReader) -> None:
        columns = reader.column_meta("tags")

        with pytest.raises(MutationError, match="UNIQUE constraint failed"):
            executor.insert_row("tags", columns, {"tag": "alpha", "weight": "9"})
        assert reader.row_count("tags") == 3

    def test_update_by_rowid(self, executor: MutationExecutor, reader: TableReader) -> None:
        columns = reader.column_meta("authors")
        row = reader.fetch_rows("authors", 1, 50)[1]

        executor.update_row("authors", row, columns, {"id": "2", "name": "Ursula", "born": "1929"})

        assert reader.fetch_rows("authors", 1, 50)[1]["name"] == "Ursula"

    def test_update_blank_sets_null(self, executor: MutationExecutor, reader: TableReader) -> None:
        columns = reader.column_meta("authors")
        row = reader.fetch_rows("authors", 1, 50)[0]

        executor.update_row("authors", row, columns, {"id": "1", "name": "Tolkien", "born": ""})

        assert reader.fetch_rows("authors", 1, 50)[0]["born"] is None

    def test_update_without_rowid_is_rejected(
        self, executor: MutationExecutor, reader: TableReader, metrics_registry: MetricsRegistry
    ) -> None:
        row = reader.fetch_rows("tags", 1, 50)[0]

        with pytest.raises(MutationError, match=r"Edit not supported \(no ROWID\)\."):
            executor.update_row("tags", row, reader.column_meta("tags"), {"tag": "z", "weight": "1"})
        assert metrics_registry.registry.get_sample_value(
            "db_viewer_mutations_total", {"operation": "update", "status": "error"}
        ) is None

    def test_delete_by_rowid(self, executor: MutationExecutor, reader: TableReader) -> None:
        row = reader.fetch_rows("authors", 1, 50)[0]

        executor.delete_row("authors", row)

        assert [r["name"] for r in reader.fetch_rows("authors", 1, 50)] == ["Le Guin", "Pratchett"]

    def test_delete_without_rowid_is_rejected(self, executor: MutationExecutor) -> None:
        row = RowData(("tag",), ("alpha",), position=1)

        with pytest.raises(MutationError, match=r"Delete not supported \(no ROWID\)\."):
            executor.delete_row("tags", row)

    def test_successful_mutations_are_counted(
        self, executor: MutationExecutor, reader: TableReader, metrics_registry: MetricsRegistry
    ) -> None:
        executor.delete_row("authors", reader.fetch_rows("authors", 1, 50)[0])

        assert metrics_registry.registry.get_sample_value(
            "db_viewer_mutations_total", {"operation": "delete", "status": "success"}
        ) == 1.0
