"""Unit tests for the in-memory SQLite engine."""

from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from db_viewer.adapters.outbound.sqlite_engine import SqliteEngine, SqliteEngineFactory
from db_viewer.ports.outbound import EngineError


class TestSqliteEngineFactory:
    """Tests for opening engines over database images."""

    def test_open_image(self, sample_db_bytes: bytes) -> None:
        """A database file image opens with its tables intact."""
        engine = SqliteEngineFactory().open(sample_db_bytes)

        results = engine.exec("SELECT name FROM authors ORDER BY id")

        assert results[0].columns == ["name"]
        assert results[0].values == [["Tolkien"], ["Le Guin"], ["Pratchett"]]
        engine.close()

    def test_open_empty_bytes(self) -> None:
        """Empty bytes open an empty database."""
        with SqliteEngineFactory().open(b"") as engine:
            assert engine.exec("SELECT count(*) FROM sqlite_master")[0].scalar() == 0

    def test_open_garbage_raises(self) -> None:
        with pytest.raises(EngineError):
            SqliteEngineFactory().open(b"this is not a database file at all" * 200)


class TestSqliteEngine:
    """Tests for statement execution and export."""

    @pytest.fixture
    def engine(self, sample_db_bytes: bytes) -> SqliteEngine:
        engine = SqliteEngineFactory().open(sample_db_bytes)
        yield engine
        engine.close()

    def test_statement_without_rows_returns_empty(self, engine: SqliteEngine) -> None:
        assert engine.exec("UPDATE authors SET born = born + 1") == []

    def test_params_are_bound(self, engine: SqliteEngine) -> None:
        results = engine.exec("SELECT name FROM authors WHERE id = ?", [2])

        assert results[0].scalar() == "Le Guin"

    def test_select_without_matches_has_columns(self, engine: SqliteEngine) -> None:
        results = engine.exec("SELECT id, name FROM authors WHERE id > 100")

        assert results[0].columns == ["id", "name"]
        assert results[0].values == []
        assert results[0].scalar() is None

    def test_engine_errors_keep_sqlite_text(self, engine: SqliteEngine) -> None:
        with pytest.raises(EngineError, match="no such table: missing"):
            engine.exec("SELECT * FROM missing")

    def test_unbindable_integer_is_an_engine_error(self, engine: SqliteEngine) -> None:
        with pytest.raises(EngineError, match="too large"):
            engine.exec("UPDATE authors SET born = ? WHERE id = 1", [10**20])

    def test_export_round_trips_edits(self, engine: SqliteEngine, temp_dir: Path) -> None:
        """Exported bytes are a valid database file with every applied edit."""
        engine.exec("INSERT INTO authors (name, born) VALUES (?, ?)", ["Banks", 1954])

        image = engine.export()
        path = temp_dir / "exported.db"
        path.write_bytes(image)

        conn = sqlite3.connect(path)
        try:
            count = conn.execute("SELECT count(*) FROM authors").fetchone()[0]
        finally:
            conn.close()
        assert image[:16] == b"SQLite format 3\x00"
        assert count == 4

    def test_close_is_idempotent(self, engine: SqliteEngine) -> None:
        engine.close()
        engine.close()

        assert engine.is_closed
        with pytest.raises(EngineError, match="Database is closed"):
            engine.exec("SELECT 1")
        with pytest.raises(EngineError):
            engine.export()
