"""Turns edit intents into statements against the engine.

Every operation either succeeds completely or raises ``MutationError``
without having changed the database: validation happens before any
statement runs, and each operation issues exactly one statement.

Engine messages are passed through verbatim so users see what SQLite said.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence

from db_viewer.domain.entities import ColumnMeta, RowData
from db_viewer.domain.services import normalize_input_value, quote_identifier
from db_viewer.domain.value_objects import SqlValue
from db_viewer.infrastructure.logging import get_logger
from db_viewer.infrastructure.metrics import MetricsRegistry, get_metrics
from db_viewer.infrastructure.tracing import trace_span
from db_viewer.ports.inbound import MutationError
from db_viewer.ports.outbound import EngineError, SqlEngine

logger = get_logger(__name__)

NOT_READY_MESSAGE = "Database not ready."
DEFAULT_COLUMN_TYPE = "TEXT"


class MutationExecutor:
    """Executes create/alter/drop and row edits on one engine."""

    def __init__(self, engine: SqlEngine, metrics: MetricsRegistry | None = None) -> None:
        self._engine = engine
        self._metrics = metrics or get_metrics()

    def _execute(self, operation: str, table: str, sql: str, params: Sequence[SqlValue] = ()) -> None:
        with trace_span(f"mutation.{operation}", {"table": table}):
            try:
                self._engine.exec(sql, params)
            except EngineError as e:
                self._metrics.mutations_total.labels(operation=operation, status="error").inc()
                logger.warning("mutation_failed", operation=operation, table=table, error=str(e))
                raise MutationError(str(e)) from e
        self._metrics.mutations_total.labels(operation=operation, status="success").inc()
        logger.debug("mutation_applied", operation=operation, table=table)

    # -- schema -----------------------------------------------------------

    def create_table(self, name: str, existing_tables: Iterable[str]) -> str:
        """Create a table with a single ``id INTEGER PRIMARY KEY`` column.

        Args:
            name: Requested name, trimmed before use.
            existing_tables: Current table names; compared case-insensitively.

        Returns:
            The trimmed name of the new table.

        Raises:
            MutationError: If the name is empty, taken, or rejected.
        """
        trimmed = name.strip()
        if not trimmed:
            raise MutationError("Table name is required.")
        if any(table.lower() == trimmed.lower() for table in existing_tables):
            raise MutationError("A table with this name already exists.")
        self._execute(
            "create_table",
            trimmed,
            f"CREATE TABLE {quote_identifier(trimmed)} (id INTEGER PRIMARY KEY)",
        )
        return trimmed

    def add_column(
        self,
        table: str,
        name: str,
        declared_type: str,
        existing_columns: Iterable[ColumnMeta],
    ) -> str:
        """Append a column to ``table``. Returns the trimmed column name.

        ``declared_type`` is placed in the statement as typed (``TEXT`` when
        blank); SQLite accepts arbitrary type names.
        """
        trimmed = name.strip()
        if not trimmed:
            raise MutationError("Column name is required.")
        if any(column.name.lower() == trimmed.lower() for column in existing_columns):
            raise MutationError("A column with this name already exists.")
        column_type = declared_type.strip() or DEFAULT_COLUMN_TYPE
        self._execute(
            "add_column",
            table,
            f"ALTER TABLE {quote_identifier(table)} ADD COLUMN {quote_identifier(trimmed)} {column_type}",
        )
        return trimmed

    def drop_table(self, table: str) -> None:
        self._execute("drop_table", table, f"DROP TABLE {quote_identifier(table)}")

    # -- rows -------------------------------------------------------------

    def insert_row(
        self,
        table: str,
        columns: Sequence[ColumnMeta],
        values: Mapping[str, str],
    ) -> None:
        """Insert one row from form text.

        When every value is blank the row is inserted with ``DEFAULT VALUES``
        so column defaults and the row identifier apply.
        """
        if not columns:
            raise MutationError("No columns to insert.")
        if not any((values.get(column.name) or "").strip() for column in columns):
            self._execute("insert", table, f"INSERT INTO {quote_identifier(table)} DEFAULT VALUES")
            return
        names = ", ".join(quote_identifier(column.name) for column in columns)
        placeholders = ", ".join("?" for _ in columns)
        params = [
            normalize_input_value(values.get(column.name) or "", column.declared_type)
            for column in columns
        ]
        self._execute(
            "insert",
            table,
            f"INSERT INTO {quote_identifier(table)} ({names}) VALUES ({placeholders})",
            params,
        )

    def update_row(
        self,
        table: str,
        row: RowData,
        columns: Sequence[ColumnMeta],
        values: Mapping[str, str],
    ) -> None:
        """Overwrite every declared column of ``row`` from form text.

        Raises:
            MutationError: If the row has no native identifier.
        """
        row_id = row.native_id
        if row_id is None:
            raise MutationError("Edit not supported (no ROWID).")
        assignments = ", ".join(f"{quote_identifier(column.name)} = ?" for column in columns)
        params: list[SqlValue] = [
            normalize_input_value(values.get(column.name) or "", column.declared_type)
            for column in columns
        ]
        params.append(row_id)
        self._execute(
            "update",
            table,
            f"UPDATE {quote_identifier(table)} SET {assignments} WHERE rowid = ?",
            params,
        )

    def delete_row(self, table: str, row: RowData) -> None:
        row_id = row.native_id
        if row_id is None:
            raise MutationError("Delete not supported (no ROWID).")
        self._execute("delete", table, f"DELETE FROM {quote_identifier(table)} WHERE rowid = ?", [row_id])
