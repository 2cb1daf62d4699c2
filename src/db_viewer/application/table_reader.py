"""Engine-backed reads: table list, counts, column metadata and row pages.

All statements are built from quoted identifiers and the parameterized
filter clause of ``build_filter``; user text never reaches the SQL text.
"""

from __future__ import annotations

import math
import time
from collections.abc import Sequence

from db_viewer.domain.entities import ROW_ID_COLUMN, ColumnMeta, RowData
from db_viewer.domain.services import quote_identifier
from db_viewer.domain.services.value_coercion import parse_number
from db_viewer.domain.value_objects import ROW_ID_ALIAS, UNFILTERED, FilterClause, SqlValue
from db_viewer.infrastructure.logging import get_logger
from db_viewer.infrastructure.metrics import MetricsRegistry, get_metrics
from db_viewer.ports.inbound import QueryError
from db_viewer.ports.outbound import EngineError, ResultSet, SqlEngine

logger = get_logger(__name__)

TABLES_SQL = (
    "SELECT name FROM sqlite_master "
    "WHERE type='table' AND name NOT LIKE 'sqlite_%' ORDER BY name"
)


def coerce_row_id(value: SqlValue) -> int | float:
    """Numeric form of a projected row identifier.

    Absent becomes 0, numeric text its number, anything else NaN (which
    ``RowData.native_id`` then treats as no identifier).
    """
    if value is None:
        return 0
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        number = parse_number(value) if value.strip() else 0
        return math.nan if number is None else number
    return math.nan


class TableReader:
    """Runs the viewer's read statements against one engine.

    Example:
        reader = TableReader(engine)
        tables = reader.list_tables()
        columns = reader.column_meta(tables[0])
        clause = build_filter(columns, "alice", {}, {})
        total = reader.row_count(tables[0], clause)
        rows = reader.fetch_rows(tables[0], 1, 50, clause)
    """

    def __init__(self, engine: SqlEngine, metrics: MetricsRegistry | None = None) -> None:
        self._engine = engine
        self._metrics = metrics or get_metrics()

    def _run(self, query_type: str, sql: str, params: Sequence[SqlValue] = ()) -> list[ResultSet]:
        start = time.perf_counter()
        try:
            results = self._engine.exec(sql, params)
        except EngineError:
            self._metrics.queries_total.labels(query_type=query_type, status="error").inc()
            raise
        self._metrics.queries_total.labels(query_type=query_type, status="success").inc()
        self._metrics.query_latency_seconds.labels(query_type=query_type).observe(
            time.perf_counter() - start
        )
        return results

    def _read(self, query_type: str, sql: str, params: Sequence[SqlValue] = ()) -> list[ResultSet]:
        try:
            return self._run(query_type, sql, params)
        except EngineError as e:
            logger.warning("query_failed", query_type=query_type, error=str(e))
            raise QueryError(str(e)) from e

    def list_tables(self) -> list[str]:
        """User tables ordered by name, internal ``sqlite_`` tables excluded."""
        results = self._read("tables", TABLES_SQL)
        if not results:
            return []
        return [str(row[0]) for row in results[0].values]

    def row_count(self, table: str, flt: FilterClause = UNFILTERED) -> int:
        """Rows of ``table`` matching the filter; 0 when the count is unusable."""
        sql = f"SELECT COUNT(*) AS count FROM {quote_identifier(table)}"
        if flt.clause:
            sql = f"{sql} {flt.clause}"
        results = self._read("count", sql, flt.params)
        value = results[0].scalar() if results else None
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return 0
        if not math.isfinite(value):
            return 0
        return int(value)

    def column_meta(self, table: str) -> list[ColumnMeta]:
        """Declared columns in declaration order."""
        results = self._read("meta", f"PRAGMA table_info({quote_identifier(table)})")
        if not results:
            return []
        result = results[0]
        name_idx = result.columns.index("name")
        type_idx = result.columns.index("type")
        pk_idx = result.columns.index("pk")
        return [
            ColumnMeta(
                name=str(row[name_idx]),
                declared_type=str(row[type_idx] or ""),
                is_primary_key=bool(row[pk_idx]),
            )
            for row in result.values
        ]

    def sidebar_columns(self, table: str) -> list[ColumnMeta]:
        """Declared columns preceded by the synthetic ROWID column."""
        return [ROW_ID_COLUMN, *self.column_meta(table)]

    def fetch_rows(
        self,
        table: str,
        page: int,
        page_size: int,
        flt: FilterClause = UNFILTERED,
    ) -> list[RowData]:
        """Fetch one page of rows.

        The row identifier is projected first; tables that reject it
        (``WITHOUT ROWID`` tables, views) are re-read without it and their
        rows carry no identifier.

        Raises:
            QueryError: If even the plain select is rejected.
        """
        offset = max(page - 1, 0) * page_size
        tail = f"FROM {quote_identifier(table)}"
        if flt.clause:
            tail = f"{tail} {flt.clause}"
        tail = f"{tail} LIMIT {int(page_size)} OFFSET {int(offset)}"

        try:
            results = self._run("rows", f"SELECT rowid AS {ROW_ID_ALIAS}, * {tail}", flt.params)
        except EngineError as e:
            logger.info("rowid_fallback", table=table, error=str(e))
            self._metrics.rowid_fallbacks_total.inc()
            results = self._read("rows", f"SELECT * {tail}", flt.params)
            return self._to_rows(results, offset, with_row_id=False)
        return self._to_rows(results, offset, with_row_id=True)

    @staticmethod
    def _to_rows(results: list[ResultSet], offset: int, with_row_id: bool) -> list[RowData]:
        if not results:
            return []
        result = results[0]
        if not with_row_id:
            columns = tuple(result.columns)
            return [
                RowData(columns=columns, values=tuple(values), position=offset + index + 1)
                for index, values in enumerate(result.values)
            ]
        columns = tuple(result.columns[1:])
        return [
            RowData(
                columns=columns,
                values=tuple(values[1:]),
                position=offset + index + 1,
                row_id=coerce_row_id(values[0]),
            )
            for index, values in enumerate(result.values)
        ]
