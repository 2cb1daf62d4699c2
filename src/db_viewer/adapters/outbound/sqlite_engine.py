"""SQLite implementation of the SqlEngine port.

The whole database lives in an in-memory connection built from the document
bytes with ``Connection.deserialize``; ``export`` takes a fresh image with
``Connection.serialize``. Nothing is ever written to disk by the engine.

Connections run in autocommit mode (``isolation_level=None``): every
statement the viewer issues stands alone, so an exported image always
contains every statement that succeeded before it.

Thread Safety:
    None. The connection is owned by one session and used from one loop.

References:
    - https://docs.python.org/3/library/sqlite3.html#sqlite3.Connection.deserialize
"""

from __future__ import annotations

import sqlite3
from collections.abc import Sequence

from db_viewer.domain.value_objects import SqlValue
from db_viewer.infrastructure.logging import get_logger
from db_viewer.ports.outbound import EngineError, ResultSet

logger = get_logger(__name__)

# Reading the schema forces SQLite to parse the image header, so garbage
# bytes are rejected at open time rather than on the first query.
_SCHEMA_CHECK_SQL = "SELECT count(*) FROM sqlite_master"


class SqliteEngine:
    """In-memory SQLite database holding one document.

    Attributes:
        is_closed: Whether close() has been called.
    """

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._conn: sqlite3.Connection | None = connection

    @property
    def is_closed(self) -> bool:
        return self._conn is None

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise EngineError("Database is closed")
        return self._conn

    def exec(self, sql: str, params: Sequence[SqlValue] = ()) -> list[ResultSet]:
        conn = self._connection()
        try:
            cursor = conn.execute(sql, tuple(params))
            if cursor.description is None:
                return []
            columns = [description[0] for description in cursor.description]
            values = [list(row) for row in cursor.fetchall()]
        except (sqlite3.Error, OverflowError) as e:
            raise EngineError(str(e)) from e
        return [ResultSet(columns=columns, values=values)]

    def export(self) -> bytes:
        conn = self._connection()
        try:
            return bytes(conn.serialize())
        except sqlite3.Error as e:
            raise EngineError(str(e)) from e

    def close(self) -> None:
        if self._conn is None:
            return
        self._conn.close()
        self._conn = None

    def __enter__(self) -> SqliteEngine:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()


class SqliteEngineFactory:
    """Opens SqliteEngine instances over database file images."""

    def open(self, data: bytes) -> SqliteEngine:
        conn = sqlite3.connect(":memory:", isolation_level=None)
        try:
            if data:
                conn.deserialize(data)
            conn.execute(_SCHEMA_CHECK_SQL).fetchone()
        except sqlite3.Error as e:
            conn.close()
            logger.warning("engine_open_failed", size=len(data), error=str(e))
            raise EngineError(str(e)) from e
        return SqliteEngine(conn)
