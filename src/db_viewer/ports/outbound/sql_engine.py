"""SQL Engine port for the in-process database.

The viewer never talks to a concrete database library. Everything it needs
from an engine is three operations: run one statement, serialize the whole
database to bytes, release it.

References:
    - sqlite3.Connection.serialize / deserialize (Python >= 3.11)
"""

from __future__ import annotations

from abc import abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Protocol

from db_viewer.domain.value_objects import SqlValue


@dataclass
class ResultSet:
    """Columns and value rows produced by one statement."""

    columns: list[str] = field(default_factory=list)
    values: list[list[SqlValue]] = field(default_factory=list)

    def scalar(self) -> SqlValue:
        """First value of the first row, or None if there is none."""
        if not self.values or not self.values[0]:
            return None
        return self.values[0][0]


class SqlEngine(Protocol):
    """Protocol for an in-memory SQL engine holding one database.

    Thread Safety:
        None. One engine is owned by one document session and is only
        used from that session's event loop.
    """

    @abstractmethod
    def exec(self, sql: str, params: Sequence[SqlValue] = ()) -> list[ResultSet]:
        """Execute one statement.

        Args:
            sql: The statement text, with ``?`` placeholders.
            params: Positional bind parameters.

        Returns:
            One result set for statements that produce rows, otherwise an
            empty list.

        Raises:
            EngineError: If the engine rejects the statement.
        """
        ...

    @abstractmethod
    def export(self) -> bytes:
        """Serialize the whole database to the bytes of a database file."""
        ...

    @abstractmethod
    def close(self) -> None:
        """Release the database. The engine is unusable afterwards."""
        ...


class SqlEngineFactory(Protocol):
    """Protocol for opening engines over document bytes."""

    @abstractmethod
    def open(self, data: bytes) -> SqlEngine:
        """Open an engine over a database file image.

        Empty ``data`` opens an empty database.

        Raises:
            EngineError: If the bytes are not a usable database.
        """
        ...


class EngineError(Exception):
    """Raised when the engine rejects a statement or a database image.

    The message is the engine's own text and is shown to users verbatim.
    """

    pass
