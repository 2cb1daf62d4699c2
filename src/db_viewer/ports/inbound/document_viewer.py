"""Document Viewer port - what presentation surfaces can ask of a session.

This inbound port is the contract between a presentation surface (the HTTP
adapter, a test, a future UI) and one open document. The surface never sees
the engine; it reads ``TableView`` snapshots and sends intents.

Error taxonomy:
    - LoadError: the document bytes could not be turned into a database.
      The session stays in the ERROR load status until a fresh load.
    - QueryError: a generated read statement was rejected.
    - MutationError: an edit was rejected, or needs a row identifier the
      row does not have. Nothing was changed.
    - SaveError: the owner could not persist the bytes. Reported back as a
      failed acknowledgment and shown as transient status.
"""

from __future__ import annotations

from abc import abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

from db_viewer.domain.entities import ColumnMeta, RowData, SessionState
from db_viewer.domain.value_objects import ExportFormat, ExportPayload, FilterMode, LoadStatus, SaveState


@dataclass
class TableView:
    """Snapshot of the selected table as currently filtered and paged.

    ``rows`` are in fetch order; ``display_rows`` put pinned rows first.
    ``columns`` are all declared columns, ``visible_columns`` drop hidden
    ones and put pinned ones first.
    """

    table: str = ""
    columns: list[ColumnMeta] = field(default_factory=list)
    visible_columns: list[ColumnMeta] = field(default_factory=list)
    rows: list[RowData] = field(default_factory=list)
    display_rows: list[RowData] = field(default_factory=list)
    row_count: int = 0
    page: int = 1
    page_size: int = 0
    page_count: int = 1


class DocumentViewer(Protocol):
    """Protocol for one open document as seen by a presentation surface.

    Intents that change what is shown re-read the current page before they
    return, so ``view()`` is always consistent with ``state``.
    """

    # -- lifecycle ------------------------------------------------------------

    @abstractmethod
    def start(self) -> None:
        """Tell the owner the surface is ready for config and bytes."""
        ...

    @abstractmethod
    def load(self, name: str, data: Any) -> None:
        """Open ``data`` as the database named ``name``.

        A payload that cannot be loaded leaves the viewer in the ERROR load
        status with ``load_error`` set; nothing is raised.
        """
        ...

    @abstractmethod
    def refresh(self) -> None:
        """Ask the owner for the current bytes again."""
        ...

    @abstractmethod
    def close(self) -> None:
        ...

    # -- status ---------------------------------------------------------------

    @property
    @abstractmethod
    def state(self) -> SessionState:
        """Current session state."""
        ...

    @property
    @abstractmethod
    def load_status(self) -> LoadStatus:
        ...

    @property
    @abstractmethod
    def load_error(self) -> str | None:
        ...

    @property
    @abstractmethod
    def status_message(self) -> str | None:
        """Transient status text (save progress, row pinned, ...)."""
        ...

    @property
    @abstractmethod
    def save_state(self) -> SaveState | None:
        ...

    @property
    @abstractmethod
    def has_database(self) -> bool:
        ...

    @property
    @abstractmethod
    def document_name(self) -> str:
        ...

    @property
    @abstractmethod
    def display_name(self) -> str:
        ...

    @property
    @abstractmethod
    def version(self) -> str:
        ...

    @property
    @abstractmethod
    def export_format(self) -> ExportFormat:
        ...

    # -- tables and navigation ------------------------------------------------

    @abstractmethod
    def view(self) -> TableView:
        """Return the current table view."""
        ...

    @abstractmethod
    def table_columns(self, table: str) -> list[ColumnMeta]:
        """Columns of ``table`` for the table tree, synthetic ROWID first."""
        ...

    @abstractmethod
    def select_table(self, table: str) -> None:
        """Switch to ``table``.

        Raises:
            TableNotFoundError: If the document has no such table.
        """
        ...

    @abstractmethod
    def go_back(self) -> None:
        ...

    @abstractmethod
    def go_forward(self) -> None:
        ...

    @abstractmethod
    def set_table_filter(self, text: str) -> None:
        ...

    @abstractmethod
    def toggle_expanded(self, table: str) -> None:
        ...

    @abstractmethod
    def toggle_all_expanded(self) -> None:
        ...

    # -- filters, columns and paging ------------------------------------------

    @abstractmethod
    def set_row_filter(self, text: str) -> None:
        ...

    @abstractmethod
    def set_column_filter(self, column: str, text: str) -> None:
        ...

    @abstractmethod
    def toggle_filter_mode(self, column: str, mode: FilterMode) -> None:
        ...

    @abstractmethod
    def toggle_column_pin(self, column: str) -> None:
        ...

    @abstractmethod
    def toggle_column_visibility(self, table: str, column: str) -> None:
        ...

    @abstractmethod
    def set_page(self, page: int) -> None:
        ...

    @abstractmethod
    def commit_page_draft(self, draft: str) -> None:
        """Go to the page typed in ``draft``; unparsable text is ignored."""
        ...

    @abstractmethod
    def set_page_size(self, page_size: int) -> None:
        ...

    # -- rows -----------------------------------------------------------------

    @abstractmethod
    def select_row(self, key: str, extend: bool = False) -> None:
        ...

    @abstractmethod
    def toggle_row_pin(self, key: str) -> None:
        ...

    @abstractmethod
    def row_form_values(self, key: str) -> dict[str, str]:
        """Edit-form text for every declared column of the keyed row.

        Raises:
            RowNotFoundError: If the key names no row of the current view.
        """
        ...

    @abstractmethod
    def create_table(self, name: str) -> str:
        ...

    @abstractmethod
    def add_column(self, table: str, name: str, declared_type: str = "TEXT") -> str:
        ...

    @abstractmethod
    def drop_table(self, table: str) -> None:
        ...

    @abstractmethod
    def insert_row(self, values: Mapping[str, str]) -> None:
        """Insert a row from form text.

        Raises:
            MutationError: If the engine rejects the insert.
        """
        ...

    @abstractmethod
    def update_row(self, key: str, values: Mapping[str, str]) -> None:
        """Update the row with the given key from form text.

        Raises:
            MutationError: If the row has no native identifier or the
                engine rejects the update.
        """
        ...

    @abstractmethod
    def delete_row(self, key: str) -> None:
        ...

    # -- export ---------------------------------------------------------------

    @abstractmethod
    def set_export_format(self, fmt: ExportFormat) -> None:
        ...

    @abstractmethod
    def export(self, fmt: ExportFormat | None = None) -> ExportPayload:
        """Render the current selection (or page) in ``fmt``."""
        ...

    @abstractmethod
    def save_export(self, fmt: ExportFormat | None = None) -> str | None:
        """Save the export as a file; returns its name, None if empty."""
        ...


class ViewerError(Exception):
    """Base class for errors scoped to one viewer operation."""

    pass


class LoadError(ViewerError):
    """Raised when document bytes cannot be loaded into the engine."""

    pass


class QueryError(ViewerError):
    """Raised when a generated read statement is rejected by the engine."""

    pass


class MutationError(ViewerError):
    """Raised when an edit cannot be applied.

    The message is shown to the user as is: either the engine's own text or
    one of the viewer's validation messages.
    """

    pass


class SaveError(ViewerError):
    """Raised by a document owner that cannot persist the database bytes.

    Sessions never see it: the owner turns it into a failed save:result.
    """

    pass


class RowNotFoundError(ViewerError, KeyError):
    """Raised when a row key does not name a row of the current view."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else "Row not found"


class TableNotFoundError(ViewerError, KeyError):
    """Raised when a table name is not one of the document's tables."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else "Table not found"
