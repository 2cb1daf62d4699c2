"""Document Session - one open database document.

This module provides the DocumentSession class that ties the viewer's
components together for a single document: it owns the in-memory engine,
the view state, the save coordinator and the transient status text, and it
speaks the session side of the byte transport protocol.

Usage:
    from db_viewer.adapters import AsyncioChannel, FileDocumentHost
    from db_viewer.application import DocumentSession

    host = FileDocumentHost("books.db")
    session = DocumentSession(sink=AsyncioChannel(host))
    host.attach(AsyncioChannel(session))
    session.start()              # posts ready; the host answers with load

    session.select_table("authors")
    session.set_row_filter("tolkien")
    row = session.view().display_rows[0]
    session.update_row(row_key(row), {"name": "J.R.R. Tolkien"})

Every intent runs to completion on the event loop before the next message
is handled. Intents that change the database reload the view and send a
fresh image to the owner.
"""

from __future__ import annotations

import re
import traceback
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from db_viewer.adapters.inbound.messages import (
    ConfigMessage,
    ErrorMessage,
    ExportResultMessage,
    ExportSaveMessage,
    LoadMessage,
    LogMessage,
    ReadyMessage,
    RefreshMessage,
    SaveMessage,
    SaveResultMessage,
    format_header,
    normalize_bytes,
    parse_owner_message,
    to_wire,
)
from db_viewer.adapters.outbound.asyncio_timer import AsyncioTimerScheduler
from db_viewer.adapters.outbound.sqlite_engine import SqliteEngineFactory
from db_viewer.application.mutation_executor import NOT_READY_MESSAGE, MutationExecutor
from db_viewer.application.save_coordinator import SaveCoordinator, SaveReport, SaveRequest
from db_viewer.application.table_reader import TableReader
from db_viewer.domain.entities import ColumnMeta, RowData, SessionState
from db_viewer.domain.services import (
    build_filter,
    encode,
    format_cell,
    pinned_first,
    row_key,
)
from db_viewer.domain.services import session_reducer as reducer
from db_viewer.domain.services.row_identity import find_row
from db_viewer.domain.value_objects import (
    ExportFormat,
    ExportPayload,
    FilterMode,
    LoadStatus,
    SaveOutcome,
    SaveState,
)
from db_viewer.infrastructure.config import Config, get_config
from db_viewer.infrastructure.logging import bind_document, clear_document, get_logger
from db_viewer.infrastructure.metrics import MetricsRegistry, get_metrics
from db_viewer.infrastructure.tracing import trace_span
from db_viewer.ports.inbound import (
    LoadError,
    MutationError,
    QueryError,
    RowNotFoundError,
    TableNotFoundError,
    TableView,
)
from db_viewer.ports.outbound import (
    EngineError,
    MessageSink,
    SqlEngine,
    SqlEngineFactory,
    TimerHandle,
    TimerScheduler,
)

logger = get_logger(__name__)

DEFAULT_DOCUMENT_NAME = "Database"
DEFAULT_EXPORT_BASENAME = "export"
_EXPORT_NAME_PATTERN = re.compile(r"[^\w\-]+")


def export_file_name(table: str, fmt: ExportFormat) -> str:
    """File name for a saved export: the table name made filesystem safe."""
    base = _EXPORT_NAME_PATTERN.sub("_", table or DEFAULT_EXPORT_BASENAME)
    return f"{base}.{fmt.extension}"


class DocumentSession:
    """Controller for one open database document.

    The session is the only component that holds mutable state. The view
    state itself is an immutable ``SessionState`` replaced on every intent
    through ``domain.services.session_reducer``; the current page of rows is
    re-read from the engine after every change that can affect it.

    Thread Safety:
        None. All calls, message deliveries and timer callbacks must happen
        on one event loop.
    """

    def __init__(
        self,
        sink: MessageSink | None = None,
        timers: TimerScheduler | None = None,
        engine_factory: SqlEngineFactory | None = None,
        config: Config | None = None,
        metrics: MetricsRegistry | None = None,
    ) -> None:
        """Initialize the session.

        Args:
            sink: Channel towards the storage owner. Without one, edits stay
                in memory and exports are written to the configured output
                directory.
            timers: Timer scheduler (default: the running asyncio loop).
            engine_factory: Opens engines over document bytes
                (default: in-memory SQLite).
            config: Configuration (default: global config).
            metrics: Metrics registry (default: global registry).
        """
        self._config = config or get_config()
        self._sink = sink
        self._timers = timers or AsyncioTimerScheduler()
        self._engine_factory = engine_factory or SqliteEngineFactory()
        self._metrics = metrics or get_metrics()

        self._engine: SqlEngine | None = None
        self._reader: TableReader | None = None
        self._executor: MutationExecutor | None = None

        self._state = SessionState(page_size=self._config.view.default_page_size)
        self._view = TableView(page_size=self._state.page_size)
        self._load_status = LoadStatus.EMPTY
        self._load_error: str | None = None
        self._document_name = ""
        self._display_name = ""
        self._version = ""
        self._export_format = ExportFormat.from_label(self._config.export.default_format)

        self._status_message: str | None = None
        self._status_timer: TimerHandle | None = None

        self._saves: SaveCoordinator | None = None
        if sink is not None:
            self._saves = SaveCoordinator(
                self._send_save,
                self._timers,
                timeout=self._config.sync.save_timeout_seconds,
                on_outcome=self._on_save_outcome,
                metrics=self._metrics,
            )

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def load_status(self) -> LoadStatus:
        return self._load_status

    @property
    def load_error(self) -> str | None:
        """Message of the last failed load, cleared by the next load."""
        return self._load_error

    @property
    def status_message(self) -> str | None:
        return self._status_message

    @property
    def has_database(self) -> bool:
        return self._engine is not None

    @property
    def document_name(self) -> str:
        return self._document_name

    @property
    def display_name(self) -> str:
        return self._display_name

    @property
    def version(self) -> str:
        return self._version

    @property
    def export_format(self) -> ExportFormat:
        return self._export_format

    @property
    def saves(self) -> SaveCoordinator | None:
        return self._saves

    @property
    def save_state(self) -> SaveState | None:
        """State of the in-flight save, None for a session without an owner."""
        return self._saves.state if self._saves is not None else None

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def start(self) -> None:
        """Announce readiness; the owner answers with config and load."""
        self._post(ReadyMessage())

    def handle_message(self, message: Any) -> None:
        """Process one message from the storage owner.

        Unknown and malformed messages are dropped. An unexpected exception
        is reported to the owner as an ``error`` message and re-raised.
        """
        parsed = parse_owner_message(message)
        if parsed is None:
            return
        try:
            if isinstance(parsed, ConfigMessage):
                self._display_name = parsed.display_name
                self._version = parsed.version
            elif isinstance(parsed, LoadMessage):
                if parsed.data is None:
                    logger.warning("load_without_bytes", name=parsed.name)
                    return
                logger.debug("load_received", name=parsed.name)
                self.load(parsed.name, parsed.data)
            elif isinstance(parsed, SaveResultMessage):
                if self._saves is not None:
                    self._saves.handle_ack(parsed.ok, parsed.message, parsed.save_id)
            elif isinstance(parsed, ExportResultMessage):
                fallback = "Saved" if parsed.ok else "Save failed"
                self._show_status(parsed.message or fallback)
        except Exception as e:
            self._post(
                ErrorMessage(
                    message=str(e),
                    source=type(e).__name__,
                    stack=traceback.format_exc(),
                )
            )
            raise

    def load(self, name: str, data: Any) -> None:
        """Replace the open database with the given image.

        Any previously open engine is closed first. On failure the session
        is left without a database in the ERROR load status; the failure is
        not raised.
        """
        self._load_status = LoadStatus.LOADING
        self._load_error = None
        self._close_engine()

        with trace_span("document.load", {"document": name}) as span:
            try:
                raw = normalize_bytes(data)
                self._post_log(f"db bytes length={len(raw)} header={format_header(raw)}")
                engine = self._engine_factory.open(raw)
                reader = TableReader(engine, self._metrics)
                tables = reader.list_tables()
            except (LoadError, EngineError, QueryError) as e:
                self._load_status = LoadStatus.ERROR
                self._load_error = str(e) or "Database load failed"
                self._metrics.loads_total.labels(status="error").inc()
                span.set_attribute("error", True)
                logger.warning("document_load_failed", document=name, error=self._load_error)
                self._post_log(f"load failed: {self._load_error}")
                self._state = reducer.loaded(self._state, [])
                self._view = TableView(page_size=self._state.page_size)
                return

            self._engine = engine
            self._reader = reader
            self._executor = MutationExecutor(engine, self._metrics)
            self._document_name = name or DEFAULT_DOCUMENT_NAME
            bind_document(self._document_name)

            self._state = reducer.loaded(self._state, tables)
            self._load_status = LoadStatus.READY
            self._metrics.loads_total.labels(status="success").inc()
            self._metrics.document_size_bytes.set(len(raw))
            span.set_attribute("tables", len(tables))
            self._post_log(f"tables loaded count={len(tables)}")
            logger.info("document_loaded", document=self._document_name, tables=len(tables), size=len(raw))

        self._reload_view()

    def refresh(self) -> None:
        """Ask the owner to re-send the document from storage."""
        self._post(RefreshMessage())

    def close(self) -> None:
        """Release the engine and cancel pending timers."""
        self._close_engine()
        if self._saves is not None:
            self._saves.close()
        self._cancel_status_timer()
        clear_document()

    def __enter__(self) -> DocumentSession:
        self.start()
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def _close_engine(self) -> None:
        if self._engine is not None:
            self._engine.close()
        self._engine = None
        self._reader = None
        self._executor = None

    # =========================================================================
    # View
    # =========================================================================

    def view(self) -> TableView:
        return self._view

    def table_columns(self, table: str) -> list[ColumnMeta]:
        """Sidebar columns of ``table`` (synthetic ROWID first), cached."""
        cached = self._state.table_columns.get(table)
        if cached is not None:
            return list(cached)
        if self._reader is None:
            return []
        columns = self._reader.sidebar_columns(table)
        self._state = reducer.cache_columns(self._state, table, columns)
        return columns

    def _reload_view(self) -> None:
        state = self._state
        table = state.selected_table
        if self._reader is None or not table:
            self._state = reducer.clear_selection(state)
            self._view = TableView(table=table, page_size=state.page_size)
            return

        columns = self._reader.column_meta(table)
        flt = build_filter(columns, state.row_filter, state.column_filters, state.column_modes)
        row_count = self._reader.row_count(table, flt)
        total_pages = reducer.page_count(row_count, state.page_size)
        if state.page > total_pages:
            state = reducer.set_page(state, total_pages)

        rows = self._reader.fetch_rows(table, state.page, state.page_size, flt)
        state = reducer.reconcile_selection(state, rows)
        self._state = state
        self._view = TableView(
            table=table,
            columns=columns,
            visible_columns=reducer.visible_columns(state, columns),
            rows=rows,
            display_rows=pinned_first(rows, state.pinned_rows),
            row_count=row_count,
            page=state.page,
            page_size=state.page_size,
            page_count=total_pages,
        )

    def _apply(self, state: SessionState) -> None:
        self._state = state
        self._reload_view()

    # =========================================================================
    # Navigation
    # =========================================================================

    def select_table(self, table: str) -> None:
        """Switch to ``table`` and push it onto the history.

        Raises:
            TableNotFoundError: If the document has no such table.
        """
        if table not in self._state.tables:
            raise TableNotFoundError(f"Unknown table: {table}")
        self._apply(reducer.select_table(self._state, table))

    def go_back(self) -> None:
        if not self._state.can_go_back:
            return
        self._state = reducer.go_back(self._state)
        self.table_columns(self._state.selected_table)
        self._reload_view()

    def go_forward(self) -> None:
        if not self._state.can_go_forward:
            return
        self._state = reducer.go_forward(self._state)
        self.table_columns(self._state.selected_table)
        self._reload_view()

    def set_table_filter(self, text: str) -> None:
        previous = self._state.selected_table
        self._state = reducer.set_table_filter(self._state, text)
        if self._state.selected_table != previous:
            self._reload_view()

    def toggle_expanded(self, table: str) -> None:
        self._state = reducer.toggle_expanded(self._state, table)
        if self._state.expanded_tables.get(table):
            self.table_columns(table)

    def toggle_all_expanded(self) -> None:
        """Collapse every listed table if any is expanded, else expand them all."""
        tables = self._state.filtered_tables
        if not tables:
            return
        expand = not any(self._state.expanded_tables.get(table) for table in tables)
        self._state = reducer.set_all_expanded(self._state, expand)
        if expand:
            for table in tables:
                self.table_columns(table)

    # =========================================================================
    # Filters and columns
    # =========================================================================

    def set_row_filter(self, text: str) -> None:
        self._apply(reducer.set_row_filter(self._state, text))

    def set_column_filter(self, column: str, text: str) -> None:
        self._apply(reducer.set_column_filter(self._state, column, text))

    def toggle_filter_mode(self, column: str, mode: FilterMode) -> None:
        self._apply(reducer.toggle_filter_mode(self._state, column, mode))

    def toggle_column_pin(self, column: str) -> None:
        self._apply(reducer.toggle_column_pin(self._state, column))

    def toggle_column_visibility(self, table: str, column: str) -> None:
        self._apply(reducer.toggle_column_visibility(self._state, table, column))

    # =========================================================================
    # Paging
    # =========================================================================

    def set_page(self, page: int) -> None:
        """Go to ``page``, clamped to the valid range."""
        self._apply(reducer.set_page(self._state, min(page, self._view.page_count)))

    def next_page(self) -> None:
        self.set_page(self._state.page + 1)

    def prev_page(self) -> None:
        self.set_page(self._state.page - 1)

    def first_page(self) -> None:
        self.set_page(1)

    def last_page(self) -> None:
        self.set_page(self._view.page_count)

    def commit_page_draft(self, draft: str) -> None:
        """Jump to a typed page number; unparsable text is ignored."""
        self._apply(reducer.commit_page_draft(self._state, draft, self._view.page_count))

    def set_page_size(self, page_size: int) -> None:
        self._apply(reducer.set_page_size(self._state, page_size))

    # =========================================================================
    # Rows
    # =========================================================================

    def find_row(self, key: str) -> RowData:
        """Row of the current view with the given key.

        Raises:
            RowNotFoundError: If no displayed row has that key.
        """
        row = find_row(self._view.display_rows, key)
        if row is None:
            raise RowNotFoundError(f"Row not found: {key}")
        return row

    def select_row(self, key: str, extend: bool = False) -> None:
        """Focus a row, or extend the selection from the anchor to it."""
        self.find_row(key)
        self._state = reducer.select_row(self._state, self._view.display_rows, key, extend)

    def clear_selection(self) -> None:
        self._state = reducer.clear_selection(self._state)

    def toggle_row_pin(self, key: str) -> None:
        self.find_row(key)
        pinned = key not in self._state.pinned_rows
        self._state = reducer.toggle_row_pin(self._state, key)
        self._view.display_rows = pinned_first(self._view.rows, self._state.pinned_rows)
        self._show_status("Row pinned." if pinned else "Row unpinned.")

    def selected_rows(self) -> list[RowData]:
        """Selected rows in display order."""
        keys = self._state.selected_row_keys
        return [row for row in self._view.display_rows if row_key(row) in keys]

    def row_form_values(self, key: str) -> dict[str, str]:
        """Current cell text of a row, as an edit form would be prefilled."""
        row = self.find_row(key)
        return {column.name: format_cell(row.get(column.name)) for column in self._view.columns}

    # =========================================================================
    # Mutations
    # =========================================================================

    def _require_ready(self) -> tuple[MutationExecutor, TableReader]:
        if self._executor is None or self._reader is None:
            raise MutationError(NOT_READY_MESSAGE)
        return self._executor, self._reader

    def _require_table(self) -> tuple[MutationExecutor, str]:
        executor, _ = self._require_ready()
        if not self._state.selected_table:
            raise MutationError(NOT_READY_MESSAGE)
        return executor, self._state.selected_table

    def create_table(self, name: str) -> str:
        """Create a table, select it and expand it in the sidebar.

        Returns:
            The name of the created table.

        Raises:
            MutationError: On a blank or duplicate name, or engine rejection.
        """
        executor, reader = self._require_ready()
        created = executor.create_table(name, self._state.tables)
        self._state = reducer.table_created(
            self._state, created, reader.list_tables(), reader.sidebar_columns(created)
        )
        self._reload_view()
        self._request_save()
        return created

    def add_column(self, table: str, name: str, declared_type: str = "TEXT") -> str:
        """Append a column to ``table`` and refresh its cached sidebar columns."""
        executor, reader = self._require_ready()
        added = executor.add_column(table, name, declared_type, reader.column_meta(table))
        self._state = reducer.column_added(self._state, table, reader.sidebar_columns(table))
        self._reload_view()
        self._request_save()
        return added

    def drop_table(self, table: str) -> None:
        """Drop ``table`` and forget its sidebar state; select the first remaining table."""
        executor, reader = self._require_ready()
        executor.drop_table(table)
        self._state = reducer.table_dropped(self._state, table, reader.list_tables())
        self._reload_view()
        self._request_save()

    def insert_row(self, values: Mapping[str, str]) -> None:
        executor, table = self._require_table()
        executor.insert_row(table, self._view.columns, values)
        self._reload_view()
        self._request_save()
        self._show_status("Row added.")

    def update_row(self, key: str, values: Mapping[str, str]) -> None:
        """Update a row; columns missing from ``values`` keep their current text."""
        executor, table = self._require_table()
        row = self.find_row(key)
        form = {column.name: format_cell(row.get(column.name)) for column in self._view.columns}
        form.update(values)
        executor.update_row(table, row, self._view.columns, form)
        self._reload_view()
        self._request_save()
        self._show_status("Row updated.")

    def delete_row(self, key: str) -> None:
        executor, table = self._require_table()
        row = self.find_row(key)
        executor.delete_row(table, row)
        self._reload_view()
        self._request_save()

    # =========================================================================
    # Export
    # =========================================================================

    def set_export_format(self, fmt: ExportFormat) -> None:
        self._export_format = fmt

    def export_rows(self) -> list[RowData]:
        """Rows an export covers: the selection, else the focused row, else the page."""
        selected = self.selected_rows()
        if selected:
            return selected
        focused = self._state.selected_row_key
        if focused is not None:
            row = find_row(self._view.display_rows, focused)
            if row is not None:
                return [row]
        return list(self._view.display_rows)

    def export(self, fmt: ExportFormat | None = None) -> ExportPayload:
        """Render the export rows over the visible columns."""
        fmt = fmt or self._export_format
        with trace_span("document.export", {"format": fmt.value, "table": self._view.table}):
            payload = encode(fmt, self._view.visible_columns, self.export_rows(), self._view.table)
        self._metrics.exports_total.labels(format=fmt.value).inc()
        return payload

    def save_export(self, fmt: ExportFormat | None = None) -> str | None:
        """Save the current export as a file.

        With an owner the text is posted as ``export:save`` and the outcome
        arrives later as ``export:result``. Without one it is written to the
        configured output directory.

        Returns:
            The file name, or None if there was nothing to save.
        """
        fmt = fmt or self._export_format
        payload = self.export(fmt)
        if not payload.text:
            self._show_status("Nothing to save.")
            return None

        file_name = export_file_name(self._view.table, fmt)
        if self._sink is not None:
            self._show_status(f"Saving {file_name}...")
            self._post(ExportSaveMessage(name=file_name, text=payload.text))
            return file_name

        output_dir = Path(self._config.export.output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        target = output_dir / file_name
        target.write_text(payload.text, encoding="utf-8")
        logger.info("export_written", path=str(target), format=fmt.value)
        self._show_status(f"Saved {file_name}")
        return file_name

    # =========================================================================
    # Saves, status and owner messages
    # =========================================================================

    def _request_save(self) -> None:
        if self._engine is None:
            return
        if self._saves is None:
            logger.debug("save_skipped", reason="no_owner")
            return
        self._saves.request_save(self._engine.export())
        self._show_status("Saving...")

    def _send_save(self, request: SaveRequest) -> None:
        self._post(SaveMessage(data=request.data, save_id=request.save_id))

    def _on_save_outcome(self, report: SaveReport) -> None:
        if report.outcome is SaveOutcome.FAILED:
            self._post_log(f"save failed: {report.message}")
        self._show_status(report.message)

    def _show_status(self, text: str) -> None:
        self._status_message = text
        self._cancel_status_timer()
        self._status_timer = self._timers.call_later(
            self._config.sync.status_clear_seconds, self._clear_status
        )

    def _clear_status(self) -> None:
        self._status_message = None
        self._status_timer = None

    def _cancel_status_timer(self) -> None:
        if self._status_timer is not None:
            self._status_timer.cancel()
            self._status_timer = None

    def _post_log(self, text: str) -> None:
        logger.debug("session_log", message=text)
        self._post(LogMessage(message=text))

    def _post(self, message: BaseModel) -> None:
        if self._sink is None:
            return
        self._sink.post(to_wire(message))
