"""REST API adapter for the database viewer.

This module exposes one DocumentViewer over HTTP: the table tree, the
current table view, filters and paging, row edits and exports. It is a
presentation surface only; every request maps to one session intent.

Endpoints:
    GET  /health, /status
    GET  /tables                      POST /tables
    POST /tables/filter               POST /tables/expand-all
    POST /tables/{table}/select       POST /tables/{table}/expand
    GET  /tables/{table}/columns      POST /tables/{table}/columns
    POST /tables/{table}/columns/{column}/visibility
    DELETE /tables/{table}
    POST /navigation/back, /navigation/forward, /navigation/refresh
    GET  /view
    PUT  /view/filter                 PUT  /view/column-filters/{column}
    POST /view/column-modes/{column}/{mode}
    POST /view/columns/{column}/pin
    PUT  /view/page, /view/page-size  POST /view/page-draft
    POST /rows                        PUT/DELETE /rows/{key}
    GET  /rows/{key}/form             POST /rows/{key}/pin, /rows/{key}/select
    GET  /export                      POST /export/save

Errors:
    503 when no database is open, 404 for unknown tables and row keys,
    400 for rejected edits and queries, 422 for invalid arguments.

Usage:
    from db_viewer.adapters.inbound.rest_api import create_app
    from db_viewer.application import DocumentSession

    session = DocumentSession(sink=recording_sink)
    session.load("books.db", Path("books.db").read_bytes())
    app = create_app(session)

References:
    - FastAPI documentation: https://fastapi.tiangolo.com/
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from db_viewer import __version__
from db_viewer.adapters.outbound import (
    AsyncioChannel,
    AsyncioTimerScheduler,
    FileDocumentHost,
    SqliteEngineFactory,
    is_database_file,
)
from db_viewer.application import DocumentSession, export_file_name
from db_viewer.domain.entities import ColumnMeta, RowData
from db_viewer.domain.services import format_cell, row_key
from db_viewer.domain.value_objects import ExportFormat, FilterMode
from db_viewer.infrastructure.config import get_config
from db_viewer.infrastructure.container import create_container
from db_viewer.infrastructure.logging import setup_logging
from db_viewer.infrastructure.metrics import MetricsRegistry, setup_metrics
from db_viewer.infrastructure.tracing import setup_tracing
from db_viewer.ports.inbound import (
    DocumentViewer,
    MutationError,
    QueryError,
    RowNotFoundError,
    TableNotFoundError,
    ViewerError,
)


# =============================================================================
# Request models
# =============================================================================


class TextRequest(BaseModel):
    """Request carrying one piece of filter text."""

    text: str = Field("", description="Filter text")


class CreateTableRequest(BaseModel):
    name: str = Field(..., description="Name of the new table")


class AddColumnRequest(BaseModel):
    name: str = Field(..., description="Name of the new column")
    type: str = Field("TEXT", description="Declared type of the new column")


class PageRequest(BaseModel):
    page: int = Field(..., description="1-based page number, clamped to the valid range")


class PageSizeRequest(BaseModel):
    page_size: int = Field(..., ge=1, description="Rows per page")


class PageDraftRequest(BaseModel):
    draft: str = Field(..., description="Page number as typed")


class RowValuesRequest(BaseModel):
    values: dict[str, str] = Field(default_factory=dict, description="Cell text by column name")


class SelectRowRequest(BaseModel):
    extend: bool = Field(False, description="Extend the selection from the anchor")


class ExportSaveRequest(BaseModel):
    format: str | None = Field(None, description="Export format label")


# =============================================================================
# Response models
# =============================================================================


class HealthResponse(BaseModel):
    """Response model for health check."""

    status: str = Field(..., description="Health status")
    version: str = Field(..., description="API version")


class StatusResponse(BaseModel):
    document: str = Field("", description="Name of the open document")
    display_name: str = Field("", description="Owner-provided display name")
    owner_version: str = Field("", description="Owner-provided version")
    load_status: str = Field(..., description="empty, loading, ready or error")
    load_error: str | None = Field(None, description="Message of the last failed load")
    status_message: str | None = Field(None, description="Transient status text")
    save_state: str | None = Field(None, description="Save coordinator state")
    selected_table: str = Field("", description="Selected table")
    can_go_back: bool = False
    can_go_forward: bool = False
    export_format: str = Field(..., description="Current export format")


class ColumnResponse(BaseModel):
    name: str
    type: str = ""
    primary_key: bool = False
    row_id: bool = False
    pinned: bool = False
    hidden: bool = False


class TableEntry(BaseModel):
    name: str
    expanded: bool = False


class TablesResponse(BaseModel):
    tables: list[TableEntry] = Field(default_factory=list, description="Tables matching the filter")
    total: int = Field(0, description="Number of tables in the document")
    table_filter: str = ""
    selected_table: str = ""


class RowResponse(BaseModel):
    key: str = Field(..., description="Row key for row endpoints")
    position: int = Field(..., description="1-based position in the filtered result")
    row_id: int | float | None = Field(None, description="Native row identifier")
    values: dict[str, str] = Field(default_factory=dict, description="Cell text by column")
    pinned: bool = False
    selected: bool = False


class ViewResponse(BaseModel):
    table: str = ""
    columns: list[ColumnResponse] = Field(default_factory=list)
    visible_columns: list[str] = Field(default_factory=list)
    rows: list[RowResponse] = Field(default_factory=list, description="Display rows, pinned first")
    row_count: int = 0
    page: int = 1
    page_size: int = 0
    page_count: int = 1
    selected_row_key: str | None = None


class ExportResponse(BaseModel):
    format: str
    extension: str
    file_name: str
    text: str


class MessageResponse(BaseModel):
    message: str = ""


# =============================================================================
# Conversions
# =============================================================================


def _column_response(column: ColumnMeta, pinned: frozenset[str], hidden: frozenset[str]) -> ColumnResponse:
    return ColumnResponse(
        name=column.name,
        type=column.declared_type,
        primary_key=column.is_primary_key,
        row_id=column.is_row_id,
        pinned=column.name in pinned,
        hidden=column.name in hidden,
    )


def _row_response(row: RowData, session: DocumentViewer) -> RowResponse:
    key = row_key(row)
    state = session.state
    return RowResponse(
        key=key,
        position=row.position,
        row_id=row.native_id,
        values={name: format_cell(value) for name, value in zip(row.columns, row.values)},
        pinned=key in state.pinned_rows,
        selected=key in state.selected_row_keys,
    )


def _view_response(session: DocumentViewer) -> ViewResponse:
    view = session.view()
    state = session.state
    return ViewResponse(
        table=view.table,
        columns=[
            _column_response(column, state.pinned_columns, state.hidden_columns)
            for column in view.columns
        ],
        visible_columns=[column.name for column in view.visible_columns],
        rows=[_row_response(row, session) for row in view.display_rows],
        row_count=view.row_count,
        page=view.page,
        page_size=view.page_size,
        page_count=view.page_count,
        selected_row_key=state.selected_row_key,
    )


def _sidebar_response(session: DocumentViewer, table: str) -> list[ColumnResponse]:
    state = session.state
    hidden = state.hidden_columns_by_table.get(table, frozenset())
    pinned = state.pinned_columns_by_table.get(table, frozenset())
    return [_column_response(column, pinned, hidden) for column in session.table_columns(table)]


def _tables_response(session: DocumentViewer) -> TablesResponse:
    state = session.state
    return TablesResponse(
        tables=[
            TableEntry(name=table, expanded=state.expanded_tables.get(table, False))
            for table in state.filtered_tables
        ],
        total=len(state.tables),
        table_filter=state.table_filter,
        selected_table=state.selected_table,
    )


def _parse_format(label: str | None, session: DocumentViewer) -> ExportFormat:
    if label is None:
        return session.export_format
    try:
        return ExportFormat.from_label(label)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))


def _parse_mode(mode: str) -> FilterMode:
    try:
        return FilterMode(mode)
    except ValueError:
        raise HTTPException(status_code=422, detail=f"Unknown filter mode: {mode}")


def create_app(session: DocumentViewer, start_session: bool = False) -> FastAPI:
    """Create a FastAPI application for one document session.

    Args:
        session: The session to expose.
        start_session: Post ``ready`` to the owner when the app starts, so
            the owner sends the document. Requires the session's channels
            to run on the server's event loop.

    Returns:
        A configured FastAPI application.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if start_session:
            session.start()
        yield
        session.close()

    app = FastAPI(
        title="DB Viewer API",
        description="Browse and edit an in-memory SQLite document",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(MutationError)
    async def mutation_error_handler(request: Request, exc: MutationError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(QueryError)
    async def query_error_handler(request: Request, exc: QueryError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(RowNotFoundError)
    async def row_not_found_handler(request: Request, exc: RowNotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(TableNotFoundError)
    async def table_not_found_handler(request: Request, exc: TableNotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(ViewerError)
    async def viewer_error_handler(request: Request, exc: ViewerError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    def require_database() -> None:
        if not session.has_database:
            raise HTTPException(status_code=503, detail="Database not ready.")

    def require_table(table: str) -> None:
        require_database()
        if table not in session.state.tables:
            raise HTTPException(status_code=404, detail=f"Unknown table: {table}")

    # -------------------------------------------------------------------------
    # Health and status
    # -------------------------------------------------------------------------

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health_check() -> HealthResponse:
        """Health check endpoint."""
        return HealthResponse(
            status="healthy" if session.has_database else "unhealthy",
            version=__version__,
        )

    @app.get("/status", response_model=StatusResponse, tags=["Health"])
    async def get_status() -> StatusResponse:
        state = session.state
        return StatusResponse(
            document=session.document_name,
            display_name=session.display_name,
            owner_version=session.version,
            load_status=session.load_status.value,
            load_error=session.load_error,
            status_message=session.status_message,
            save_state=session.save_state.name if session.save_state is not None else None,
            selected_table=state.selected_table,
            can_go_back=state.can_go_back,
            can_go_forward=state.can_go_forward,
            export_format=session.export_format.value,
        )

    # -------------------------------------------------------------------------
    # Tables
    # -------------------------------------------------------------------------

    @app.get("/tables", response_model=TablesResponse, tags=["Tables"])
    async def list_tables() -> TablesResponse:
        require_database()
        return _tables_response(session)

    @app.post("/tables", response_model=TablesResponse, status_code=201, tags=["Tables"])
    async def create_table(request: CreateTableRequest) -> TablesResponse:
        require_database()
        session.create_table(request.name)
        return _tables_response(session)

    @app.post("/tables/filter", response_model=TablesResponse, tags=["Tables"])
    async def filter_tables(request: TextRequest) -> TablesResponse:
        require_database()
        session.set_table_filter(request.text)
        return _tables_response(session)

    @app.post("/tables/expand-all", response_model=TablesResponse, tags=["Tables"])
    async def toggle_all_tables() -> TablesResponse:
        require_database()
        session.toggle_all_expanded()
        return _tables_response(session)

    @app.delete("/tables/{table}", response_model=TablesResponse, tags=["Tables"])
    async def drop_table(table: str) -> TablesResponse:
        require_table(table)
        session.drop_table(table)
        return _tables_response(session)

    @app.post("/tables/{table}/select", response_model=ViewResponse, tags=["Tables"])
    async def select_table(table: str) -> ViewResponse:
        require_database()
        session.select_table(table)
        return _view_response(session)

    @app.post("/tables/{table}/expand", response_model=TablesResponse, tags=["Tables"])
    async def toggle_table(table: str) -> TablesResponse:
        require_table(table)
        session.toggle_expanded(table)
        return _tables_response(session)

    @app.get("/tables/{table}/columns", response_model=list[ColumnResponse], tags=["Tables"])
    async def table_columns(table: str) -> list[ColumnResponse]:
        require_table(table)
        return _sidebar_response(session, table)

    @app.post(
        "/tables/{table}/columns",
        response_model=list[ColumnResponse],
        status_code=201,
        tags=["Tables"],
    )
    async def add_column(table: str, request: AddColumnRequest) -> list[ColumnResponse]:
        require_table(table)
        session.add_column(table, request.name, request.type)
        return _sidebar_response(session, table)

    @app.post("/tables/{table}/columns/{column}/visibility", response_model=ViewResponse, tags=["Tables"])
    async def toggle_column_visibility(table: str, column: str) -> ViewResponse:
        require_table(table)
        session.toggle_column_visibility(table, column)
        return _view_response(session)

    # -------------------------------------------------------------------------
    # Navigation
    # -------------------------------------------------------------------------

    @app.post("/navigation/back", response_model=ViewResponse, tags=["Navigation"])
    async def go_back() -> ViewResponse:
        require_database()
        session.go_back()
        return _view_response(session)

    @app.post("/navigation/forward", response_model=ViewResponse, tags=["Navigation"])
    async def go_forward() -> ViewResponse:
        require_database()
        session.go_forward()
        return _view_response(session)

    @app.post("/navigation/refresh", response_model=MessageResponse, status_code=202, tags=["Navigation"])
    async def refresh() -> MessageResponse:
        session.refresh()
        return MessageResponse(message="Refresh requested")

    # -------------------------------------------------------------------------
    # View
    # -------------------------------------------------------------------------

    @app.get("/view", response_model=ViewResponse, tags=["View"])
    async def get_view() -> ViewResponse:
        require_database()
        return _view_response(session)

    @app.put("/view/filter", response_model=ViewResponse, tags=["View"])
    async def set_row_filter(request: TextRequest) -> ViewResponse:
        require_database()
        session.set_row_filter(request.text)
        return _view_response(session)

    @app.put("/view/column-filters/{column}", response_model=ViewResponse, tags=["View"])
    async def set_column_filter(column: str, request: TextRequest) -> ViewResponse:
        require_database()
        session.set_column_filter(column, request.text)
        return _view_response(session)

    @app.post("/view/column-modes/{column}/{mode}", response_model=ViewResponse, tags=["View"])
    async def toggle_filter_mode(column: str, mode: str) -> ViewResponse:
        require_database()
        session.toggle_filter_mode(column, _parse_mode(mode))
        return _view_response(session)

    @app.post("/view/columns/{column}/pin", response_model=ViewResponse, tags=["View"])
    async def toggle_column_pin(column: str) -> ViewResponse:
        require_database()
        session.toggle_column_pin(column)
        return _view_response(session)

    @app.put("/view/page", response_model=ViewResponse, tags=["View"])
    async def set_page(request: PageRequest) -> ViewResponse:
        require_database()
        session.set_page(request.page)
        return _view_response(session)

    @app.post("/view/page-draft", response_model=ViewResponse, tags=["View"])
    async def commit_page_draft(request: PageDraftRequest) -> ViewResponse:
        require_database()
        session.commit_page_draft(request.draft)
        return _view_response(session)

    @app.put("/view/page-size", response_model=ViewResponse, tags=["View"])
    async def set_page_size(request: PageSizeRequest) -> ViewResponse:
        require_database()
        session.set_page_size(request.page_size)
        return _view_response(session)

    # -------------------------------------------------------------------------
    # Rows
    # -------------------------------------------------------------------------

    @app.post("/rows", response_model=ViewResponse, status_code=201, tags=["Rows"])
    async def insert_row(request: RowValuesRequest) -> ViewResponse:
        require_database()
        session.insert_row(request.values)
        return _view_response(session)

    @app.put("/rows/{key}", response_model=ViewResponse, tags=["Rows"])
    async def update_row(key: str, request: RowValuesRequest) -> ViewResponse:
        require_database()
        session.update_row(key, request.values)
        return _view_response(session)

    @app.delete("/rows/{key}", response_model=ViewResponse, tags=["Rows"])
    async def delete_row(key: str) -> ViewResponse:
        require_database()
        session.delete_row(key)
        return _view_response(session)

    @app.get("/rows/{key}/form", response_model=dict[str, str], tags=["Rows"])
    async def row_form(key: str) -> dict[str, str]:
        require_database()
        return session.row_form_values(key)

    @app.post("/rows/{key}/pin", response_model=ViewResponse, tags=["Rows"])
    async def toggle_row_pin(key: str) -> ViewResponse:
        require_database()
        session.toggle_row_pin(key)
        return _view_response(session)

    @app.post("/rows/{key}/select", response_model=ViewResponse, tags=["Rows"])
    async def select_row(key: str, request: SelectRowRequest | None = None) -> ViewResponse:
        require_database()
        session.select_row(key, extend=request.extend if request is not None else False)
        return _view_response(session)

    # -------------------------------------------------------------------------
    # Export
    # -------------------------------------------------------------------------

    @app.get("/export", response_model=ExportResponse, tags=["Export"])
    async def export_preview(
        label: str | None = Query(None, alias="format", description="Export format label"),
    ) -> ExportResponse:
        require_database()
        fmt = _parse_format(label, session)
        payload = session.export(fmt)
        return ExportResponse(
            format=fmt.value,
            extension=payload.extension,
            file_name=export_file_name(session.view().table, fmt),
            text=payload.text,
        )

    @app.post("/export/save", response_model=MessageResponse, tags=["Export"])
    async def export_save(request: ExportSaveRequest) -> MessageResponse:
        require_database()
        fmt = _parse_format(request.format, session)
        session.set_export_format(fmt)
        file_name = session.save_export(fmt)
        return MessageResponse(message=session.status_message or (file_name or ""))

    return app


def run_server(
    path: str | Path,
    host: str | None = None,
    port: int | None = None,
) -> None:
    """Open a database file and serve it over HTTP.

    The file is owned by a FileDocumentHost wired to the session through
    asyncio channels; saves write the file back in place.

    Args:
        path: The database document.
        host: Host to bind to (default from config).
        port: Port to bind to (default from config).
    """
    import uvicorn

    config = get_config()
    setup_logging(config.observability.log_level, config.observability.log_format)
    if config.observability.otel_endpoint:
        setup_tracing(config.observability.otel_service_name, config.observability.otel_endpoint)
    container = create_container(config, setup_metrics(config.server.metrics_port))

    document = FileDocumentHost(path)
    session = DocumentSession(
        sink=AsyncioChannel(document),
        timers=container.resolve(AsyncioTimerScheduler),
        engine_factory=container.resolve(SqliteEngineFactory),
        config=config,
        metrics=container.resolve(MetricsRegistry),
    )
    document.attach(AsyncioChannel(session))

    app = create_app(session, start_session=True)
    uvicorn.run(app, host=host or config.server.host, port=port or config.server.port)


def main(argv: list[str] | None = None) -> None:
    """Command line entry point: ``db-viewer <file>``."""
    import argparse

    parser = argparse.ArgumentParser(description="Browse and edit a SQLite file over HTTP")
    parser.add_argument("path", type=Path, help="Database file (.db, .sqlite, .sqlite3)")
    parser.add_argument("--host", default=None, help="Host to bind to")
    parser.add_argument("--port", type=int, default=None, help="Port to bind to")
    args = parser.parse_args(argv)
    if not is_database_file(args.path):
        parser.error(f"not a database file: {args.path}")
    run_server(args.path, host=args.host, port=args.port)


if __name__ == "__main__":
    main()
