"""Inbound ports - API contracts offered to presentation surfaces."""

from db_viewer.ports.inbound.document_viewer import (
    DocumentViewer,
    LoadError,
    MutationError,
    QueryError,
    RowNotFoundError,
    TableNotFoundError,
    SaveError,
    TableView,
    ViewerError,
)

__all__ = [
    "DocumentViewer",
    "TableView",
    "ViewerError",
    "LoadError",
    "QueryError",
    "MutationError",
    "SaveError",
    "RowNotFoundError",
    "TableNotFoundError",
]
