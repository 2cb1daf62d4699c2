"""Domain entities for the database viewer.

Exports:
    - ColumnMeta: Column descriptor
    - ROW_ID_COLUMN: Synthetic row identifier column for navigation views
    - RowData: A fetched row with position and optional native identifier
    - SessionState: Per-document view state
"""

from db_viewer.domain.entities.column import ROW_ID_COLUMN, ColumnMeta
from db_viewer.domain.entities.row import RowData
from db_viewer.domain.entities.session_state import SessionState

__all__ = [
    "ColumnMeta",
    "ROW_ID_COLUMN",
    "RowData",
    "SessionState",
]
