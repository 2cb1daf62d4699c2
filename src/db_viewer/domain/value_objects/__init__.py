"""Value objects for the database viewer domain.

Value objects are immutable types that represent domain concepts.
They have no identity - two value objects with the same attributes are equal.

Exports:
    Identifiers:
        - SqlValue: Cell value alias (None, str, int, float, bytes)
        - SaveId: Save correlation id
        - RowKey: Session-local row identity
        - ROW_ID_ALIAS: Projection alias of the native row identifier

    Filter Types:
        - FilterMode: EXACT, NON_EMPTY, INVERT
        - ColumnFilterMode: Active switches for one column
        - FilterClause: WHERE clause plus positional parameters

    Sync Types:
        - SaveState: Save coordinator states
        - SaveOutcome: Reported outcome of one save
        - LoadStatus: Document load status

    Export Types:
        - ExportFormat: Supported export formats
        - ExportPayload: Rendered text plus suggested extension
"""

from db_viewer.domain.value_objects.export_types import ExportFormat, ExportPayload
from db_viewer.domain.value_objects.filter_types import (
    UNFILTERED,
    ColumnFilterMode,
    FilterClause,
    FilterMode,
)
from db_viewer.domain.value_objects.identifiers import (
    EXPORT_KEY_ID_PREFIX,
    EXPORT_KEY_ROW_PREFIX,
    INVALID_SAVE_ID,
    ROW_ID_ALIAS,
    ROW_KEY_ID_PREFIX,
    ROW_KEY_POSITION_PREFIX,
    RowKey,
    SaveId,
    SqlValue,
)
from db_viewer.domain.value_objects.sync_types import LoadStatus, SaveOutcome, SaveState

__all__ = [
    # Identifiers
    "SqlValue",
    "SaveId",
    "RowKey",
    "INVALID_SAVE_ID",
    "ROW_ID_ALIAS",
    "ROW_KEY_ID_PREFIX",
    "ROW_KEY_POSITION_PREFIX",
    "EXPORT_KEY_ID_PREFIX",
    "EXPORT_KEY_ROW_PREFIX",
    # Filter types
    "FilterMode",
    "ColumnFilterMode",
    "FilterClause",
    "UNFILTERED",
    # Sync types
    "SaveState",
    "SaveOutcome",
    "LoadStatus",
    # Export types
    "ExportFormat",
    "ExportPayload",
]
