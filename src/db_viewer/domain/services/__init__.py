"""Domain services for the database viewer.

Exports:
    - build_filter, quote_identifier: WHERE clause construction
    - row_key: Session-local row identity
    - encode: Export rendering
    - format_cell, normalize_input_value: Cell text and edit coercion
"""

from db_viewer.domain.services.export_encoder import encode
from db_viewer.domain.services.query_builder import build_filter, quote_identifier
from db_viewer.domain.services.row_identity import pinned_first, row_key
from db_viewer.domain.services.value_coercion import (
    format_cell,
    normalize_input_value,
    to_sql_literal,
)

__all__ = [
    "build_filter",
    "quote_identifier",
    "row_key",
    "pinned_first",
    "encode",
    "format_cell",
    "normalize_input_value",
    "to_sql_literal",
]
