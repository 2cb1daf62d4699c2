"""Inbound adapters for the database viewer.

Inbound adapters turn incoming traffic into session calls.

Exports:
    Messages:
        - parse_owner_message / parse_session_message: validate wire mappings
        - to_wire: dump a message model to its wire mapping
        - normalize_bytes: coerce accepted byte shapes to ``bytes``
    REST API:
        - db_viewer.adapters.inbound.rest_api.create_app (imported on demand,
          it depends on the application layer)
"""

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
    parse_session_message,
    to_wire,
)

__all__ = [
    # Owner to session
    "ConfigMessage",
    "LoadMessage",
    "SaveResultMessage",
    "ExportResultMessage",
    # Session to owner
    "ReadyMessage",
    "RefreshMessage",
    "SaveMessage",
    "ExportSaveMessage",
    "LogMessage",
    "ErrorMessage",
    # Helpers
    "parse_owner_message",
    "parse_session_message",
    "to_wire",
    "normalize_bytes",
    "format_header",
]
