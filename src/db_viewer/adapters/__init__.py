"""Adapters layer - concrete implementations of port interfaces.

Adapters provide the actual implementations:
- Inbound adapters: Handle incoming requests (protocol messages, REST)
- Outbound adapters: Implement external dependencies (SQLite, files, event loop)
"""

from db_viewer.adapters.outbound import (
    AsyncioChannel,
    AsyncioTimerScheduler,
    FileDocumentHost,
    SqliteEngine,
    SqliteEngineFactory,
    is_database_file,
)

__all__ = [
    # Outbound adapters
    "SqliteEngine",
    "SqliteEngineFactory",
    "AsyncioChannel",
    "AsyncioTimerScheduler",
    "FileDocumentHost",
    "is_database_file",
]
