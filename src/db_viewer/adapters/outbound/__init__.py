"""Outbound adapters - implementations of outbound ports.

These adapters implement the in-memory SQL engine, the event-loop backed
message channel and timers, and the file-backed document owner.
"""

from db_viewer.adapters.outbound.asyncio_channel import AsyncioChannel
from db_viewer.adapters.outbound.asyncio_timer import AsyncioTimerScheduler
from db_viewer.adapters.outbound.file_document_host import FileDocumentHost, is_database_file
from db_viewer.adapters.outbound.sqlite_engine import SqliteEngine, SqliteEngineFactory

__all__ = [
    "SqliteEngine",
    "SqliteEngineFactory",
    "AsyncioChannel",
    "AsyncioTimerScheduler",
    "FileDocumentHost",
    "is_database_file",
]
