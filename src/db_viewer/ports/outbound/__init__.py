"""Outbound ports - interfaces for external dependencies.

Outbound ports define contracts for what the viewer depends on: the SQL
engine, the message transport towards the document owner and timers.
"""

from db_viewer.ports.outbound.message_sink import MessageHandler, MessageSink
from db_viewer.ports.outbound.sql_engine import EngineError, ResultSet, SqlEngine, SqlEngineFactory
from db_viewer.ports.outbound.timer import TimerHandle, TimerScheduler

__all__ = [
    "SqlEngine",
    "SqlEngineFactory",
    "ResultSet",
    "EngineError",
    "MessageSink",
    "MessageHandler",
    "TimerHandle",
    "TimerScheduler",
]
