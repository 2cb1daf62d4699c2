"""Ports layer - interface definitions following Hexagonal Architecture.

Ports are abstract interfaces (protocols) that define contracts:
- Inbound ports: APIs offered to presentation surfaces (DocumentViewer)
- Outbound ports: Dependencies on external systems (SqlEngine, MessageSink, TimerScheduler)

Adapters implement these ports with concrete functionality.
"""

from db_viewer.ports.inbound import (
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
from db_viewer.ports.outbound import (
    EngineError,
    MessageHandler,
    MessageSink,
    ResultSet,
    SqlEngine,
    SqlEngineFactory,
    TimerHandle,
    TimerScheduler,
)

__all__ = [
    # Inbound ports
    "DocumentViewer",
    "TableView",
    "ViewerError",
    "LoadError",
    "QueryError",
    "MutationError",
    "SaveError",
    "RowNotFoundError",
    "TableNotFoundError",
    # Outbound ports
    "SqlEngine",
    "SqlEngineFactory",
    "ResultSet",
    "EngineError",
    "MessageSink",
    "MessageHandler",
    "TimerHandle",
    "TimerScheduler",
]
