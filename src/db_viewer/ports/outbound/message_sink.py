"""Message Sink port for the byte transport protocol.

Both directions of the protocol are fire-and-forget: a sender hands a
message to a sink and continues. Replies, if any, arrive later as separate
messages correlated by id.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import Any, Protocol


class MessageSink(Protocol):
    """Protocol for delivering a message to the other side of the protocol."""

    @abstractmethod
    def post(self, message: Any) -> None:
        """Queue ``message`` for delivery. Must not deliver re-entrantly."""
        ...


class MessageHandler(Protocol):
    """Protocol for an endpoint that receives protocol messages."""

    @abstractmethod
    def handle_message(self, message: Any) -> None:
        """Process one inbound message."""
        ...
