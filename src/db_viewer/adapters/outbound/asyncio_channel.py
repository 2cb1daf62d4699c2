"""asyncio implementation of the MessageSink port.

A channel carries messages in one direction. Wiring a session to its
storage owner takes two channels:

    host = FileDocumentHost(path)
    session = DocumentSession(sink=AsyncioChannel(host))
    host.attach(AsyncioChannel(session))
    session.start()

Delivery goes through ``loop.call_soon``: ``post`` returns before the
target sees the message, and a reply posted from inside ``handle_message``
is processed on a later loop iteration. Messages posted in order are
delivered in order.
"""

from __future__ import annotations

import asyncio
from typing import Any

from db_viewer.ports.outbound import MessageHandler


class AsyncioChannel:
    """Delivers posted messages to one handler on the event loop."""

    def __init__(
        self,
        target: MessageHandler,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self._target = target
        self._loop = loop
        self._posted = 0

    @property
    def posted(self) -> int:
        """Number of messages posted so far."""
        return self._posted

    def post(self, message: Any) -> None:
        loop = self._loop or asyncio.get_running_loop()
        self._posted += 1
        loop.call_soon(self._target.handle_message, message)
