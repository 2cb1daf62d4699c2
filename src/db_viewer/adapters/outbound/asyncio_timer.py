"""asyncio implementation of the TimerScheduler port."""

from __future__ import annotations

import asyncio
from collections.abc import Callable


class AsyncioTimerScheduler:
    """Schedules one-shot callbacks with ``loop.call_later``.

    The returned ``asyncio.TimerHandle`` already satisfies the TimerHandle
    port. Without an explicit loop the running loop is used, so the
    scheduler must then be called from inside that loop.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(delay, callback)
