"""Timer port for save timeouts and transient status messages."""

from __future__ import annotations

from abc import abstractmethod
from collections.abc import Callable
from typing import Protocol


class TimerHandle(Protocol):
    """A scheduled callback that can still be cancelled."""

    @abstractmethod
    def cancel(self) -> None:
        """Prevent the callback from running. Idempotent."""
        ...


class TimerScheduler(Protocol):
    """Protocol for one-shot timers on the session's event loop."""

    @abstractmethod
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        """Run ``callback`` once after ``delay`` seconds.

        The callback runs on the same loop as every other session call,
        never concurrently with one.
        """
        ...
