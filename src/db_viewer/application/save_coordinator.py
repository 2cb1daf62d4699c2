"""Save/Sync Coordinator - correlates save requests with their outcomes.

Every edit ends with a full image of the database being sent to the owner.
Saves are fire-and-forget on the wire; the coordinator gives each one a
strictly increasing id, arms a timeout, and matches acknowledgments by id so
that a slow reply to an older save can never be reported as the outcome of
a newer one.

Invariants:
    - Only the newest request is current. Acks for any other id are ignored.
    - At most one outcome is reported per request: an ack after the
      timeout fired, or a second ack, is discarded.
    - A failed or timed-out save is never retried automatically; the next
      edit sends a fresh image anyway.

See ``SaveState`` for the state diagram.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass

from db_viewer.domain.value_objects import INVALID_SAVE_ID, SaveId, SaveOutcome, SaveState
from db_viewer.infrastructure.logging import get_logger
from db_viewer.infrastructure.metrics import MetricsRegistry, get_metrics
from db_viewer.ports.outbound import TimerHandle, TimerScheduler

logger = get_logger(__name__)

SAVED_MESSAGE = "Saved"
FAILED_MESSAGE = "Database write failed"
TIMED_OUT_MESSAGE = "Save timed out."


@dataclass(frozen=True, slots=True)
class SaveRequest:
    """One database image sent to the owner."""

    save_id: SaveId
    data: bytes


@dataclass(frozen=True, slots=True)
class SaveReport:
    """The single reported outcome of one save request."""

    save_id: SaveId
    outcome: SaveOutcome
    message: str


class SaveCoordinator:
    """Tracks the in-flight save of one document session.

    Example:
        coordinator = SaveCoordinator(post_save, timers, on_outcome=show_status)
        coordinator.request_save(engine.export())
        ...
        coordinator.handle_ack(ok=True, message="Saved", save_id=1)
    """

    def __init__(
        self,
        send: Callable[[SaveRequest], None],
        timers: TimerScheduler,
        timeout: float = 6.0,
        on_outcome: Callable[[SaveReport], None] | None = None,
        metrics: MetricsRegistry | None = None,
    ) -> None:
        self._send = send
        self._timers = timers
        self._timeout = timeout
        self._on_outcome = on_outcome
        self._metrics = metrics or get_metrics()

        self._state = SaveState.IDLE
        self._last_id = INVALID_SAVE_ID
        self._current: SaveRequest | None = None
        self._timer: TimerHandle | None = None
        self._started_at = 0.0
        self._last_saved: bytes | None = None

    @property
    def state(self) -> SaveState:
        return self._state

    @property
    def current_id(self) -> SaveId:
        """Id of the newest request, INVALID_SAVE_ID before the first one."""
        return self._last_id

    @property
    def last_saved(self) -> bytes | None:
        """Image of the newest request the owner confirmed."""
        return self._last_saved

    def request_save(self, data: bytes) -> SaveRequest:
        """Hand ``data`` to ``send`` as the new current save."""
        if self._state.is_pending():
            self._metrics.saves_superseded_total.inc()
            logger.debug("save_superseded", save_id=self._last_id)
        self._cancel_timer()

        save_id = SaveId(self._last_id + 1)
        self._last_id = save_id
        request = SaveRequest(save_id=save_id, data=data)
        self._current = request
        self._state = SaveState.SAVING
        self._started_at = time.perf_counter()
        self._timer = self._timers.call_later(self._timeout, lambda: self._on_timeout(save_id))

        logger.info("save_requested", save_id=save_id, size=len(data))
        self._send(request)
        return request

    def handle_ack(self, ok: bool, message: str | None = None, save_id: int | None = None) -> SaveReport | None:
        """Apply an owner acknowledgment.

        Args:
            ok: Whether the owner persisted the bytes.
            message: Owner text shown to the user, defaulted when absent.
            save_id: Correlation id; an ack without one applies to the
                current request.

        Returns:
            The report, or None if the ack was stale or late and discarded.
        """
        if save_id is not None and save_id != self._last_id:
            logger.debug("save_ack_stale", save_id=save_id, current=self._last_id)
            return None
        if not self._state.is_pending() or self._current is None:
            logger.debug("save_ack_late", save_id=save_id, state=self._state.name)
            return None

        self._cancel_timer()
        request = self._current
        self._metrics.save_latency_seconds.observe(time.perf_counter() - self._started_at)

        self._state = SaveState.ACKED
        if ok:
            self._last_saved = request.data
            report = SaveReport(request.save_id, SaveOutcome.SAVED, message or SAVED_MESSAGE)
        else:
            report = SaveReport(request.save_id, SaveOutcome.FAILED, message or FAILED_MESSAGE)
            logger.warning("save_failed", save_id=request.save_id, message=report.message)

        return self._finish(report)

    def _on_timeout(self, save_id: SaveId) -> None:
        if save_id != self._last_id or not self._state.is_pending():
            return
        self._timer = None
        self._state = SaveState.TIMED_OUT
        logger.warning("save_timed_out", save_id=save_id, timeout=self._timeout)
        self._finish(SaveReport(save_id, SaveOutcome.TIMED_OUT, TIMED_OUT_MESSAGE))

    def _finish(self, report: SaveReport) -> SaveReport:
        self._metrics.saves_total.labels(outcome=report.outcome.value).inc()
        self._current = None
        self._state = SaveState.IDLE
        if self._on_outcome is not None:
            self._on_outcome(report)
        return report

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def close(self) -> None:
        """Drop any in-flight request without reporting it."""
        self._cancel_timer()
        self._current = None
        self._state = SaveState.IDLE
