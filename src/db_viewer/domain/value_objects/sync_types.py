"""Lifecycle states for document loading and saving."""

from __future__ import annotations

from enum import Enum, auto


class SaveState(Enum):
    """Save coordinator states.

    State machine:

        IDLE ──request_save()──> SAVING
                                   │
                     ┌─────────────┴─────────────┐
                     │                           │
               ack(current id)             timer fires
                     │                           │
                     v                           v
                   ACKED                     TIMED_OUT
                     │                           │
                     └──────────> IDLE <─────────┘

    ACKED and TIMED_OUT are transient: the outcome is reported and the
    coordinator returns to IDLE in the same step. A new request_save() is
    allowed from any state and supersedes the current request.
    """

    IDLE = auto()
    """No save is in flight."""

    SAVING = auto()
    """A save was sent and neither its acknowledgment nor its timeout arrived."""

    ACKED = auto()
    """The owner acknowledged the current request."""

    TIMED_OUT = auto()
    """The timer fired before the current request was acknowledged."""

    def is_pending(self) -> bool:
        """Check if a save is waiting for its outcome."""
        return self == SaveState.SAVING


class SaveOutcome(Enum):
    """Reported outcome of one save request."""

    SAVED = "saved"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


class LoadStatus(Enum):
    """Document load status as seen by the presentation surface."""

    EMPTY = "empty"
    """Nothing has been delivered yet."""

    LOADING = "loading"
    READY = "ready"

    ERROR = "error"
    """The last load failed. Only a fresh load recovers from this state."""
