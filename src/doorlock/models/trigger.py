"""Outcomes of gated triggers and repeated sessions."""

from __future__ import annotations

import enum

from pydantic import ConfigDict, Field

from doorlock.models._base import DoorlockBaseModel
from doorlock.models.latency import LatencyRecord
from doorlock.models.lock import LockState


class TriggerResult(DoorlockBaseModel):
    """Outcome of a single network trigger."""

    toggled: bool
    state: LockState
    elapsed_ms: int | None = None


class SessionState(enum.StrEnum):
    """Repeated verification session states.

    ``PENDING`` is the only non-terminal state.
    """

    PENDING = "pending"
    SUCCESS = "success"
    EXHAUSTED = "exhausted"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not SessionState.PENDING


class SessionResult(DoorlockBaseModel):
    """Summary of a finished repeated verification session."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    state: SessionState
    attempts: int = 0
    toggles: int = 0
    records: tuple[LatencyRecord, ...] = ()
    error: Exception | None = Field(default=None, exclude=True)

    @property
    def responded(self) -> bool:
        """Whether the requester received the acknowledgement payload."""
        return self.state in (SessionState.SUCCESS, SessionState.EXHAUSTED)
