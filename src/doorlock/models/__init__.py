"""Data models for doorlock."""

from doorlock.models._base import DoorlockBaseModel
from doorlock.models.latency import LatencyRecord, LatencySummary
from doorlock.models.lock import LockCommand, LockState, TriggerSource
from doorlock.models.trigger import SessionResult, SessionState, TriggerResult
from doorlock.models.verification import VerificationOutcome

__all__ = [
    "DoorlockBaseModel",
    "LatencyRecord",
    "LatencySummary",
    "LockCommand",
    "LockState",
    "SessionResult",
    "SessionState",
    "TriggerResult",
    "TriggerSource",
    "VerificationOutcome",
]
