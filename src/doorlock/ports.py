"""Structural interfaces for the collaborators around the lock core.

Having protocols here makes it easy to pass test doubles while keeping the
production implementations (pigpio, paho-mqtt, file log) concrete.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from doorlock.models.latency import LatencyRecord


class ActuatorPort(Protocol):
    """Servo and indicator outputs."""

    def drive(self, pulse_width: int) -> None:
        """Command the servo to *pulse_width* microseconds (``0`` = off)."""
        ...

    def set_indicator(self, lit: bool) -> None:
        ...


class NotificationPort(Protocol):
    """Fire-and-forget human-readable notifications."""

    def notify(self, message: str) -> None:
        ...


class LatencySink(Protocol):
    """Append-only destination for latency records."""

    def append(self, record: LatencyRecord) -> None:
        ...


class Requester(Protocol):
    """Handle on the caller waiting for a repeated-toggle response."""

    @property
    def done(self) -> bool:
        ...

    def respond(self, payload: Sequence[str]) -> None:
        ...

    def fail(self, error: Exception) -> None:
        ...
