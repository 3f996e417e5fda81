"""Lock state and the commands that mutate it."""

from __future__ import annotations

import enum


class LockState(enum.StrEnum):
    """Logical state of the door lock.

    Exactly one value holds at any time; the servo power-off after the
    settle delay is an action, not a state.
    """

    LOCKED = "locked"
    UNLOCKED = "unlocked"

    @property
    def complement(self) -> LockState:
        return LockState.UNLOCKED if self is LockState.LOCKED else LockState.LOCKED

    @property
    def indicator(self) -> bool:
        """Indicator LED level for this state (lit = locked)."""
        return self is LockState.LOCKED


class LockCommand(enum.StrEnum):
    """Messages processed by the lock dispatcher."""

    TOGGLE = "toggle"
    LOCK = "lock"
    UNLOCK = "unlock"


class TriggerSource(enum.StrEnum):
    """Where a lock command originated."""

    STARTUP = "startup"
    NETWORK = "network"
    NETWORK_REPEAT = "network_repeat"
    BUTTON = "button"
    REMOTE = "remote"
