"""Authoritative lock state and its physical side effects."""

from __future__ import annotations

import logging

from doorlock._constants import MSG_LOCKED, MSG_UNLOCKED, POWER_OFF_PULSE_WIDTH
from doorlock.actuator import PowerOffHandle, PowerOffScheduler
from doorlock.config import ActuatorConfig
from doorlock.models.lock import LockCommand, LockState
from doorlock.ports import ActuatorPort, NotificationPort

_logger = logging.getLogger(__name__)


class LockController:
    """Owns the single lock-state value.

    Every state change runs the same sequence: drive the servo to the
    position of the new state, set the indicator (lit = locked), send a
    notification and arm the deferred power-off. Actuator and notification
    failures are logged and never raised to the caller.

    Must be used from a running event loop because of the power-off timer.
    """

    def __init__(
        self,
        actuator: ActuatorPort,
        notifier: NotificationPort,
        *,
        actuator_config: ActuatorConfig | None = None,
        initial_state: LockState = LockState.LOCKED,
    ) -> None:
        self._actuator = actuator
        self._notifier = notifier
        self._config = actuator_config or ActuatorConfig()
        self._state = initial_state
        self._power_off = PowerOffScheduler(actuator, self._config.settle_delay)
        self._last_power_off: PowerOffHandle | None = None

    @property
    def state(self) -> LockState:
        return self._state

    @property
    def is_locked(self) -> bool:
        return self._state is LockState.LOCKED

    @property
    def power_off(self) -> PowerOffScheduler:
        return self._power_off

    @property
    def last_power_off(self) -> PowerOffHandle | None:
        """Handle of the power-off armed by the most recent state change."""
        return self._last_power_off

    def toggle(self) -> LockState:
        """Flip the lock to the complement of its current state."""
        return self._set(self._state.complement)

    def lock(self) -> LockState:
        return self._set(LockState.LOCKED)

    def unlock(self) -> LockState:
        return self._set(LockState.UNLOCKED)

    def apply(self, command: LockCommand) -> LockState:
        if command is LockCommand.TOGGLE:
            return self.toggle()
        if command is LockCommand.LOCK:
            return self.lock()
        return self.unlock()

    def shutdown(self) -> None:
        """Drop pending power-off timers and switch the servo off now."""
        self._power_off.cancel_all()
        self._safe_drive(POWER_OFF_PULSE_WIDTH)

    def _set(self, new_state: LockState) -> LockState:
        previous = self._state
        self._safe_drive(self._config.pulse_width_for(new_state))
        try:
            self._actuator.set_indicator(new_state.indicator)
        except Exception:
            _logger.warning("Indicator write failed", exc_info=True)
        self._state = new_state
        _logger.info("Lock state %s -> %s", previous, new_state)

        message = MSG_LOCKED if new_state is LockState.LOCKED else MSG_UNLOCKED
        try:
            self._notifier.notify(message)
        except Exception:
            _logger.warning("Notification failed: %s", message, exc_info=True)

        self._last_power_off = self._power_off.schedule()
        return new_state

    def _safe_drive(self, pulse_width: int) -> None:
        try:
            self._actuator.drive(pulse_width)
        except Exception:
            _logger.warning("Actuator drive to %d failed", pulse_width, exc_info=True)
