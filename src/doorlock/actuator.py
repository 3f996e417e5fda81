"""Deferred servo power-off.

After every drive command the servo is switched to zero drive once the
settle delay has elapsed, so it does not hold stall current against the
lock. Scheduled power-offs are never cancelled by later toggles: a toggle
issued inside the settle window of an earlier one may therefore have its
movement cut short by the earlier timer. Each scheduled power-off carries
a generation number so callers can tell which toggle it belongs to.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from doorlock._constants import POWER_OFF_PULSE_WIDTH
from doorlock.ports import ActuatorPort

_logger = logging.getLogger(__name__)


@dataclass(slots=True)
class PowerOffHandle:
    """A scheduled zero-drive command."""

    generation: int
    _timer: asyncio.TimerHandle = field(repr=False)
    fired: bool = False

    @property
    def cancelled(self) -> bool:
        return self._timer.cancelled()

    @property
    def pending(self) -> bool:
        return not self.fired and not self.cancelled

    def cancel(self) -> None:
        self._timer.cancel()


class PowerOffScheduler:
    """Schedules one-shot zero-drive commands on the running event loop."""

    def __init__(self, actuator: ActuatorPort, delay: float) -> None:
        self._actuator = actuator
        self._delay = delay
        self._generation = 0
        self._pending: dict[int, PowerOffHandle] = {}

    @property
    def generation(self) -> int:
        """Generation number of the most recently scheduled power-off."""
        return self._generation

    @property
    def pending(self) -> list[PowerOffHandle]:
        return list(self._pending.values())

    def schedule(self) -> PowerOffHandle:
        """Arm a power-off ``delay`` seconds from now and return its handle."""
        loop = asyncio.get_running_loop()
        self._generation += 1
        generation = self._generation
        timer = loop.call_later(self._delay, self._fire, generation)
        handle = PowerOffHandle(generation=generation, _timer=timer)
        self._pending[generation] = handle
        return handle

    def cancel_all(self) -> None:
        for handle in self._pending.values():
            handle.cancel()
        self._pending.clear()

    def _fire(self, generation: int) -> None:
        handle = self._pending.pop(generation, None)
        if handle is not None:
            handle.fired = True
        if generation != self._generation:
            _logger.debug(
                "Power-off generation=%d fires after newer drive generation=%d",
                generation,
                self._generation,
            )
        try:
            self._actuator.drive(POWER_OFF_PULSE_WIDTH)
        except Exception:
            _logger.warning("Actuator power-off failed", exc_info=True)
