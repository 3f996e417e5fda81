"""pigpio-backed actuator and button.

Requires a running pigpio daemon (``sudo systemctl enable --now pigpiod``).
The button line is pulled down and reported on its falling edge; pigpio
delivers callbacks on its own thread, so they are forwarded to the event
loop with ``call_soon_threadsafe``.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

import pigpio

from doorlock.config import PinAssignment
from doorlock.exceptions import DoorlockHardwareError

_logger = logging.getLogger(__name__)


def connect(host: str = "localhost", port: int = 8888) -> Any:
    """Open a connection to the pigpio daemon."""
    pi = pigpio.pi(host, port)
    if not pi.connected:
        raise DoorlockHardwareError(f"pigpio daemon not reachable at {host}:{port}")
    return pi


class PigpioActuator:
    """Servo on ``pins.motor`` and indicator LED on ``pins.led``."""

    def __init__(self, pi: Any, pins: PinAssignment) -> None:
        self._pi = pi
        self._pins = pins
        pi.set_mode(pins.motor, pigpio.OUTPUT)
        pi.set_mode(pins.led, pigpio.OUTPUT)

    def drive(self, pulse_width: int) -> None:
        self._pi.set_servo_pulsewidth(self._pins.motor, pulse_width)

    def set_indicator(self, lit: bool) -> None:
        self._pi.write(self._pins.led, 1 if lit else 0)


class PigpioButton:
    """Falling-edge watcher on the button pin."""

    def __init__(
        self,
        pi: Any,
        pin: int,
        *,
        loop: asyncio.AbstractEventLoop,
        on_edge: Callable[[int], None],
    ) -> None:
        self._loop = loop
        self._on_edge = on_edge
        pi.set_mode(pin, pigpio.INPUT)
        pi.set_pull_up_down(pin, pigpio.PUD_DOWN)
        self._callback = pi.callback(pin, pigpio.FALLING_EDGE, self._edge)

    def _edge(self, gpio: int, level: int, _tick: int) -> None:
        _logger.debug("Edge on gpio=%d level=%d", gpio, level)
        self._loop.call_soon_threadsafe(self._on_edge, level)

    def cancel(self) -> None:
        self._callback.cancel()
