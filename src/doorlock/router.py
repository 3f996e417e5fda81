"""Trigger entry points and their gating policies.

=====================  =====================  ==================
Trigger                Gate                   Latency record
=====================  =====================  ==================
network single         verify once            yes
network repeated       repeated session       per attempt
physical button        none (falling edge)    no
remote virtual pin     none                   no
=====================  =====================  ==================

With certificate checking disabled both network triggers toggle once
without verification; repetition only exists to measure verification
latency.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from collections.abc import Sequence

from doorlock._constants import ACK_PAYLOAD, DEFAULT_POLL_INTERVAL, DEFAULT_REPS, MSG_UNKNOWN_PARAMETER
from doorlock.dispatcher import LockDispatcher
from doorlock.exceptions import DoorlockError
from doorlock.latency import Clock, elapsed_ms
from doorlock.models.latency import LatencyRecord
from doorlock.models.lock import LockCommand, TriggerSource
from doorlock.models.trigger import SessionResult, TriggerResult
from doorlock.ports import LatencySink, NotificationPort, Requester
from doorlock.session import RepeatedVerificationSession, Sleep
from doorlock.verification import Credential, VerificationClient

_logger = logging.getLogger(__name__)

#: Remote virtual-pin values and the absolute command each one requests.
_VIRTUAL_COMMANDS: dict[str, LockCommand] = {
    "0": LockCommand.UNLOCK,
    "1": LockCommand.LOCK,
}

FALLING_EDGE_LEVEL = 0


class TriggerRouter:
    """Routes the four trigger entry points onto the lock dispatcher."""

    def __init__(
        self,
        dispatcher: LockDispatcher,
        verifier: VerificationClient,
        notifier: NotificationPort,
        latency_sink: LatencySink,
        *,
        check_cert: bool = True,
        reps: int = DEFAULT_REPS,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        respond_on_denied: bool = False,
        clock: Clock = time.monotonic,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._dispatcher = dispatcher
        self._verifier = verifier
        self._notifier = notifier
        self._latency = latency_sink
        self._check_cert = check_cert
        self._reps = reps
        self._poll_interval = poll_interval
        self._respond_on_denied = respond_on_denied
        self._clock = clock
        self._sleep = sleep
        self._sessions: dict[int, asyncio.Task[SessionResult]] = {}

    @property
    def check_cert(self) -> bool:
        return self._check_cert

    @property
    def active_sessions(self) -> int:
        return len(self._sessions)

    # ------------------------------------------------------------------
    # Network triggers
    # ------------------------------------------------------------------

    async def handle_lock(self, credential: Credential) -> TriggerResult:
        """Single network toggle.

        Verification errors propagate; a denial returns
        ``toggled=False`` and is still logged as a completed decision.
        """
        start = self._clock()
        toggled = True
        if self._check_cert:
            outcome = await self._verifier.verify(credential)
            toggled = outcome.succeed
            if not toggled:
                _logger.warning("Failed at verify")

        if toggled:
            state = await self._dispatcher.submit(LockCommand.TOGGLE, source=TriggerSource.NETWORK)
        else:
            state = self._dispatcher.state

        took = elapsed_ms(start, self._clock)
        self._latency.append(LatencyRecord(elapsed_ms=took, source=TriggerSource.NETWORK))
        return TriggerResult(toggled=toggled, state=state, elapsed_ms=took)

    async def handle_lock_repeats(
        self,
        credential: Credential,
        requester: Requester,
    ) -> RepeatedVerificationSession | None:
        """Repeated network toggle.

        With checking enabled, starts a session in the background and
        returns it; the requester is answered by the session. Otherwise
        toggles once, answers the requester and returns ``None``.
        """
        if not self._check_cert:
            start = self._clock()
            await self._dispatcher.submit(LockCommand.TOGGLE, source=TriggerSource.NETWORK_REPEAT)
            requester.respond(list(ACK_PAYLOAD))
            self._latency.append(
                LatencyRecord(
                    elapsed_ms=elapsed_ms(start, self._clock),
                    source=TriggerSource.NETWORK_REPEAT,
                )
            )
            return None

        key = id(requester)
        if key in self._sessions:
            raise DoorlockError("Requester is already bound to a running session")

        session = RepeatedVerificationSession(
            self._verifier,
            self._dispatcher,
            self._latency,
            requester,
            credential,
            reps=self._reps,
            interval=self._poll_interval,
            respond_on_denied=self._respond_on_denied,
            clock=self._clock,
            sleep=self._sleep,
        )
        task = asyncio.create_task(session.run(), name="doorlock-repeated-session")
        self._sessions[key] = task

        def _on_done(done: asyncio.Task[SessionResult]) -> None:
            self._sessions.pop(key, None)
            if done.cancelled():
                return
            exc = done.exception()
            if exc is None:
                return
            _logger.error("Repeated session crashed", exc_info=exc)
            if not requester.done:
                requester.fail(exc)

        task.add_done_callback(_on_done)
        return session

    # ------------------------------------------------------------------
    # Local and remote triggers
    # ------------------------------------------------------------------

    def on_button(self, level: int) -> None:
        """Physical button interrupt. Only the falling edge toggles."""
        _logger.info("level: %s locked: %s", level, self._dispatcher.controller.is_locked)
        if level != FALLING_EDGE_LEVEL:
            return
        if not self._dispatcher.is_running:
            _logger.debug("Dispatcher stopped; button edge dropped")
            return
        self._dispatcher.post(LockCommand.TOGGLE, source=TriggerSource.BUTTON)

    def on_virtual_write(self, value: str | Sequence[str]) -> None:
        """Remote virtual-pin write.

        ``'0'`` requests unlock and ``'1'`` requests lock; the command is
        applied even when the lock already is in that state. Any other
        value only raises a warning notification. Writes arriving
        after the dispatcher stopped are dropped.
        """
        _logger.info("V0: %r", value)
        if not self._dispatcher.is_running:
            _logger.debug("Dispatcher stopped; virtual pin write dropped")
            return
        if isinstance(value, str):
            head = value
        else:
            head = value[0] if value else ""
        command = _VIRTUAL_COMMANDS.get(head)
        if command is None:
            try:
                self._notifier.notify(MSG_UNKNOWN_PARAMETER)
            except Exception:
                _logger.warning("Notification failed: %s", MSG_UNKNOWN_PARAMETER, exc_info=True)
            return
        self._dispatcher.post(command, source=TriggerSource.REMOTE)

    # ------------------------------------------------------------------
    # Shutdown
    # ------------------------------------------------------------------

    async def close(self) -> None:
        """Cancel sessions still running at shutdown."""
        tasks = list(self._sessions.values())
        for task in tasks:
            task.cancel()
        for task in tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._sessions.clear()
