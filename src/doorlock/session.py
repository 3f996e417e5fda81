"""Repeated verification sessions.

A session runs verify→toggle up to ``reps`` times, ``interval`` seconds
apart, timing each attempt. Every successful verification causes a real
physical toggle: the purpose is measuring verification-induced latency on
a live lock, not retrying access. After an even number of attempts the
door ends where it started.

State machine::

    PENDING --all attempts verified--> SUCCESS    (ack sent)
    PENDING --no attempt budget------> EXHAUSTED  (ack sent)
    PENDING --succeed=false----------> FAILED     (no response)
    PENDING --verification error-----> FAILED     (requester fails with the error)
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable

from doorlock._constants import ACK_PAYLOAD, DEFAULT_POLL_INTERVAL, DEFAULT_REPS
from doorlock.dispatcher import LockDispatcher
from doorlock.exceptions import DoorlockError, VerificationDeniedError, VerificationError
from doorlock.latency import Clock, elapsed_ms
from doorlock.models.latency import LatencyRecord
from doorlock.models.lock import LockCommand, TriggerSource
from doorlock.models.trigger import SessionResult, SessionState
from doorlock.ports import LatencySink, Requester
from doorlock.verification import Credential, VerificationClient

_logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class RepeatedVerificationSession:
    """One run of the repeated-polling verification protocol.

    Parameters
    ----------
    verifier : VerificationClient
        Performs each verification round trip.
    dispatcher : LockDispatcher
        Receives one toggle per successful attempt.
    latency_sink : LatencySink
        Receives one record per successful attempt.
    requester : Requester
        The waiting caller. It receives at most one response.
    credential : Mapping[str, str]
        Forwarded verbatim on every attempt.
    reps : int
        Attempt budget.
    interval : float
        Seconds between attempts.
    respond_on_denied : bool
        Fail the requester with :class:`VerificationDeniedError` when an
        attempt is denied instead of leaving it unresolved.
    """

    def __init__(
        self,
        verifier: VerificationClient,
        dispatcher: LockDispatcher,
        latency_sink: LatencySink,
        requester: Requester,
        credential: Credential,
        *,
        reps: int = DEFAULT_REPS,
        interval: float = DEFAULT_POLL_INTERVAL,
        respond_on_denied: bool = False,
        clock: Clock = time.monotonic,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        if requester.done:
            raise DoorlockError("Requester already answered; cannot bind a new session")
        self._verifier = verifier
        self._dispatcher = dispatcher
        self._latency = latency_sink
        self._requester = requester
        self._credential = dict(credential)
        self._reps = reps
        self._remaining = reps
        self._interval = interval
        self._respond_on_denied = respond_on_denied
        self._clock = clock
        self._sleep = sleep
        self._state = SessionState.PENDING
        self._started = False
        self._attempts = 0
        self._toggles = 0
        self._records: list[LatencyRecord] = []
        self.start_time = clock()

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def remaining(self) -> int:
        return self._remaining

    @property
    def requester(self) -> Requester:
        return self._requester

    async def run(self) -> SessionResult:
        """Drive the session to a terminal state. May only be called once."""
        if self._started:
            raise DoorlockError("Session already started")
        self._started = True

        if self._remaining <= 0:
            _logger.info("Repeated session has no attempt budget (reps=%d)", self._reps)
            return self._finish(SessionState.EXHAUSTED)

        while True:
            attempt_start = self._clock()
            self._attempts += 1
            attempt = self._attempts
            try:
                outcome = await self._verifier.verify(self._credential)
            except VerificationError as exc:
                _logger.warning("Attempt %d/%d verification error: %s", attempt, self._reps, exc)
                self._requester.fail(exc)
                return self._finish(SessionState.FAILED, error=exc)

            if not outcome.succeed:
                _logger.warning("Failed at verify (attempt %d/%d)", attempt, self._reps)
                denied = VerificationDeniedError(f"Verification denied at attempt {attempt}")
                if self._respond_on_denied:
                    self._requester.fail(denied)
                return self._finish(SessionState.FAILED, error=denied)

            await self._dispatcher.submit(LockCommand.TOGGLE, source=TriggerSource.NETWORK_REPEAT)
            self._toggles += 1
            record = LatencyRecord(
                elapsed_ms=elapsed_ms(attempt_start, self._clock),
                source=TriggerSource.NETWORK_REPEAT,
                attempt=attempt,
            )
            self._latency.append(record)
            self._records.append(record)
            self._remaining -= 1

            if self._remaining <= 0:
                self._requester.respond(list(ACK_PAYLOAD))
                return self._finish(SessionState.SUCCESS)

            await self._sleep(self._interval)

    def _finish(self, state: SessionState, *, error: Exception | None = None) -> SessionResult:
        self._state = state
        if state is SessionState.EXHAUSTED:
            self._requester.respond(list(ACK_PAYLOAD))
        _logger.info(
            "Repeated session %s after %d attempt(s), %d toggle(s)",
            state,
            self._attempts,
            self._toggles,
        )
        return SessionResult(
            state=state,
            attempts=self._attempts,
            toggles=self._toggles,
            records=tuple(self._records),
            error=error,
        )
