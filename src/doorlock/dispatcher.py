"""Single consumer task serializing lock commands.

All triggers express lock changes as :class:`~doorlock.models.LockCommand`
messages. One task applies them to the controller in arrival order, so
interleavings between a running repeated session and a button press are
explicit queue orderings rather than ad-hoc writes. There is no mutual
exclusion beyond that ordering: a button toggle can land between two
session toggles.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass

from doorlock.controller import LockController
from doorlock.exceptions import DoorlockError
from doorlock.models.lock import LockCommand, LockState, TriggerSource

_logger = logging.getLogger(__name__)


@dataclass(slots=True)
class _Envelope:
    command: LockCommand
    source: TriggerSource
    future: asyncio.Future[LockState] | None = None


class LockDispatcher:
    """Applies queued lock commands to a :class:`LockController`.

    Usage::

        dispatcher = LockDispatcher(controller)
        await dispatcher.start()
        state = await dispatcher.submit(LockCommand.TOGGLE, source=TriggerSource.NETWORK)
        await dispatcher.stop()
    """

    def __init__(self, controller: LockController) -> None:
        self._controller = controller
        self._queue: asyncio.Queue[_Envelope] = asyncio.Queue()
        self._task: asyncio.Task[None] | None = None
        self._applied = 0

    @property
    def controller(self) -> LockController:
        return self._controller

    @property
    def state(self) -> LockState:
        return self._controller.state

    @property
    def applied(self) -> int:
        """Number of commands applied since start."""
        return self._applied

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        if self.is_running:
            return
        self._task = asyncio.create_task(self._run(), name="doorlock-dispatcher")

    async def stop(self) -> None:
        task = self._task
        self._task = None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        while not self._queue.empty():
            envelope = self._queue.get_nowait()
            self._queue.task_done()
            if envelope.future is not None and not envelope.future.done():
                envelope.future.cancel()

    async def __aenter__(self) -> LockDispatcher:
        await self.start()
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.stop()

    # ------------------------------------------------------------------
    # Producers
    # ------------------------------------------------------------------

    async def submit(self, command: LockCommand, *, source: TriggerSource) -> LockState:
        """Enqueue *command* and wait until it has been applied."""
        self._require_running()
        future: asyncio.Future[LockState] = asyncio.get_running_loop().create_future()
        self._queue.put_nowait(_Envelope(command, source, future))
        return await future

    def post(self, command: LockCommand, *, source: TriggerSource) -> None:
        """Enqueue *command* from the event loop without waiting."""
        self._require_running()
        self._queue.put_nowait(_Envelope(command, source))

    def _require_running(self) -> None:
        if not self.is_running:
            raise DoorlockError("Dispatcher not running. Call 'await dispatcher.start()' first")

    # ------------------------------------------------------------------
    # Consumer
    # ------------------------------------------------------------------

    async def _run(self) -> None:
        while True:
            envelope = await self._queue.get()
            _logger.debug("Applying %s from %s", envelope.command, envelope.source)
            try:
                state = self._controller.apply(envelope.command)
            except Exception as exc:
                _logger.exception("Lock command %s from %s failed", envelope.command, envelope.source)
                if envelope.future is not None and not envelope.future.done():
                    envelope.future.set_exception(exc)
                continue
            finally:
                self._queue.task_done()
            self._applied += 1
            if envelope.future is not None and not envelope.future.done():
                envelope.future.set_result(state)

    async def drain(self) -> None:
        """Wait until every queued command has been applied."""
        await self._queue.join()
