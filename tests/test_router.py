from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Mapping
from typing import Any

import pytest
import pytest_asyncio
from conftest import FakeActuator, FakeNotifier, RecordingRequester, ScriptedTransport, ok

from doorlock._constants import ACK_PAYLOAD, MSG_LOCKED, MSG_UNKNOWN_PARAMETER, MSG_UNLOCKED
from doorlock.config import ActuatorConfig
from doorlock.controller import LockController
from doorlock.dispatcher import LockDispatcher
from doorlock.exceptions import DoorlockError, VerificationTransportError
from doorlock.latency import MemoryLatencySink
from doorlock.models.lock import LockState, TriggerSource
from doorlock.models.trigger import SessionState
from doorlock.router import TriggerRouter
from doorlock.verification import VerificationClient


@pytest_asyncio.fixture
async def dispatcher(actuator: FakeActuator, notifier: FakeNotifier) -> AsyncIterator[LockDispatcher]:
    controller = LockController(actuator, notifier, actuator_config=ActuatorConfig(settle_delay=0.0))
    async with LockDispatcher(controller) as running:
        yield running


async def _no_sleep(_delay: float) -> None:
    await asyncio.sleep(0)


def _router(
    dispatcher: LockDispatcher,
    notifier: FakeNotifier,
    sink: MemoryLatencySink,
    transport: Any = None,
    *,
    check_cert: bool = True,
    reps: int = 3,
) -> TriggerRouter:
    return TriggerRouter(
        dispatcher,
        VerificationClient(transport or ScriptedTransport()),
        notifier,
        sink,
        check_cert=check_cert,
        reps=reps,
        poll_interval=2.0,
        sleep=_no_sleep,
    )


# ------------------------------------------------------------------
# Single network trigger
# ------------------------------------------------------------------


@pytest.mark.asyncio
async def test_single_toggle_unchecked_toggles_without_verification(
    dispatcher: LockDispatcher, notifier: FakeNotifier
) -> None:
    transport = ScriptedTransport()
    sink = MemoryLatencySink()
    router = _router(dispatcher, notifier, sink, transport, check_cert=False)

    result = await router.handle_lock({"anything": "goes"})

    assert result.toggled
    assert result.state is LockState.UNLOCKED
    assert transport.requests == []
    assert len(sink.records) == 1
    assert sink.records[0].source is TriggerSource.NETWORK
    assert sink.records[0].elapsed_ms < 1000


@pytest.mark.asyncio
async def test_single_toggle_verified(dispatcher: LockDispatcher, notifier: FakeNotifier) -> None:
    sink = MemoryLatencySink()
    router = _router(dispatcher, notifier, sink, ScriptedTransport(ok()))

    result = await router.handle_lock({"certContent": "c"})

    assert result.toggled
    assert dispatcher.state is LockState.UNLOCKED
    assert notifier.messages == [MSG_UNLOCKED]
    assert len(sink.records) == 1


@pytest.mark.asyncio
async def test_single_toggle_denied_keeps_state_and_still_logs(
    dispatcher: LockDispatcher, notifier: FakeNotifier
) -> None:
    sink = MemoryLatencySink()
    router = _router(dispatcher, notifier, sink, ScriptedTransport(ok(False)))

    result = await router.handle_lock({"certContent": "c"})

    assert not result.toggled
    assert result.state is LockState.LOCKED
    assert notifier.messages == []
    assert len(sink.records) == 1


@pytest.mark.asyncio
async def test_single_toggle_transport_error_propagates(dispatcher: LockDispatcher, notifier: FakeNotifier) -> None:
    sink = MemoryLatencySink()
    transport = ScriptedTransport(VerificationTransportError("refused"))
    router = _router(dispatcher, notifier, sink, transport)

    with pytest.raises(VerificationTransportError):
        await router.handle_lock({})

    assert dispatcher.state is LockState.LOCKED
    assert sink.records == []


# ------------------------------------------------------------------
# Repeated network trigger
# ------------------------------------------------------------------


@pytest.mark.asyncio
async def test_repeated_unchecked_toggles_once_and_responds(
    dispatcher: LockDispatcher, notifier: FakeNotifier
) -> None:
    sink = MemoryLatencySink()
    requester = RecordingRequester()
    router = _router(dispatcher, notifier, sink, check_cert=False, reps=5)

    session = await router.handle_lock_repeats({}, requester)

    assert session is None
    assert requester.responses == [list(ACK_PAYLOAD)]
    assert len(sink.records) == 1
    assert dispatcher.state is LockState.UNLOCKED


@pytest.mark.asyncio
async def test_repeated_checked_runs_session_in_background(
    dispatcher: LockDispatcher, notifier: FakeNotifier
) -> None:
    sink = MemoryLatencySink()
    requester = RecordingRequester()
    router = _router(dispatcher, notifier, sink, ScriptedTransport(ok(), ok(), ok()))

    session = await router.handle_lock_repeats({"certContent": "c"}, requester)
    assert session is not None
    assert router.active_sessions == 1

    for _ in range(200):
        if session.state.is_terminal:
            break
        await asyncio.sleep(0)

    assert session.state is SessionState.SUCCESS
    assert requester.responses == [list(ACK_PAYLOAD)]
    assert len(sink.records) == 3
    await asyncio.sleep(0)
    assert router.active_sessions == 0


@pytest.mark.asyncio
async def test_requester_cannot_be_bound_twice(dispatcher: LockDispatcher, notifier: FakeNotifier) -> None:
    gate = asyncio.Event()

    class _BlockingTransport:
        async def post_json(self, url: str, payload: Mapping[str, Any]) -> str:
            await gate.wait()
            return ok()

    router = _router(dispatcher, notifier, MemoryLatencySink(), _BlockingTransport(), reps=1)
    requester = RecordingRequester()
    await router.handle_lock_repeats({}, requester)

    with pytest.raises(DoorlockError):
        await router.handle_lock_repeats({}, requester)

    await router.close()
    assert router.active_sessions == 0


@pytest.mark.asyncio
async def test_button_interleaves_with_pending_session(
    dispatcher: LockDispatcher, actuator: FakeActuator, notifier: FakeNotifier
) -> None:
    """No mutual exclusion: a button press lands between session toggles."""
    gate = asyncio.Event()
    responses = [ok(), ok(), ok()]

    class _GatedTransport:
        def __init__(self) -> None:
            self.calls = 0

        async def post_json(self, url: str, payload: Mapping[str, Any]) -> str:
            self.calls += 1
            if self.calls == 2:
                await gate.wait()
            return responses.pop(0)

    transport = _GatedTransport()
    requester = RecordingRequester()
    router = _router(dispatcher, notifier, MemoryLatencySink(), transport)

    session = await router.handle_lock_repeats({}, requester)
    assert session is not None
    while transport.calls < 2:
        await asyncio.sleep(0)

    # Attempt 1 toggled; attempt 2 is waiting on verification.
    assert dispatcher.state is LockState.UNLOCKED
    router.on_button(0)
    await dispatcher.drain()
    assert dispatcher.state is LockState.LOCKED
    assert session.state is SessionState.PENDING

    gate.set()
    while not session.state.is_terminal:
        await asyncio.sleep(0)

    # Three session toggles plus one button toggle: even count, back to locked.
    assert notifier.messages == [MSG_UNLOCKED, MSG_LOCKED, MSG_UNLOCKED, MSG_LOCKED]
    assert dispatcher.state is LockState.LOCKED
    assert requester.responses == [list(ACK_PAYLOAD)]


# ------------------------------------------------------------------
# Physical and remote triggers
# ------------------------------------------------------------------


@pytest.mark.asyncio
async def test_button_only_falling_edge_toggles(dispatcher: LockDispatcher, notifier: FakeNotifier) -> None:
    sink = MemoryLatencySink()
    router = _router(dispatcher, notifier, sink)

    router.on_button(1)
    await dispatcher.drain()
    assert dispatcher.state is LockState.LOCKED

    router.on_button(0)
    router.on_button(0)
    await dispatcher.drain()

    assert dispatcher.state is LockState.LOCKED
    assert dispatcher.applied == 2
    assert sink.records == []


@pytest.mark.asyncio
async def test_remote_commands_are_absolute(dispatcher: LockDispatcher, notifier: FakeNotifier) -> None:
    router = _router(dispatcher, notifier, MemoryLatencySink())
    assert dispatcher.state is LockState.LOCKED

    router.on_virtual_write("0")
    await dispatcher.drain()
    assert dispatcher.state is LockState.UNLOCKED

    # A repeated '0' re-drives the unlock path instead of toggling back.
    router.on_virtual_write(["0"])
    await dispatcher.drain()
    assert dispatcher.state is LockState.UNLOCKED
    assert notifier.messages == [MSG_UNLOCKED, MSG_UNLOCKED]

    router.on_virtual_write("1")
    await dispatcher.drain()
    assert dispatcher.state is LockState.LOCKED


@pytest.mark.asyncio
@pytest.mark.parametrize("value", ["2", "", "01", [], ["x"]])
async def test_remote_unknown_value_only_warns(
    dispatcher: LockDispatcher, notifier: FakeNotifier, value: object
) -> None:
    router = _router(dispatcher, notifier, MemoryLatencySink())

    router.on_virtual_write(value)  # type: ignore[arg-type]
    await dispatcher.drain()

    assert notifier.messages == [MSG_UNKNOWN_PARAMETER]
    assert dispatcher.state is LockState.LOCKED
    assert dispatcher.applied == 0


@pytest.mark.asyncio
async def test_local_triggers_after_shutdown_are_dropped(
    actuator: FakeActuator, notifier: FakeNotifier
) -> None:
    controller = LockController(actuator, notifier, actuator_config=ActuatorConfig(settle_delay=0.0))
    stopped = LockDispatcher(controller)
    await stopped.start()
    await stopped.stop()
    router = _router(stopped, notifier, MemoryLatencySink())

    router.on_button(0)
    router.on_virtual_write("1")
    router.on_virtual_write("2")

    assert notifier.messages == []
    assert actuator.calls == []
    assert stopped.applied == 0
