from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from typing import Any

import pytest

from doorlock.exceptions import VerificationTransportError


class FakeActuator:
    """Records every actuator call as ``(kind, value)``."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, Any]] = []

    def drive(self, pulse_width: int) -> None:
        self.calls.append(("drive", pulse_width))

    def set_indicator(self, lit: bool) -> None:
        self.calls.append(("indicator", lit))

    @property
    def drives(self) -> list[int]:
        return [value for kind, value in self.calls if kind == "drive"]


class FakeNotifier:
    def __init__(self) -> None:
        self.messages: list[str] = []

    def notify(self, message: str) -> None:
        self.messages.append(message)


class ScriptedTransport:
    """Answers verification requests from a script of bodies or exceptions."""

    def __init__(self, *responses: str | Exception) -> None:
        self._responses = list(responses)
        self.requests: list[tuple[str, dict[str, Any]]] = []

    async def post_json(self, url: str, payload: Mapping[str, Any]) -> str:
        self.requests.append((url, dict(payload)))
        if not self._responses:
            raise VerificationTransportError("script exhausted", endpoint=url)
        item = self._responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


class RecordingRequester:
    def __init__(self) -> None:
        self.responses: list[list[str]] = []
        self.errors: list[Exception] = []

    @property
    def done(self) -> bool:
        return bool(self.responses or self.errors)

    def respond(self, payload: Sequence[str]) -> None:
        self.responses.append(list(payload))

    def fail(self, error: Exception) -> None:
        self.errors.append(error)


def ok(succeed: bool = True) -> str:
    return json.dumps({"succeed": succeed})


@pytest.fixture
def actuator() -> FakeActuator:
    return FakeActuator()


@pytest.fixture
def notifier() -> FakeNotifier:
    return FakeNotifier()
