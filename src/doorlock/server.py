"""HTTP listener exposing the network triggers.

Routes:
  - ``GET /lock``          single verified toggle
  - ``GET /lock-repeats``  repeated verified toggles
  - ``GET /url``           static acknowledgement

Query parameters of both lock routes are the credential. Every answer on
success is the same static acknowledgement array; it says nothing about
the lock.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence

from aiohttp import web

from doorlock._constants import ACK_PAYLOAD
from doorlock.exceptions import DoorlockError, VerificationDeniedError, VerificationError
from doorlock.router import TriggerRouter

_logger = logging.getLogger(__name__)

ROUTER_KEY = web.AppKey("router", TriggerRouter)


class FutureRequester:
    """Requester backed by an asyncio future awaited by the request handler."""

    def __init__(self) -> None:
        self._future: asyncio.Future[list[str]] = asyncio.get_running_loop().create_future()

    @property
    def done(self) -> bool:
        return self._future.done()

    def respond(self, payload: Sequence[str]) -> None:
        if self._future.done():
            _logger.warning("Requester already answered; dropping response")
            return
        self._future.set_result(list(payload))

    def fail(self, error: Exception) -> None:
        if self._future.done():
            _logger.warning("Requester already answered; dropping error %s", error)
            return
        self._future.set_exception(error)

    async def wait(self) -> list[str]:
        return await self._future


def _credential(request: web.Request) -> dict[str, str]:
    return {key: value for key, value in request.query.items()}


def _error_response(exc: DoorlockError) -> web.Response:
    status = 403 if isinstance(exc, VerificationDeniedError) else 502
    return web.json_response({"error": str(exc), "type": type(exc).__name__}, status=status)


async def handle_url(_request: web.Request) -> web.Response:
    return web.json_response(list(ACK_PAYLOAD))


async def handle_lock(request: web.Request) -> web.Response:
    router = request.app[ROUTER_KEY]
    try:
        result = await router.handle_lock(_credential(request))
    except VerificationError as exc:
        _logger.warning("/lock verification error: %s", exc)
        return _error_response(exc)
    _logger.debug("/lock toggled=%s state=%s", result.toggled, result.state)
    return web.json_response(list(ACK_PAYLOAD))


async def handle_lock_repeats(request: web.Request) -> web.Response:
    """Answer once the repeated session ends.

    A denied attempt leaves the requester unresolved unless the router is
    configured with ``respond_on_denied``; the connection then stays open
    until the client gives up.
    """
    router = request.app[ROUTER_KEY]
    requester = FutureRequester()
    await router.handle_lock_repeats(_credential(request), requester)
    try:
        payload = await requester.wait()
    except DoorlockError as exc:
        _logger.warning("/lock-repeats ended with error: %s", exc)
        return _error_response(exc)
    return web.json_response(payload)


def create_app(router: TriggerRouter) -> web.Application:
    """Build the web application around *router*."""
    app = web.Application()
    app[ROUTER_KEY] = router
    app.add_routes(
        [
            web.get("/url", handle_url),
            web.get("/lock", handle_lock),
            web.get("/lock-repeats", handle_lock_repeats),
        ]
    )
    return app
