from __future__ import annotations

import aiohttp
import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer
from conftest import ScriptedTransport, ok

from doorlock._transport import JsonTransport
from doorlock.exceptions import VerificationParseError, VerificationTransportError
from doorlock.verification import VerificationClient, parse_verification_response


def test_parse_accepts_extra_fields() -> None:
    outcome = parse_verification_response('{"succeed": true, "reason": "ok", "ttl": 30}')

    assert outcome.succeed is True


@pytest.mark.parametrize(
    "body",
    [
        "not json",
        "[true]",
        '{"result": true}',
        '{"succeed": {"nested": 1}}',
        "",
    ],
)
def test_parse_failures_are_hard_errors(body: str) -> None:
    with pytest.raises(VerificationParseError) as excinfo:
        parse_verification_response(body)

    assert excinfo.value.body == body


@pytest.mark.asyncio
async def test_verify_forwards_credential_verbatim() -> None:
    transport = ScriptedTransport(ok(False))
    client = VerificationClient(transport, endpoint="http://verifier/verify")

    outcome = await client.verify({"certContent": "abc", "certSign": "sig", "extra": "1"})

    assert outcome.succeed is False
    assert transport.requests == [
        ("http://verifier/verify", {"certContent": "abc", "certSign": "sig", "extra": "1"}),
    ]


async def _verifier_app(status: int, body: str, seen: list[dict[str, str]]) -> TestServer:
    async def verify(request: web.Request) -> web.Response:
        seen.append(await request.json())
        return web.Response(status=status, text=body, content_type="application/json")

    app = web.Application()
    app.router.add_post("/verify", verify)
    return TestServer(app)


@pytest.mark.asyncio
async def test_json_transport_round_trip() -> None:
    seen: list[dict[str, str]] = []
    server = await _verifier_app(200, ok(True), seen)
    async with server, aiohttp.ClientSession() as http:
        client = VerificationClient(JsonTransport(http), endpoint=str(server.make_url("/verify")))

        outcome = await client.verify({"certContent": "abc"})

    assert outcome.succeed is True
    assert seen == [{"certContent": "abc"}]


@pytest.mark.asyncio
async def test_json_transport_non_200_is_transport_error() -> None:
    server = await _verifier_app(500, "boom", [])
    async with server, aiohttp.ClientSession() as http:
        url = str(server.make_url("/verify"))
        client = VerificationClient(JsonTransport(http), endpoint=url)

        with pytest.raises(VerificationTransportError) as excinfo:
            await client.verify({})

    assert excinfo.value.status_code == 500
    assert excinfo.value.endpoint == url


@pytest.mark.asyncio
async def test_json_transport_connection_refused_is_transport_error() -> None:
    server = await _verifier_app(200, ok(True), [])
    async with server:
        url = str(server.make_url("/verify"))
    # Server is closed now; nothing listens on the port.
    async with aiohttp.ClientSession() as http:
        client = VerificationClient(JsonTransport(http), endpoint=url)

        with pytest.raises(VerificationTransportError):
            await client.verify({})
