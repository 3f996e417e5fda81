"""Verification authority client.

Endpoint:
  - ``POST <verify_url>`` with the credential as a JSON object, answered by
    a JSON object carrying at least a boolean ``succeed``.

One call is one round trip; there is no retry here. Repetition is the
business of :class:`~doorlock.session.RepeatedVerificationSession`.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping

from pydantic import ValidationError

from doorlock._constants import DEFAULT_VERIFY_URL
from doorlock._transport import Transport
from doorlock.exceptions import VerificationParseError
from doorlock.models.verification import VerificationOutcome

_logger = logging.getLogger(__name__)

Credential = Mapping[str, str]
"""Opaque credential payload, forwarded verbatim."""


def parse_verification_response(text: str) -> VerificationOutcome:
    """Parse a raw verification response body.

    A malformed body is a hard error, never an implicit ``succeed=false``.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise VerificationParseError(
            f"Verification response is not JSON: {text[:64]}",
            body=text,
        ) from exc

    if not isinstance(data, dict):
        raise VerificationParseError("Verification response is not an object", body=text)
    if "succeed" not in data:
        raise VerificationParseError("Verification response missing 'succeed'", body=text)

    try:
        return VerificationOutcome.model_validate(data)
    except ValidationError as exc:
        raise VerificationParseError(
            f"Verification response has invalid 'succeed': {data['succeed']!r}",
            body=text,
        ) from exc


class VerificationClient:
    """Performs single verification round trips."""

    def __init__(self, transport: Transport, *, endpoint: str = DEFAULT_VERIFY_URL) -> None:
        self._transport = transport
        self._endpoint = endpoint

    @property
    def endpoint(self) -> str:
        return self._endpoint

    async def verify(self, credential: Credential) -> VerificationOutcome:
        """Send *credential* to the verification authority once.

        Raises
        ------
        VerificationTransportError
            The round trip could not complete.
        VerificationParseError
            The response body could not be interpreted.
        """
        text = await self._transport.post_json(self._endpoint, credential)
        outcome = parse_verification_response(text)
        _logger.debug("Verification outcome succeed=%s", outcome.succeed)
        return outcome
