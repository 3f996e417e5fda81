"""HTTP transport to the verification authority."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp

from doorlock._redact import redact_for_log
from doorlock.exceptions import VerificationTransportError

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by :class:`VerificationClient`.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (`JsonTransport`) concrete.
    """

    async def post_json(self, url: str, payload: Mapping[str, Any]) -> str:
        ...


class JsonTransport:
    """POSTs a JSON body and returns the raw response text."""

    def __init__(
        self,
        http_session: aiohttp.ClientSession,
        *,
        timeout: float | None = None,
    ) -> None:
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    async def post_json(self, url: str, payload: Mapping[str, Any]) -> str:
        """Send *payload* as ``application/json`` and return the body text.

        Raises :class:`VerificationTransportError` on network failure,
        timeout or any non-200 status.
        """
        headers = {"content-type": "application/json"}
        body = json.dumps(dict(payload), separators=(",", ":"))

        _logger.debug("POST %s body=%s", url, redact_for_log(payload))

        try:
            async with self._http.post(url, data=body, headers=headers, timeout=self._timeout) as resp:
                text = await resp.text()
                if resp.status != 200:
                    raise VerificationTransportError(
                        f"HTTP {resp.status} from {url}: {text[:200]}",
                        status_code=resp.status,
                        endpoint=url,
                    )
        except VerificationTransportError:
            raise
        except TimeoutError as exc:
            raise VerificationTransportError(
                f"Request to {url} timed out",
                endpoint=url,
            ) from exc
        except aiohttp.ClientError as exc:
            raise VerificationTransportError(
                f"Request to {url} failed: {exc}",
                endpoint=url,
            ) from exc

        _logger.debug("Response from %s: %s", url, text[:200])
        return text
