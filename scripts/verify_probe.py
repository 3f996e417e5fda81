#!/usr/bin/env python3
"""One-shot probe of the verification authority.

Sends a credential built from ``key=value`` arguments to the verification
endpoint exactly the way the service does and reports the outcome and the
round-trip time. Nothing is toggled.

Example::

    scripts/verify_probe.py certContent=... certSign=...
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
import time
from pathlib import Path

# Allow running from repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

import aiohttp  # noqa: E402

from doorlock import DoorlockConfig, VerificationClient, VerificationError  # noqa: E402
from doorlock._transport import JsonTransport  # noqa: E402
from doorlock.latency import elapsed_ms  # noqa: E402


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Send one credential to the verification authority.",
    )
    parser.add_argument(
        "fields",
        nargs="*",
        metavar="KEY=VALUE",
        help="Credential fields.",
    )
    parser.add_argument(
        "--url",
        default=None,
        help="Verification endpoint (default: DOORLOCK_VERIFY_URL or built-in).",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=10.0,
        help="Round-trip timeout in seconds.",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logs.",
    )
    return parser.parse_args()


def _credential(fields: list[str]) -> dict[str, str]:
    credential: dict[str, str] = {}
    for item in fields:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise SystemExit(f"[probe] expected KEY=VALUE, got {item!r}")
        credential[key] = value
    return credential


async def _probe(url: str, credential: dict[str, str], timeout: float) -> int:
    async with aiohttp.ClientSession() as http:
        client = VerificationClient(JsonTransport(http, timeout=timeout), endpoint=url)
        start = time.monotonic()
        try:
            outcome = await client.verify(credential)
        except VerificationError as exc:
            print(f"[probe] {type(exc).__name__}: {exc}", file=sys.stderr)
            return 2
        took = elapsed_ms(start)
    print(f"[probe] endpoint : {url}")
    print(f"[probe] succeed  : {outcome.succeed}")
    print(f"[probe] took_ms  : {took}")
    return 0 if outcome.succeed else 1


def _main() -> int:
    args = _parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )
    url = args.url or DoorlockConfig.from_env().verify_url
    return asyncio.run(_probe(url, _credential(args.fields), args.timeout))


if __name__ == "__main__":
    raise SystemExit(_main())
