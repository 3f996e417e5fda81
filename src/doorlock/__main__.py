"""Command line entry point: ``python -m doorlock``."""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys

from doorlock.config import DoorlockConfig
from doorlock.exceptions import DoorlockError
from doorlock.service import DoorlockService

_logger = logging.getLogger("doorlock")


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="doorlock",
        description="Door lock controller with verification-gated network toggles.",
    )
    parser.add_argument(
        "--host",
        default=None,
        help="Listener address (default: DOORLOCK_LISTEN_HOST or 0.0.0.0).",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Listener port (default: DOORLOCK_LISTEN_PORT or 3000).",
    )
    parser.add_argument(
        "--no-check-cert",
        action="store_true",
        help="Toggle on network requests without verification.",
    )
    parser.add_argument(
        "--reps",
        type=int,
        default=None,
        help="Attempts per /lock-repeats request (default: DOORLOCK_REPS or 100).",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logs.",
    )
    return parser.parse_args(argv)


def _build_config(args: argparse.Namespace) -> DoorlockConfig:
    overrides: dict[str, object] = {}
    if args.host is not None:
        overrides["listen_host"] = args.host
    if args.port is not None:
        overrides["listen_port"] = args.port
    if args.no_check_cert:
        overrides["check_cert"] = False
    if args.reps is not None:
        overrides["reps"] = args.reps
    return DoorlockConfig.from_env(**overrides)


async def _serve(config: DoorlockConfig) -> None:
    loop = asyncio.get_running_loop()
    async with DoorlockService(config) as service:
        for signum in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(signum, service.request_close)
        await service.wait_closed()
        _logger.info("Shutting down")


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        config = _build_config(args)
        asyncio.run(_serve(config))
    except DoorlockError as exc:
        print(f"doorlock: {exc}", file=sys.stderr)
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
