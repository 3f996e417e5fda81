#!/usr/bin/env python3
"""Summarise a doorlock latency log.

Reads the newline-delimited millisecond values appended by the service
(``eval-doorlock.csv`` by default) and prints count, min, max, mean,
median and 95th percentile. Use ``--tail N`` to look only at the last N
records, e.g. the attempts of the most recent ``/lock-repeats`` run.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

# Allow running from repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from doorlock._constants import DEFAULT_EVAL_FILE  # noqa: E402
from doorlock.latency import read_latencies, summarize  # noqa: E402


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Summarise a doorlock latency log.",
    )
    parser.add_argument(
        "path",
        nargs="?",
        default=DEFAULT_EVAL_FILE,
        help=f"Latency log path (default: {DEFAULT_EVAL_FILE}).",
    )
    parser.add_argument(
        "--tail",
        type=int,
        default=0,
        help="Only summarise the last N records (0 = all).",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the summary as JSON.",
    )
    return parser.parse_args()


def _main() -> int:
    args = _parse_args()
    try:
        values = read_latencies(args.path)
    except (OSError, ValueError) as exc:
        print(f"[latency] {exc}", file=sys.stderr)
        return 2

    if args.tail > 0:
        values = values[-args.tail :]
    if not values:
        print(f"[latency] {args.path} has no records", file=sys.stderr)
        return 1

    summary = summarize(values)
    if args.json:
        print(json.dumps(summary.model_dump(), indent=2))
        return 0

    print(f"[latency] {args.path}")
    print(f"[latency]   count  : {summary.count}")
    print(f"[latency]   min_ms : {summary.min_ms}")
    print(f"[latency]   max_ms : {summary.max_ms}")
    print(f"[latency]   mean   : {summary.mean_ms:.1f}")
    print(f"[latency]   median : {summary.median_ms:.1f}")
    print(f"[latency]   p95_ms : {summary.p95_ms}")
    return 0


if __name__ == "__main__":
    raise SystemExit(_main())
