"""Latency measurement and the append-only latency log.

The log holds one integer millisecond value per line, one line per
completed gating decision, so it can be fed straight into a spreadsheet
or :func:`summarize`.
"""

from __future__ import annotations

import logging
import math
import statistics
import time
from collections.abc import Callable, Iterable
from pathlib import Path

from doorlock.models.latency import LatencyRecord, LatencySummary

_logger = logging.getLogger(__name__)

Clock = Callable[[], float]


def elapsed_ms(start: float, clock: Clock = time.monotonic) -> int:
    """Whole milliseconds between *start* and now on *clock*."""
    return max(0, int((clock() - start) * 1000))


class LatencyLog:
    """Appends latency records to a newline-delimited file."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def append(self, record: LatencyRecord) -> None:
        with self._path.open("a", encoding="utf-8") as fh:
            fh.write(f"{record.elapsed_ms}\n")
        _logger.debug(
            "Latency %d ms source=%s attempt=%s",
            record.elapsed_ms,
            record.source,
            record.attempt,
        )


class MemoryLatencySink:
    """Keeps latency records in memory."""

    def __init__(self) -> None:
        self.records: list[LatencyRecord] = []

    def append(self, record: LatencyRecord) -> None:
        self.records.append(record)


def read_latencies(path: str | Path) -> list[int]:
    """Read a latency log, skipping blank lines."""
    values: list[int] = []
    with Path(path).open(encoding="utf-8") as fh:
        for lineno, line in enumerate(fh, start=1):
            stripped = line.strip()
            if not stripped:
                continue
            try:
                values.append(int(stripped))
            except ValueError as exc:
                raise ValueError(f"{path}:{lineno}: not an integer: {stripped!r}") from exc
    return values


def summarize(values: Iterable[int]) -> LatencySummary:
    """Descriptive statistics for a sequence of latency values.

    The 95th percentile uses the nearest-rank method.
    """
    ordered = sorted(values)
    if not ordered:
        raise ValueError("no latency values to summarize")
    rank = max(1, math.ceil(0.95 * len(ordered)))
    return LatencySummary(
        count=len(ordered),
        min_ms=ordered[0],
        max_ms=ordered[-1],
        mean_ms=statistics.fmean(ordered),
        median_ms=statistics.median(ordered),
        p95_ms=ordered[rank - 1],
    )
