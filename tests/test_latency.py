from __future__ import annotations

from pathlib import Path

import pytest

from doorlock.latency import LatencyLog, elapsed_ms, read_latencies, summarize
from doorlock.models.latency import LatencyRecord
from doorlock.models.lock import TriggerSource


def test_log_appends_one_value_per_line(tmp_path: Path) -> None:
    path = tmp_path / "eval-doorlock.csv"
    path.write_text("12\n", encoding="utf-8")
    log = LatencyLog(path)

    log.append(LatencyRecord(elapsed_ms=340, source=TriggerSource.NETWORK_REPEAT, attempt=1))
    log.append(LatencyRecord(elapsed_ms=0))

    assert path.read_text(encoding="utf-8") == "12\n340\n0\n"
    assert read_latencies(path) == [12, 340, 0]


def test_read_latencies_rejects_garbage(tmp_path: Path) -> None:
    path = tmp_path / "eval.csv"
    path.write_text("5\n\nabc\n", encoding="utf-8")

    with pytest.raises(ValueError, match=":3:"):
        read_latencies(path)


def test_elapsed_ms_never_negative() -> None:
    assert elapsed_ms(10.0, lambda: 10.1234) == 123
    assert elapsed_ms(10.0, lambda: 9.0) == 0


def test_summarize() -> None:
    summary = summarize([40, 10, 30, 20] + [100] * 16)

    assert summary.count == 20
    assert summary.min_ms == 10
    assert summary.max_ms == 100
    assert summary.median_ms == 100
    assert summary.mean_ms == pytest.approx(85.0)
    assert summary.p95_ms == 100


def test_summarize_empty_raises() -> None:
    with pytest.raises(ValueError):
        summarize([])


def test_latency_record_rejects_negative() -> None:
    with pytest.raises(ValueError):
        LatencyRecord(elapsed_ms=-1)
