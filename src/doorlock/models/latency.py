"""Latency instrumentation records."""

from __future__ import annotations

from pydantic import Field

from doorlock.models._base import DoorlockBaseModel
from doorlock.models.lock import TriggerSource


class LatencyRecord(DoorlockBaseModel):
    """Elapsed time of one completed gating decision."""

    elapsed_ms: int = Field(ge=0)
    source: TriggerSource = TriggerSource.NETWORK
    attempt: int | None = Field(default=None, description="1-based attempt number within a repeated session")


class LatencySummary(DoorlockBaseModel):
    """Descriptive statistics over a latency log."""

    count: int
    min_ms: int
    max_ms: int
    mean_ms: float
    median_ms: float
    p95_ms: int
