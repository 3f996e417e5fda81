"""Verification authority response model."""

from __future__ import annotations

from doorlock.models._base import DoorlockBaseModel


class VerificationOutcome(DoorlockBaseModel):
    """Result of one verification round trip.

    Produced once per call and consumed immediately; never persisted.
    """

    succeed: bool
