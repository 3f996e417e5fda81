"""Base model for doorlock data types.

Every model inherits from :class:`DoorlockBaseModel` which is frozen and
ignores unknown keys, so responses from the verification authority may
carry extra fields without breaking parsing.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class DoorlockBaseModel(BaseModel):
    """Base for doorlock models."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )
