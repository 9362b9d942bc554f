"""Base model for document-store records.

Every record model inherits from :class:`StoreBaseModel` which provides:

* ``alias_generator=to_camel`` so camelCase document keys map
  automatically to snake_case fields.
* A ``model_validator(mode="before")`` that strips placeholder values
  (``None``, ``""``, NaN) so the field default is used.
* A ``raw`` dict that captures the original document.
"""

from __future__ import annotations

import math
from datetime import UTC, datetime
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

# Threshold to distinguish seconds from milliseconds.
_MS_THRESHOLD = 100_000_000_000


def parse_store_timestamp(value: Any) -> datetime | None:
    """Convert a document-store timestamp to an aware UTC datetime.

    Accepts datetimes, ISO-8601 strings, epoch seconds or milliseconds, and
    ``{"seconds": ..., "nanoseconds": ...}`` objects.  Returns ``None`` when
    the value is ``None``.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo is not None else value.replace(tzinfo=UTC)
    if isinstance(value, dict):
        seconds = value.get("seconds", value.get("_seconds"))
        nanos = value.get("nanoseconds", value.get("_nanoseconds", 0)) or 0
        if seconds is None:
            raise ValueError(f"timestamp object without seconds: {value!r}")
        return datetime.fromtimestamp(float(seconds) + float(nanos) / 1e9, tz=UTC)
    if isinstance(value, str):
        text = value.strip()
        try:
            numeric = float(text)
        except ValueError:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
            return parsed if parsed.tzinfo is not None else parsed.replace(tzinfo=UTC)
        value = numeric
    if isinstance(value, bool):
        raise ValueError("boolean is not a timestamp")
    ts = float(value)
    if ts >= _MS_THRESHOLD:
        ts /= 1000.0
    return datetime.fromtimestamp(ts, tz=UTC)


StoreTimestamp = Annotated[datetime, BeforeValidator(parse_store_timestamp)]
"""Annotated type that coerces store timestamps to UTC datetimes."""


class StoreBaseModel(BaseModel):
    """Base for decoded document-store records.

    Handles:
    * camelCase -> snake_case via ``alias_generator=to_camel``
    * placeholder values (``None``, ``""``, NaN) dropped so the field
      default is used instead
    * Stashes the original document dict in ``raw``
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    raw: dict[str, Any] = Field(default_factory=dict, exclude=True, repr=False)
    """Original document dict."""

    @staticmethod
    def _clean_dict(values: dict[str, Any]) -> dict[str, Any]:
        cleaned: dict[str, Any] = {}
        for key, value in values.items():
            if value is None:
                continue
            if isinstance(value, str) and not value.strip():
                continue
            if isinstance(value, float) and math.isnan(value):
                continue
            cleaned[key] = value
        return cleaned

    @model_validator(mode="before")
    @classmethod
    def _clean_store_values(cls, values: Any) -> Any:
        """Strip placeholder values and stash the raw document."""
        if not isinstance(values, dict):
            return values
        cleaned = StoreBaseModel._clean_dict(values)

        # Keep an explicit raw= from the caller.
        if "raw" not in values:
            cleaned["raw"] = dict(values)
        return cleaned
