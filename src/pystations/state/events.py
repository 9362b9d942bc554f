"""Live cache life-cycle states and change events."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class CacheState(StrEnum):
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    SYNCED = "synced"
    ERRORED = "errored"


class CacheChange(BaseModel):
    """Delivered to cache listeners after every visible transition."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    state: CacheState
    revision: int = Field(..., ge=0, description="Snapshot revision; bumps only when contents change")
    observed_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    error: Exception | None = None
