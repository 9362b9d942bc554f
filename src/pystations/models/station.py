"""Station domain model and write payloads."""

from __future__ import annotations

import enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from pystations.models._base import StoreBaseModel, StoreTimestamp


class DeletionPolicy(enum.StrEnum):
    """How ``delete`` removes a station.  One policy per deployment."""

    SOFT = "soft"
    HARD = "hard"


class Coordinates(BaseModel):
    """A latitude/longitude pair in decimal degrees."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, allow_inf_nan=False)

    latitude: float = Field(ge=-90, le=90, validation_alias=AliasChoices("latitude", "lat"))
    longitude: float = Field(ge=-180, le=180, validation_alias=AliasChoices("longitude", "lng", "lon"))


class Station(StoreBaseModel):
    """A gas station as held by the live cache.

    Parameters
    ----------
    id : str
        Store-assigned document id.
    name, address : str
        Non-empty display text.
    price : float
        Price per unit volume, always positive.
    coordinates : Coordinates
        Station position.  Documents may carry it as ``coordinates`` or
        ``location``.
    created_at, updated_at : datetime
        UTC timestamps; ``updated_at`` never precedes ``created_at``.
    city, phone, email : str or None
        Optional contact attributes.
    services : tuple of str
        Service tags (``"car_wash"``, ``"shop"`` ...).
    is_active : bool
        ``False`` marks a soft-deleted record.
    created_by : str or None
        Operator that created the record.
    """

    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    address: str = Field(min_length=1)
    price: float = Field(gt=0, allow_inf_nan=False)
    coordinates: Coordinates = Field(validation_alias=AliasChoices("coordinates", "location"))
    created_at: StoreTimestamp
    updated_at: StoreTimestamp
    city: str | None = None
    phone: str | None = None
    email: str | None = None
    services: tuple[str, ...] = ()
    is_active: bool = True
    created_by: str | None = None

    @field_validator("name", "address", mode="before")
    @classmethod
    def _strip_text(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @model_validator(mode="after")
    def _updated_not_before_created(self) -> Station:
        # Clock skew between writers can yield updatedAt < createdAt.
        if self.updated_at < self.created_at:
            object.__setattr__(self, "updated_at", self.created_at)
        return self


class _WritePayload(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        populate_by_name=True,
        alias_generator=to_camel,
        str_strip_whitespace=True,
    )

    def to_document(self) -> dict[str, Any]:
        """Document fields for this payload, excluding unset values."""
        data = self.model_dump(by_alias=True, exclude_unset=True, exclude_none=True)
        if "services" in data:
            data["services"] = list(data["services"])
        return data


class StationDraft(_WritePayload):
    """Validated payload for creating a station."""

    name: str = Field(min_length=1)
    address: str = Field(min_length=1)
    price: float = Field(gt=0, allow_inf_nan=False)
    coordinates: Coordinates
    city: str | None = None
    phone: str | None = None
    email: str | None = None
    services: tuple[str, ...] = ()

    def to_document(self) -> dict[str, Any]:
        data = self.model_dump(by_alias=True, exclude_none=True)
        data["services"] = list(self.services)
        return data


class StationPatch(_WritePayload):
    """Validated partial payload for updating a station.

    Only supplied fields are validated and written.  Required fields may
    not be cleared.
    """

    name: str | None = Field(default=None, min_length=1)
    address: str | None = Field(default=None, min_length=1)
    price: float | None = Field(default=None, gt=0, allow_inf_nan=False)
    coordinates: Coordinates | None = None
    city: str | None = None
    phone: str | None = None
    email: str | None = None
    services: tuple[str, ...] | None = None

    @field_validator("name", "address", "price", "coordinates", mode="before")
    @classmethod
    def _reject_clearing(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("required field cannot be cleared")
        return value


class NearbyStation(BaseModel):
    """A station paired with its distance from a query point."""

    model_config = ConfigDict(frozen=True)

    station: Station
    distance_km: float
