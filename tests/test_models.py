"""Tests for the station codec and the pydantic models behind it."""

from __future__ import annotations

import logging
from datetime import UTC, datetime

import pytest
from pydantic import ValidationError as PydanticValidationError

from pystations.exceptions import DecodeError
from pystations.ingestion.stations import (
    decode_snapshot,
    decode_station,
    encode_create,
    encode_soft_delete,
    encode_update,
)
from pystations.models.query import QueryDescriptor
from pystations.models.station import Coordinates, StationDraft, StationPatch

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)
NEW_YEAR = datetime(2026, 1, 1, tzinfo=UTC)


def _document(**overrides: object) -> dict[str, object]:
    document: dict[str, object] = {
        "id": "st-1",
        "name": "Afriquia Anfa",
        "address": "Bd d'Anfa 120",
        "price": 13.45,
        "coordinates": {"latitude": 33.5892, "longitude": -7.6325},
        "city": "Casablanca",
        "services": ["shop", "car_wash"],
        "isActive": True,
        "createdAt": "2026-01-01T00:00:00Z",
        "updatedAt": "2026-01-02T00:00:00Z",
    }
    document.update(overrides)
    return document


# ------------------------------------------------------------------
# Decoding
# ------------------------------------------------------------------


class TestDecodeStation:
    def test_full_document(self) -> None:
        station = decode_station(_document(), now=NOW)
        assert station.id == "st-1"
        assert station.name == "Afriquia Anfa"
        assert station.price == 13.45
        assert station.coordinates == Coordinates(latitude=33.5892, longitude=-7.6325)
        assert station.city == "Casablanca"
        assert station.services == ("shop", "car_wash")
        assert station.is_active is True
        assert station.created_at == NEW_YEAR
        assert station.updated_at == datetime(2026, 1, 2, tzinfo=UTC)
        assert station.raw["name"] == "Afriquia Anfa"

    def test_location_alias_and_short_coordinate_keys(self) -> None:
        document = _document()
        del document["coordinates"]
        document["location"] = {"lat": 33.6, "lng": -7.6}
        station = decode_station(document, now=NOW)
        assert station.coordinates == Coordinates(latitude=33.6, longitude=-7.6)

    def test_missing_optional_fields_get_defaults(self) -> None:
        document = _document()
        for key in ("city", "services", "isActive", "createdAt", "updatedAt"):
            del document[key]
        station = decode_station(document, now=NOW)
        assert station.city is None
        assert station.services == ()
        assert station.is_active is True
        assert station.created_at == NOW
        assert station.updated_at == NOW

    def test_loose_values_are_normalized(self) -> None:
        station = decode_station(
            _document(price="12.5", isActive="false", services=["shop", " shop ", "", "atm"], city="  "),
            now=NOW,
        )
        assert station.price == 12.5
        assert station.is_active is False
        assert station.services == ("shop", "atm")
        assert station.city is None

    @pytest.mark.parametrize(
        "value",
        [
            {"seconds": 1767225600, "nanoseconds": 0},
            {"_seconds": 1767225600, "_nanoseconds": 0},
            1767225600,
            1767225600000,
            "1767225600",
            "2026-01-01T00:00:00+00:00",
            datetime(2026, 1, 1),
        ],
    )
    def test_timestamp_formats(self, value: object) -> None:
        station = decode_station(_document(createdAt=value, updatedAt=value), now=NOW)
        assert station.created_at == NEW_YEAR

    def test_updated_before_created_is_clamped(self) -> None:
        station = decode_station(
            _document(createdAt="2026-01-05T00:00:00Z", updatedAt="2026-01-01T00:00:00Z"),
            now=NOW,
        )
        assert station.updated_at == station.created_at

    def test_missing_id_raises(self) -> None:
        document = _document()
        del document["id"]
        with pytest.raises(DecodeError, match="no id"):
            decode_station(document, now=NOW)

    @pytest.mark.parametrize(
        ("overrides", "field"),
        [
            ({"name": ""}, "name"),
            ({"price": -1}, "price"),
            ({"price": "free"}, "price"),
            ({"coordinates": {"latitude": 95, "longitude": 0}}, "coordinates"),
            ({"createdAt": "yesterday"}, "createdAt"),
        ],
    )
    def test_invalid_fields_raise_with_field_name(self, overrides: dict[str, object], field: str) -> None:
        with pytest.raises(DecodeError) as exc_info:
            decode_station(_document(**overrides), now=NOW)
        assert field in str(exc_info.value)
        assert exc_info.value.document_id == "st-1"

    def test_non_mapping_raises(self) -> None:
        with pytest.raises(DecodeError):
            decode_station(["not", "a", "document"], now=NOW)  # type: ignore[arg-type]


def test_decode_snapshot_drops_bad_records(caplog: pytest.LogCaptureFixture) -> None:
    documents = [
        _document(id="ok-1"),
        _document(id="bad-1", price=0),
        {"name": "no id"},
        _document(id="ok-2"),
    ]
    with caplog.at_level(logging.WARNING, logger="pystations.ingestion.stations"):
        stations = decode_snapshot(documents)

    assert [s.id for s in stations] == ["ok-1", "ok-2"]
    dropped = [r for r in caplog.records if "Dropping station document" in r.getMessage()]
    assert len(dropped) == 2


# ------------------------------------------------------------------
# Write payloads
# ------------------------------------------------------------------


class TestWritePayloads:
    def test_encode_create_sets_server_fields(self) -> None:
        draft = StationDraft(
            name="  Total Maarif ",
            address="Rue 1",
            price=12.9,
            coordinates=Coordinates(latitude=33.58, longitude=-7.63),
            services=("shop",),
        )
        document = encode_create(draft, created_by="user-1")
        assert document == {
            "name": "Total Maarif",
            "address": "Rue 1",
            "price": 12.9,
            "coordinates": {"latitude": 33.58, "longitude": -7.63},
            "services": ["shop"],
            "isActive": True,
            "createdAt": "REQUEST_TIME",
            "updatedAt": "REQUEST_TIME",
            "createdBy": "user-1",
        }

    def test_encode_update_only_carries_supplied_fields(self) -> None:
        patch = StationPatch.model_validate({"price": 14.1})
        assert encode_update(patch) == {"price": 14.1, "updatedAt": "REQUEST_TIME"}

    def test_encode_soft_delete(self) -> None:
        assert encode_soft_delete() == {"isActive": False, "updatedAt": "REQUEST_TIME"}

    def test_patch_cannot_clear_required_fields(self) -> None:
        with pytest.raises(PydanticValidationError):
            StationPatch.model_validate({"name": None})

    def test_empty_patch_has_no_fields(self) -> None:
        assert StationPatch().to_document() == {}

    def test_draft_rejects_unknown_fields(self) -> None:
        with pytest.raises(PydanticValidationError):
            StationDraft.model_validate(
                {
                    "name": "x",
                    "address": "y",
                    "price": 1,
                    "coordinates": {"latitude": 0, "longitude": 0},
                    "isActive": False,
                }
            )


def test_query_descriptor_wire_format() -> None:
    descriptor = (
        QueryDescriptor(order_by="name", descending=False, limit=5, start_after="st-9")
        .where("isActive", "==", True)
        .where("name", ">=", "Sh")
    )
    assert descriptor.to_wire() == {
        "where": [
            {"field": "isActive", "op": "==", "value": True},
            {"field": "name", "op": ">=", "value": "Sh"},
        ],
        "orderBy": {"field": "name", "direction": "asc"},
        "limit": 5,
        "startAfter": "st-9",
    }
