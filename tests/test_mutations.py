from __future__ import annotations

from collections.abc import Awaitable, Callable

import pytest
from fakes import FakeDocumentStore

from pystations.adapter import StationAdapter
from pystations.exceptions import ValidationError, WriteError
from pystations.mutations import StationMutations
from pystations.session import OperatorSession
from pystations.state import StationCache

Settle = Callable[..., Awaitable[None]]

VALID = {
    "name": "Shell Maarif",
    "address": "12 Bd Zerktouni",
    "price": 13.9,
    "coordinates": {"latitude": 33.58, "longitude": -7.63},
}


@pytest.mark.asyncio
async def test_create_stamps_operator(adapter: StationAdapter, store: FakeDocumentStore) -> None:
    mutations = StationMutations(adapter, operator=OperatorSession(user_id="op-7", email="ops@example.com"))

    station_id = await mutations.create(VALID)

    assert store.documents[station_id]["createdBy"] == "op-7"
    assert store.documents[station_id]["isActive"] is True


@pytest.mark.asyncio
async def test_create_without_operator_has_no_creator(adapter: StationAdapter, store: FakeDocumentStore) -> None:
    station_id = await StationMutations(adapter).create(VALID)
    assert "createdBy" not in store.documents[station_id]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("payload", "fields"),
    [
        ({**VALID, "name": "  "}, ("name",)),
        ({**VALID, "price": 0}, ("price",)),
        ({**VALID, "coordinates": {"latitude": 91, "longitude": 0}}, ("coordinates",)),
        ({k: v for k, v in VALID.items() if k != "address"}, ("address",)),
        ({"price": -1}, ("name", "address", "price", "coordinates")),
    ],
)
async def test_invalid_create_names_fields_and_sends_nothing(
    adapter: StationAdapter, store: FakeDocumentStore, payload: dict[str, object], fields: tuple[str, ...]
) -> None:
    with pytest.raises(ValidationError) as exc_info:
        await StationMutations(adapter).create(payload)

    assert set(exc_info.value.fields) == set(fields)
    assert store.calls == {}


@pytest.mark.asyncio
async def test_update_validates_only_supplied_fields(adapter: StationAdapter, store: FakeDocumentStore) -> None:
    station_id = store.seed("Total Anfa", price=12.0)
    mutations = StationMutations(adapter)

    await mutations.update(station_id, {"price": 12.9})
    assert store.documents[station_id]["price"] == 12.9
    assert store.documents[station_id]["name"] == "Total Anfa"

    with pytest.raises(ValidationError) as exc_info:
        await mutations.update(station_id, {"price": -2, "name": None})
    assert set(exc_info.value.fields) == {"price", "name"}
    assert store.calls.get("patch") == 1


@pytest.mark.asyncio
async def test_update_rejects_unknown_fields(adapter: StationAdapter, store: FakeDocumentStore) -> None:
    station_id = store.seed("Total Anfa")
    with pytest.raises(ValidationError) as exc_info:
        await StationMutations(adapter).update(station_id, {"createdAt": "2020-01-01"})
    assert exc_info.value.fields == ("createdAt",)


@pytest.mark.asyncio
async def test_update_missing_station_is_write_error(adapter: StationAdapter) -> None:
    with pytest.raises(WriteError):
        await StationMutations(adapter).update("missing", {"price": 1.5})


@pytest.mark.asyncio
async def test_blank_id_is_rejected_locally(adapter: StationAdapter, store: FakeDocumentStore) -> None:
    mutations = StationMutations(adapter)
    with pytest.raises(ValidationError):
        await mutations.delete("")
    with pytest.raises(ValidationError):
        await mutations.update("", {"price": 1.0})
    assert store.calls == {}


@pytest.mark.asyncio
async def test_writes_reach_cache_only_through_subscription(
    adapter: StationAdapter, store: FakeDocumentStore, settle: Settle
) -> None:
    cache = StationCache(adapter)
    await settle()
    mutations = StationMutations(adapter)

    station_id = await mutations.create(VALID)
    assert cache.get(station_id) is None

    await settle()
    assert cache.get(station_id) is not None

    await mutations.delete(station_id)
    await settle()
    assert cache.get(station_id) is None
    cache.close()
