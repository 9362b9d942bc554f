from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable

import pytest
from fakes import FakeDocumentStore

from pystations.adapter import StationAdapter
from pystations.config import StationsConfig


@pytest.fixture
def store() -> FakeDocumentStore:
    return FakeDocumentStore()


@pytest.fixture
def config() -> StationsConfig:
    return StationsConfig(mqtt_enabled=False, request_timeout=1.0)


@pytest.fixture
def adapter(config: StationsConfig, store: FakeDocumentStore) -> StationAdapter:
    return StationAdapter(config, store, feed_factory=store.feed)


@pytest.fixture
def settle() -> Callable[..., Awaitable[None]]:
    """Run the loop until pending notices and refreshes have drained."""

    async def _settle(rounds: int = 25) -> None:
        for _ in range(rounds):
            await asyncio.sleep(0)

    return _settle
