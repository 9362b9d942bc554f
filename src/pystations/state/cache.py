"""Live in-memory station cache.

This is the only component holding station state.  It is written solely
by its own subscription callback; everything else reads.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from pystations.adapter import StationAdapter, Subscription, default_descriptor
from pystations.exceptions import StationsError
from pystations.models.query import QueryDescriptor
from pystations.models.station import Station
from pystations.state.events import CacheChange, CacheState
from pystations.state.policy import normalize_snapshot, snapshot_changed

_logger = logging.getLogger(__name__)

CacheListener = Callable[[CacheChange], None]


class StationCache:
    """Ordered snapshot of all stations kept current by one subscription.

    States move ``UNINITIALIZED -> LOADING -> SYNCED``; ``ERRORED`` is
    terminal and keeps the last good snapshot readable.  The cache never
    retries: recreate it to reopen the subscription.

    Must be constructed inside a running event loop.
    """

    def __init__(self, adapter: StationAdapter, *, descriptor: QueryDescriptor | None = None) -> None:
        self._policy = adapter.deletion_policy
        self._stations: tuple[Station, ...] = ()
        self._index: dict[str, Station] = {}
        self._state = CacheState.UNINITIALIZED
        self._error: Exception | None = None
        self._revision = 0
        self._listeners: list[CacheListener] = []
        self._settled = asyncio.Event()
        self._closed = False

        if descriptor is None:
            descriptor = default_descriptor(self._policy)
        self._state = CacheState.LOADING
        self._unsubscribe: Subscription | None = adapter.subscribe(descriptor, self._on_snapshot, self._on_error)

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def state(self) -> CacheState:
        return self._state

    @property
    def error(self) -> Exception | None:
        return self._error

    @property
    def revision(self) -> int:
        return self._revision

    @property
    def stations(self) -> tuple[Station, ...]:
        """Current snapshot, newest first."""
        return self._stations

    @property
    def closed(self) -> bool:
        return self._closed

    def get(self, station_id: str) -> Station | None:
        return self._index.get(station_id)

    def __len__(self) -> int:
        return len(self._stations)

    def add_listener(self, listener: CacheListener) -> Callable[[], None]:
        """Register *listener*; returns a callable that removes it."""
        self._listeners.append(listener)

        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _remove

    async def wait_synced(self, timeout: float | None = None) -> None:
        """Wait for the first snapshot.

        Raises the subscription error when the cache ends up ``ERRORED``,
        and :class:`TimeoutError` when nothing arrives in time.
        """
        await asyncio.wait_for(self._settled.wait(), timeout)
        if self._state is CacheState.ERRORED and self._error is not None:
            raise self._error

    # ------------------------------------------------------------------
    # Subscription callbacks (the single write path)
    # ------------------------------------------------------------------

    def _on_snapshot(self, snapshot: list[Station]) -> None:
        if self._state is CacheState.ERRORED:
            return
        stations = normalize_snapshot(snapshot, self._policy)
        first = self._state is not CacheState.SYNCED
        self._state = CacheState.SYNCED
        self._settled.set()

        if not first and not snapshot_changed(self._stations, stations):
            return
        self._stations = stations
        self._index = {station.id: station for station in stations}
        self._revision += 1
        _logger.debug("Station cache revision=%d size=%d", self._revision, len(stations))
        self._notify()

    def _on_error(self, error: Exception) -> None:
        self._state = CacheState.ERRORED
        self._error = error
        self._settled.set()
        _logger.warning("Station cache errored: %s", error)
        self._notify()

    def _notify(self) -> None:
        change = CacheChange(state=self._state, revision=self._revision, error=self._error)
        for listener in list(self._listeners):
            try:
                listener(change)
            except Exception:
                _logger.exception("Station cache listener failed")

    # ------------------------------------------------------------------
    # Disposal
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Detach the subscription.  Safe to call more than once."""
        self._closed = True
        unsubscribe, self._unsubscribe = self._unsubscribe, None
        if unsubscribe is not None:
            unsubscribe()
        if not self._settled.is_set():
            self._settled.set()
        if self._state is CacheState.LOADING and self._error is None:
            self._error = StationsError("Station cache closed before the first snapshot")
            self._state = CacheState.ERRORED
