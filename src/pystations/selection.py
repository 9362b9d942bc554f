"""Single-selection state shared by the table and the map."""

from __future__ import annotations

import logging
from collections.abc import Callable

from pystations.models.station import Station
from pystations.state.cache import StationCache
from pystations.state.events import CacheChange

_logger = logging.getLogger(__name__)

SelectionListener = Callable[[Station | None], None]


class SelectionCoordinator:
    """Holds at most one selected station id.

    Only the id is stored.  :attr:`selected_station` is looked up in the
    cache on every read, so it is ``None`` as soon as the station leaves
    the snapshot, and reflects edits as soon as they arrive.
    """

    def __init__(self, cache: StationCache) -> None:
        self._selected_id: str | None = None
        self._listeners: list[SelectionListener] = []
        self._last: Station | None = None
        self._cache = cache
        self._remove_cache_listener = cache.add_listener(self._on_cache_change)

    @property
    def selected_id(self) -> str | None:
        return self._selected_id

    @property
    def selected_station(self) -> Station | None:
        if self._selected_id is None:
            return None
        return self._cache.get(self._selected_id)

    def select(self, station_id: str | None) -> None:
        """Select *station_id* (``None`` clears).  Unknown ids are kept and resolve to ``None``."""
        if station_id == self._selected_id:
            return
        self._selected_id = station_id
        self._publish(force=True)

    def clear(self) -> None:
        self.select(None)

    def add_listener(self, listener: SelectionListener) -> Callable[[], None]:
        """Register *listener*; it receives the resolved station or ``None``."""
        self._listeners.append(listener)

        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _remove

    def rebind(self, cache: StationCache) -> None:
        """Follow a new cache, keeping the selected id."""
        self._remove_cache_listener()
        self._cache = cache
        self._remove_cache_listener = cache.add_listener(self._on_cache_change)
        self._publish()

    def close(self) -> None:
        self._remove_cache_listener()
        self._listeners.clear()

    def _on_cache_change(self, _change: CacheChange) -> None:
        if self._selected_id is not None:
            self._publish()

    def _publish(self, *, force: bool = False) -> None:
        station = self.selected_station
        if not force and station == self._last:
            return
        self._last = station
        for listener in list(self._listeners):
            try:
                listener(station)
            except Exception:
                _logger.exception("Selection listener failed")
