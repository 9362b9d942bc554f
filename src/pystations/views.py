"""Read-only projections over the live station cache.

Every function here is pure and synchronous: it reads the cache's
current snapshot, never mutates it and never touches the network.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Sequence
from typing import Any

from pystations.geo import distance_km
from pystations.models.query import Page, PageInfo, SortField, SortOrder, StationQuery
from pystations.models.station import Coordinates, NearbyStation, Station
from pystations.state.cache import StationCache

_SORT_KEYS: dict[SortField, Callable[[Station], Any]] = {
    SortField.NAME: lambda s: s.name.casefold(),
    SortField.ADDRESS: lambda s: s.address.casefold(),
    SortField.PRICE: lambda s: s.price,
    SortField.CREATED_AT: lambda s: s.created_at,
}


def _matches(station: Station, needle: str) -> bool:
    return needle in station.name.casefold() or needle in station.address.casefold()


def filter_stations(stations: Sequence[Station], search: str) -> list[Station]:
    """Case-insensitive substring match on name or address; blank matches all."""
    needle = search.strip().casefold()
    if not needle:
        return list(stations)
    return [station for station in stations if _matches(station, needle)]


def sort_stations(stations: Sequence[Station], sort_by: SortField, order: SortOrder) -> list[Station]:
    # sorted() is stable in both directions, so ties keep cache order.
    return sorted(stations, key=_SORT_KEYS[sort_by], reverse=order is SortOrder.DESC)


def paginate(stations: Sequence[Station], page: int, page_size: int) -> Page[Station]:
    """Slice one page; totals come from the sequence given (the filtered set)."""
    total_items = len(stations)
    total_pages = math.ceil(total_items / page_size)
    start = (page - 1) * page_size
    items = tuple(stations[start : start + page_size])
    info = PageInfo(
        current_page=page,
        total_pages=total_pages,
        total_items=total_items,
        page_size=page_size,
        has_next=page < total_pages,
        has_prev=page > 1,
    )
    return Page[Station](items=items, info=info)


def prefix_matches(stations: Sequence[Station], term: str, limit: int) -> list[Station]:
    needle = term.strip().casefold()
    if not needle or limit < 1:
        return []
    results: list[Station] = []
    seen: set[str] = set()
    for station in stations:
        if station.id in seen:
            continue
        if station.name.casefold().startswith(needle) or station.address.casefold().startswith(needle):
            seen.add(station.id)
            results.append(station)
            if len(results) >= limit:
                break
    return results


def stations_within(stations: Sequence[Station], origin: Coordinates, radius_km: float) -> list[NearbyStation]:
    """Active stations within *radius_km* of *origin*, nearest first.

    A linear scan: the cache holds hundreds to low thousands of stations.
    """
    nearby = []
    for station in stations:
        if not station.is_active:
            continue
        distance = distance_km(origin, station.coordinates)
        if distance <= radius_km:
            nearby.append(NearbyStation(station=station, distance_km=distance))
    nearby.sort(key=lambda item: item.distance_km)
    return nearby


class StationQueryEngine:
    """Filtered, sorted, paginated and geo views over a :class:`StationCache`."""

    def __init__(self, cache: StationCache, *, search_limit: int = 10) -> None:
        self._cache = cache
        self._search_limit = search_limit

    @property
    def cache(self) -> StationCache:
        return self._cache

    def rebind(self, cache: StationCache) -> None:
        self._cache = cache

    def all(self) -> tuple[Station, ...]:
        return self._cache.stations

    def page(self, query: StationQuery | None = None) -> Page[Station]:
        query = query or StationQuery()
        filtered = filter_stations(self._cache.stations, query.search)
        ordered = sort_stations(filtered, query.sort_by, query.sort_order)
        return paginate(ordered, query.page, query.page_size)

    def matching(self, search: str) -> list[Station]:
        """Stations matching *search*, in cache order, unpaged."""
        return filter_stations(self._cache.stations, search)

    def prefix_search(self, term: str, limit: int | None = None) -> list[Station]:
        """Stations whose name or address starts with *term*, case-insensitive."""
        return prefix_matches(self._cache.stations, term, self._search_limit if limit is None else limit)

    def nearby(self, latitude: float, longitude: float, radius_km: float) -> list[NearbyStation]:
        # model_construct: out-of-range query points are accepted numerically.
        origin = Coordinates.model_construct(latitude=latitude, longitude=longitude)
        return stations_within(self._cache.stations, origin, radius_km)

    def by_city(self, city: str) -> list[Station]:
        """Active stations in *city* (case-insensitive), ordered by name."""
        wanted = city.strip().casefold()
        matches = [s for s in self._cache.stations if s.is_active and s.city and s.city.casefold() == wanted]
        return sort_stations(matches, SortField.NAME, SortOrder.ASC)
