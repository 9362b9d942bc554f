"""Table and map read-models driven by the live cache and the selection.

Both surfaces are headless: they expose plain pydantic models for a
renderer to draw and accept the renderer's events.  Neither holds
station data of its own.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Protocol

from pydantic import BaseModel, ConfigDict

from pystations.config import StationsConfig
from pystations.models.map import MapClicked, MapEvent, MapMarker, MapViewState, MarkerClicked
from pystations.models.query import Page, SortField, SortOrder, StationQuery
from pystations.models.station import Coordinates, Station
from pystations.notifications import Notifier
from pystations.selection import SelectionCoordinator
from pystations.views import StationQueryEngine

_logger = logging.getLogger(__name__)


class TableRow(BaseModel):
    model_config = ConfigDict(frozen=True)

    station: Station
    selected: bool = False


class TableSurface:
    """Searchable, sortable, paginated station table."""

    def __init__(self, engine: StationQueryEngine, selection: SelectionCoordinator, *, page_size: int = 10) -> None:
        self._engine = engine
        self._selection = selection
        self._query = StationQuery(page_size=page_size)

    @property
    def query(self) -> StationQuery:
        return self._query

    def _update(self, **changes: object) -> None:
        self._query = self._query.model_copy(update=changes)

    def set_search(self, text: str) -> None:
        """Filter by *text*; always returns to the first page."""
        self._update(search=text, page=1)

    def sort_by(self, column: SortField | str) -> None:
        """Sort by *column*.  Clicking the active column flips the order."""
        column = SortField(column)
        if column is self._query.sort_by:
            self._update(sort_order=self._query.sort_order.flipped())
        else:
            self._update(sort_by=column, sort_order=SortOrder.ASC)

    def goto_page(self, page: int) -> None:
        self._update(page=max(1, page))

    def set_page_size(self, page_size: int) -> None:
        self._update(page_size=max(1, page_size), page=1)

    def page(self) -> Page[Station]:
        return self._engine.page(self._query)

    def rows(self) -> list[TableRow]:
        selected_id = self._selection.selected_id
        return [TableRow(station=s, selected=s.id == selected_id) for s in self.page().items]

    def click_row(self, station_id: str) -> None:
        self._selection.select(station_id)


class Geolocator(Protocol):
    """One-shot source of the user's position (browser geolocation, GPS ...)."""

    async def current_position(self) -> Coordinates: ...


class MapSurface:
    """Marker map following the shared selection.

    The view starts at ``config.default_center`` / ``config.default_zoom``.
    Selecting a station pans to it at ``config.focus_zoom``; clearing the
    selection leaves the view where it is.  With a *table*, markers show the
    table's search result set (every page) instead of the whole cache.
    """

    def __init__(
        self,
        engine: StationQueryEngine,
        selection: SelectionCoordinator,
        config: StationsConfig,
        *,
        notifier: Notifier | None = None,
        table: TableSurface | None = None,
    ) -> None:
        self._engine = engine
        self._selection = selection
        self._config = config
        self._notifier = notifier
        self._table = table
        self._center = Coordinates(latitude=config.default_center[0], longitude=config.default_center[1])
        self._zoom = config.default_zoom
        self._user_location: Coordinates | None = None
        self.picked_location: Coordinates | None = None
        self._remove_listener = selection.add_listener(self._on_selection)
        self._on_selection(selection.selected_station)

    def _on_selection(self, station: Station | None) -> None:
        if station is None:
            return
        self._center = station.coordinates
        self._zoom = self._config.focus_zoom

    def _stations(self) -> Sequence[Station]:
        if self._table is None:
            return self._engine.all()
        return self._engine.matching(self._table.query.search)

    def view(self) -> MapViewState:
        selected_id = self._selection.selected_id
        markers = tuple(
            MapMarker(
                id=station.id,
                position=station.coordinates,
                label=station.name,
                highlighted=station.id == selected_id,
            )
            for station in self._stations()
            if station.is_active
        )
        return MapViewState(center=self._center, zoom=self._zoom, markers=markers, user_location=self._user_location)

    def handle_event(self, event: MapEvent) -> None:
        if isinstance(event, MarkerClicked):
            self._selection.select(event.clicked_marker_id)
        elif isinstance(event, MapClicked):
            self.picked_location = event.map_clicked_at

    async def center_on_user(self, geolocator: Geolocator) -> Coordinates | None:
        """Pan to the user's position once.

        On failure the view is left untouched, the failure is reported and
        ``None`` is returned.
        """
        try:
            position = await geolocator.current_position()
        except Exception as exc:
            _logger.warning("Could not determine user location: %s", exc)
            if self._notifier is not None:
                self._notifier.warning("Location unavailable", str(exc))
            return None
        self._user_location = position
        self._center = position
        self._zoom = self._config.focus_zoom
        return position

    def close(self) -> None:
        self._remove_listener()
