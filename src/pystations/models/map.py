"""Map rendering surface contract.

The map widget itself lives outside this library.  It consumes a
:class:`MapViewState` and reports :class:`MarkerClicked` /
:class:`MapClicked` events back.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from pystations.models.station import Coordinates


class MapMarker(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    position: Coordinates
    label: str
    highlighted: bool = False


class MapViewState(BaseModel):
    model_config = ConfigDict(frozen=True)

    center: Coordinates
    zoom: int
    markers: tuple[MapMarker, ...] = ()
    user_location: Coordinates | None = None


class MarkerClicked(BaseModel):
    model_config = ConfigDict(frozen=True)

    clicked_marker_id: str


class MapClicked(BaseModel):
    model_config = ConfigDict(frozen=True)

    map_clicked_at: Coordinates


MapEvent = MarkerClicked | MapClicked
