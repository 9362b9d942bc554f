"""Data models for stations, queries and the map surface."""

from pystations.models._base import StoreBaseModel, StoreTimestamp, parse_store_timestamp
from pystations.models.map import MapClicked, MapEvent, MapMarker, MapViewState, MarkerClicked
from pystations.models.query import (
    FieldFilter,
    Page,
    PageInfo,
    QueryDescriptor,
    SortField,
    SortOrder,
    StationQuery,
)
from pystations.models.station import (
    Coordinates,
    DeletionPolicy,
    NearbyStation,
    Station,
    StationDraft,
    StationPatch,
)

__all__ = [
    "Coordinates",
    "DeletionPolicy",
    "FieldFilter",
    "MapClicked",
    "MapEvent",
    "MapMarker",
    "MapViewState",
    "MarkerClicked",
    "NearbyStation",
    "Page",
    "PageInfo",
    "QueryDescriptor",
    "SortField",
    "SortOrder",
    "Station",
    "StationDraft",
    "StationPatch",
    "StationQuery",
    "StoreBaseModel",
    "StoreTimestamp",
    "parse_store_timestamp",
]
