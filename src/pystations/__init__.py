"""pystations - Async Python client for a live gas station directory."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pystations")
except PackageNotFoundError:
    __version__ = "0+local"
from pystations.adapter import StationAdapter, Subscription
from pystations.client import StationDirectory
from pystations.config import StationsConfig
from pystations.exceptions import (
    AuthError,
    AuthErrorCode,
    DecodeError,
    NotFoundError,
    ReadError,
    StationsConfigError,
    StationsError,
    StoreTimeoutError,
    StoreTransportError,
    ValidationError,
    WriteError,
)
from pystations.geo import distance_km
from pystations.models import (
    Coordinates,
    DeletionPolicy,
    MapClicked,
    MapMarker,
    MapViewState,
    MarkerClicked,
    NearbyStation,
    Page,
    PageInfo,
    QueryDescriptor,
    SortField,
    SortOrder,
    Station,
    StationDraft,
    StationPatch,
    StationQuery,
)
from pystations.mutations import StationMutations
from pystations.notifications import Notice, NoticeLevel, Notifier
from pystations.selection import SelectionCoordinator
from pystations.session import IdentityProvider, OperatorSession, auth_error_from_code
from pystations.state import CacheChange, CacheState, StationCache
from pystations.surfaces import Geolocator, MapSurface, TableRow, TableSurface
from pystations.views import StationQueryEngine

__all__ = [
    "AuthError",
    "AuthErrorCode",
    "CacheChange",
    "CacheState",
    "Coordinates",
    "DecodeError",
    "DeletionPolicy",
    "Geolocator",
    "IdentityProvider",
    "MapClicked",
    "MapMarker",
    "MapSurface",
    "MapViewState",
    "MarkerClicked",
    "NearbyStation",
    "NotFoundError",
    "Notice",
    "NoticeLevel",
    "Notifier",
    "OperatorSession",
    "Page",
    "PageInfo",
    "QueryDescriptor",
    "ReadError",
    "SelectionCoordinator",
    "SortField",
    "SortOrder",
    "Station",
    "StationAdapter",
    "StationCache",
    "StationDirectory",
    "StationDraft",
    "StationMutations",
    "StationPatch",
    "StationQuery",
    "StationQueryEngine",
    "StationsConfig",
    "StationsConfigError",
    "StationsError",
    "StoreTimeoutError",
    "StoreTransportError",
    "Subscription",
    "TableRow",
    "TableSurface",
    "ValidationError",
    "WriteError",
    "__version__",
    "auth_error_from_code",
    "distance_km",
]
