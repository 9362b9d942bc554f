"""Great-circle distance between coordinates."""

from __future__ import annotations

import math

from pystations._constants import EARTH_RADIUS_KM
from pystations.models.station import Coordinates


def distance_km(a: Coordinates, b: Coordinates) -> float:
    """Haversine distance in kilometres on a sphere of radius 6371 km.

    Inputs outside the valid latitude/longitude ranges are accepted as
    plain numbers; validating them is the caller's job.
    """
    lat1 = math.radians(a.latitude)
    lat2 = math.radians(b.latitude)
    d_lat = lat2 - lat1
    d_lng = math.radians(b.longitude - a.longitude)

    h = math.sin(d_lat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(d_lng / 2) ** 2
    # Rounding can push h marginally past 1 for antipodal points.
    h = min(1.0, h)
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(h))
