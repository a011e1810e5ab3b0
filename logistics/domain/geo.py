"""Great-circle distance between two coordinates (Haversine)."""

import math

from .models import GeoPoint

EARTH_RADIUS_KM = 6371.0


def distance(a: GeoPoint, b: GeoPoint) -> float:
    """
    Distance in kilometres between ``a`` and ``b``.

    Coordinates are not range-checked here; payload schemas do that before
    a point is ever stored.
    """
    lat1, lat2 = math.radians(a.lat), math.radians(b.lat)
    d_lat = lat2 - lat1
    d_lng = math.radians(b.lng - a.lng)

    h = math.sin(d_lat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(d_lng / 2) ** 2
    # min() guards asin against float drift just above 1.0 for antipodal points
    return 2 * EARTH_RADIUS_KM * math.asin(min(1.0, math.sqrt(h)))
