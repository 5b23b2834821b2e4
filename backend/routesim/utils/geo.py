from __future__ import annotations
import math
from typing import List, NamedTuple, Sequence, Tuple

# WGS84
_A = 6378137.0

LatLon = Tuple[float, float]


class GeoPoint(NamedTuple):
    lat: float
    lon: float


def haversine_m(p1: LatLon, p2: LatLon) -> float:
    """Great-circle distance (meters) ignoring altitude."""
    lat1, lon1 = map(math.radians, p1)
    lat2, lon2 = map(math.radians, p2)
    dlat = lat2 - lat1
    dlon = lon2 - lon1
    a = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return _A * c


def polyline_length_m(poly: Sequence[LatLon]) -> float:
    return sum(haversine_m(poly[i], poly[i + 1]) for i in range(len(poly) - 1))


def densify_polyline(raw: Sequence[LatLon], spacing_m: float = 10.0) -> List[GeoPoint]:
    """Resample a sparse polyline so consecutive points are ~spacing_m apart.

    Each raw segment is split into max(1, floor(d / spacing_m)) steps by linear
    interpolation of lat/lon; segments are short enough that the geodesic error
    does not matter. The final raw point is appended exactly once.
    Returns [] for fewer than 2 input points.
    """
    if len(raw) < 2:
        return []
    dense: List[GeoPoint] = []
    for i in range(len(raw) - 1):
        lat1, lon1 = raw[i]
        lat2, lon2 = raw[i + 1]
        steps = max(1, int(haversine_m((lat1, lon1), (lat2, lon2)) // spacing_m))
        for k in range(steps):
            f = k / steps
            dense.append(GeoPoint(lat1 + (lat2 - lat1) * f, lon1 + (lon2 - lon1) * f))
    lat, lon = raw[-1]
    dense.append(GeoPoint(lat, lon))
    return dense
