import httpx
import flexpolyline as fp
from typing import Any, Dict, List, Optional

from routesim.core.config import HERE_API_KEY, HERE_ROUTER_URL, HERE_TIMEOUT_S
from routesim.core.logger import get_logger
from routesim.services.directions import DirectionsError, Leg
from routesim.utils.geo import GeoPoint

log = get_logger(__name__)


class HereDirections:
    """HERE Routing v8 client: car, fastest route, no alternatives."""

    def __init__(
        self,
        api_key: str = HERE_API_KEY,
        base_url: str = HERE_ROUTER_URL,
        timeout: float = HERE_TIMEOUT_S,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not api_key:
            raise ValueError("HERE API key is required")
        self.api_key = api_key
        self.base_url = base_url
        self.timeout = timeout
        self._transport = transport

    async def route(self, origin: GeoPoint, destination: GeoPoint) -> Leg:
        params = {
            "apikey": self.api_key,
            "origin": f"{origin.lat},{origin.lon}",
            "destination": f"{destination.lat},{destination.lon}",
            "transportMode": "car",
            "return": "polyline,summary",
            "routingMode": "fast",
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                r = await client.get(self.base_url, params=params)
        except httpx.HTTPError as e:
            raise DirectionsError(f"HERE request failed: {e}") from e

        if r.status_code != 200:
            detail = r.text[:200] if r.text else ""
            raise DirectionsError(f"HERE routing failed: {r.status_code} {detail}")
        try:
            data = r.json()
        except ValueError as e:
            raise DirectionsError("HERE returned a non-JSON body") from e

        routes = data.get("routes") or []
        if not routes:
            raise DirectionsError("No routes returned from HERE")
        sections = routes[0].get("sections") or []

        path: List[GeoPoint] = []
        distance_m = 0.0
        duration_s = 0.0
        for sec in sections:
            coords = _decode_section(sec)
            # consecutive sections share their junction point
            if path and coords and coords[0] == path[-1]:
                coords = coords[1:]
            path.extend(coords)
            summary = sec.get("summary") or {}
            distance_m += float(summary.get("length", 0.0))
            duration_s += float(summary.get("duration", 0.0))

        if len(path) < 2:
            raise DirectionsError("HERE route has no usable polyline")
        log.debug("HERE leg: %d points, %.0f m, %.0f s", len(path), distance_m, duration_s)
        return Leg(origin, destination, path, distance_m, duration_s)


def _decode_section(section: Dict[str, Any]) -> List[GeoPoint]:
    poly = section.get("polyline")
    if not poly:
        return []
    try:
        decoded = fp.decode(poly)  # (lat, lon[, z])
    except Exception as e:
        raise DirectionsError(f"Could not decode HERE flexible polyline: {e}") from e
    return [GeoPoint(float(lat), float(lon)) for (lat, lon, *_) in decoded]
