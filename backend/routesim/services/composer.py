"""Leg Composer: one directions request per consecutive stop pair, stitched
into a single dense path with aggregated metrics."""
from __future__ import annotations
import asyncio
from dataclasses import dataclass, field
from typing import List, Sequence

from routesim.core.logger import get_logger
from routesim.schemas.route import RouteMetrics, Stop
from routesim.services.directions import DirectionsService, Leg
from routesim.utils.geo import GeoPoint, densify_polyline

log = get_logger(__name__)


class CompositionError(Exception):
    """At least one leg failed; no route was produced."""

    def __init__(self, message: str, leg_index: int):
        super().__init__(message)
        self.leg_index = leg_index


@dataclass(frozen=True)
class ComposedRoute:
    stops: List[Stop]
    path: List[GeoPoint]
    metrics: RouteMetrics
    display_path: List[GeoPoint] = field(default_factory=list)  # stitched raw legs


def stitch_legs(dense_legs: Sequence[Sequence[GeoPoint]]) -> List[GeoPoint]:
    """Concatenate legs in order, dropping each later leg's junction point."""
    path: List[GeoPoint] = []
    for i, leg in enumerate(dense_legs):
        path.extend(leg[1:] if i > 0 else leg)
    return path


async def compose_route(
    stops: Sequence[Stop],
    directions: DirectionsService,
    spacing_m: float = 10.0,
) -> ComposedRoute:
    if len(stops) < 2:
        raise ValueError("An itinerary needs at least 2 stops")

    pairs = [(stops[i].point, stops[i + 1].point) for i in range(len(stops) - 1)]
    # gather() keeps itinerary order regardless of which response arrives first
    results = await asyncio.gather(
        *(directions.route(a, b) for a, b in pairs),
        return_exceptions=True,
    )

    dense_legs: List[List[GeoPoint]] = []
    raw_legs: List[List[GeoPoint]] = []
    distance_m = 0.0
    duration_s = 0.0
    for i, res in enumerate(results):
        if isinstance(res, asyncio.CancelledError):
            raise res
        if isinstance(res, Exception):
            raise CompositionError(f"Leg {i} failed: {res}", i) from res
        leg: Leg = res
        dense = densify_polyline(leg.raw_path, spacing_m)
        if len(dense) < 2:
            raise CompositionError(f"Leg {i} returned no path", i)
        dense_legs.append(dense)
        raw_legs.append(list(leg.raw_path))
        distance_m += leg.distance_m
        duration_s += leg.duration_s

    path = stitch_legs(dense_legs)
    log.info(
        "Composed %d leg(s): %d points, %.0f m, %.0f s",
        len(dense_legs), len(path), distance_m, duration_s,
    )
    return ComposedRoute(
        stops=list(stops),
        path=path,
        metrics=RouteMetrics(distance_m=distance_m, duration_s=duration_s),
        display_path=stitch_legs(raw_legs),
    )
