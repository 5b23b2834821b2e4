from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Protocol

from routesim.utils.geo import GeoPoint, haversine_m


class DirectionsError(Exception):
    """A leg request failed or produced no usable path."""


@dataclass(frozen=True)
class Leg:
    origin: GeoPoint
    destination: GeoPoint
    raw_path: List[GeoPoint] = field(default_factory=list)
    distance_m: float = 0.0
    duration_s: float = 0.0


class DirectionsService(Protocol):
    async def route(self, origin: GeoPoint, destination: GeoPoint) -> Leg:
        """Return one raw path with distance/duration, or raise DirectionsError."""
        ...


class DirectLineDirections:
    """Offline provider: a straight two-point leg at a fixed cruise speed."""

    def __init__(self, cruise_speed_mps: float = 13.9):
        if cruise_speed_mps <= 0:
            raise ValueError("cruise_speed_mps must be > 0")
        self.cruise_speed_mps = cruise_speed_mps

    async def route(self, origin: GeoPoint, destination: GeoPoint) -> Leg:
        d = haversine_m(origin, destination)
        return Leg(
            origin=origin,
            destination=destination,
            raw_path=[origin, destination],
            distance_m=d,
            duration_s=d / self.cruise_speed_mps,
        )
