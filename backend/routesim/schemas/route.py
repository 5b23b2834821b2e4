from __future__ import annotations
from datetime import datetime, timezone
from typing import Any, List, Tuple
from uuid import UUID, uuid4

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator

from routesim.utils.geo import GeoPoint


class GeoPointModel(BaseModel):
    model_config = ConfigDict(frozen=True)

    lat: float = Field(..., ge=-90, le=90)
    lon: float = Field(..., ge=-180, le=180, validation_alias=AliasChoices("lon", "lng"))


class Stop(BaseModel):
    """A named point in an itinerary (start, waypoint or end).

    Accepts the persisted shape ``{"name", "coordinate": {"lat", "lon"}}`` and
    the flat shortcut ``{"name", "lat", "lon"}``.
    """
    model_config = ConfigDict(frozen=True)

    name: str = ""
    coordinate: GeoPointModel

    @model_validator(mode="before")
    @classmethod
    def _lift_flat_coordinate(cls, data: Any) -> Any:
        if isinstance(data, dict) and "coordinate" not in data and "lat" in data:
            data = dict(data)
            data["coordinate"] = {
                k: data.pop(k) for k in ("lat", "lon", "lng") if k in data
            }
        return data

    @property
    def point(self) -> GeoPoint:
        return GeoPoint(self.coordinate.lat, self.coordinate.lon)


class Waypoint(Stop):
    id: UUID = Field(default_factory=uuid4)


class Itinerary(BaseModel):
    """Persisted route record: start -> waypoints (in order) -> end."""
    id: UUID = Field(default_factory=uuid4)
    name: str
    start: Stop
    waypoints: List[Waypoint] = Field(default_factory=list)
    end: Stop
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def to_stops(self) -> List[Stop]:
        return [self.start, *self.waypoints, self.end]


class RouteMetrics(BaseModel):
    model_config = ConfigDict(frozen=True)

    distance_m: float = Field(0.0, ge=0)
    duration_s: float = Field(0.0, ge=0)


class RouteRequest(BaseModel):
    stops: List[Stop] = Field(..., min_length=2)


class RouteOut(BaseModel):
    stops: List[Stop]
    metrics: RouteMetrics
    point_count: int
    polyline: List[Tuple[float, float]]  # dense playback path, [lat, lon]
    display_polyline: List[Tuple[float, float]] = Field(default_factory=list)  # provider geometry
