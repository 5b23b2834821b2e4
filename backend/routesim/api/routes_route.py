from typing import List

from fastapi import APIRouter, Depends, HTTPException

from routesim.schemas.route import Itinerary, RouteOut, RouteRequest, Stop
from routesim.services.composer import ComposedRoute
from routesim.services.simulator import RouteSimulator
from routesim.api.dependencies import get_simulator

router = APIRouter(prefix="/api/route", tags=["route"])


def _route_out(route: ComposedRoute) -> RouteOut:
    return RouteOut(
        stops=route.stops,
        metrics=route.metrics,
        point_count=len(route.path),
        polyline=[(p.lat, p.lon) for p in route.path],
        display_polyline=[(p.lat, p.lon) for p in route.display_path],
    )


async def _load(sim: RouteSimulator, stops: List[Stop]) -> RouteOut:
    if not await sim.load_route(stops):
        raise HTTPException(502, "Route calculation failed")
    return _route_out(sim.route)


@router.post("", response_model=RouteOut)
async def load_route(req: RouteRequest, sim: RouteSimulator = Depends(get_simulator)):
    return await _load(sim, req.stops)


@router.post("/itinerary", response_model=RouteOut)
async def load_itinerary(itinerary: Itinerary, sim: RouteSimulator = Depends(get_simulator)):
    """Load a saved itinerary record (start -> waypoints -> end)."""
    return await _load(sim, itinerary.to_stops())


@router.get("", response_model=RouteOut)
async def current_route(sim: RouteSimulator = Depends(get_simulator)):
    if sim.route is None:
        raise HTTPException(404, "No route loaded")
    return _route_out(sim.route)
