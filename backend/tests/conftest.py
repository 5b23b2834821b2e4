import asyncio
from typing import Dict, List, Optional, Tuple

import pytest

from routesim.schemas.route import Stop
from routesim.services.delivery import FanOutDispatcher
from routesim.services.directions import DirectLineDirections, DirectionsError, Leg
from routesim.services.simulator import RouteSimulator
from routesim.utils.geo import GeoPoint


class RecordingSink:
    """Records (target, point) in call order; optionally fails for some targets."""

    def __init__(self, fail_targets=(), delay: float = 0.0):
        self.sent: List[Tuple[str, GeoPoint]] = []
        self.fail_targets = set(fail_targets)
        self.delay = delay

    async def send(self, point: GeoPoint, target: str) -> None:
        if target in self.fail_targets:
            raise RuntimeError(f"device {target} unreachable")
        self.sent.append((target, point))
        if self.delay:
            await asyncio.sleep(self.delay)

    def points(self, target: str = "dev") -> List[GeoPoint]:
        return [p for t, p in self.sent if t == target]


class ScriptedDirections:
    """Returns canned legs keyed by (origin, destination); anything else fails."""

    def __init__(self, legs: Dict[Tuple[GeoPoint, GeoPoint], Leg], delays: Optional[Dict] = None):
        self.legs = legs
        self.delays = delays or {}
        self.calls: List[Tuple[GeoPoint, GeoPoint]] = []

    async def route(self, origin: GeoPoint, destination: GeoPoint) -> Leg:
        self.calls.append((origin, destination))
        await asyncio.sleep(self.delays.get((origin, destination), 0))
        try:
            return self.legs[(origin, destination)]
        except KeyError:
            raise DirectionsError("no route") from None


def line_path(n: int, step_deg: float = 0.0001, lat: float = 0.0) -> List[GeoPoint]:
    return [GeoPoint(lat, i * step_deg) for i in range(n)]


@pytest.fixture
def recording_sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def stops() -> List[Stop]:
    return [
        Stop(name="A", lat=35.6812, lon=139.7671),
        Stop(name="B", lat=35.6852, lon=139.7528),
    ]


@pytest.fixture
def simulator(recording_sink) -> RouteSimulator:
    """Fast simulator: 200 m/s over ~10 m steps -> ~50 ms per step."""
    return RouteSimulator(
        directions=DirectLineDirections(13.9),
        dispatcher=FanOutDispatcher(recording_sink, ["dev"]),
        speed_mps=200.0,
        min_delay=0.0,
    )
