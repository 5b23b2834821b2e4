from typing import Optional

from routesim.core.config import (
    DEFAULT_SPEED_MPS, DELIVERY_TARGETS, DENSIFY_SPACING_M,
    DIRECT_CRUISE_SPEED_MPS, HERE_API_KEY, MIN_STEP_DELAY_S,
)
from routesim.core.logger import get_logger
from routesim.services.delivery import FanOutDispatcher, LogSink
from routesim.services.directions import DirectLineDirections, DirectionsService
from routesim.services.here import HereDirections
from routesim.services.simulator import RouteSimulator

log = get_logger(__name__)

_simulator: Optional[RouteSimulator] = None


def build_directions() -> DirectionsService:
    if HERE_API_KEY:
        return HereDirections(HERE_API_KEY)
    log.warning("No HERE API key available, using straight-line legs")
    return DirectLineDirections(DIRECT_CRUISE_SPEED_MPS)


def get_simulator() -> RouteSimulator:
    global _simulator
    if _simulator is None:
        _simulator = RouteSimulator(
            directions=build_directions(),
            dispatcher=FanOutDispatcher(LogSink(), DELIVERY_TARGETS),
            speed_mps=DEFAULT_SPEED_MPS,
            min_delay=MIN_STEP_DELAY_S,
            spacing_m=DENSIFY_SPACING_M,
        )
    return _simulator


async def shutdown_simulator() -> None:
    global _simulator
    if _simulator is not None:
        await _simulator.aclose()
        _simulator = None
