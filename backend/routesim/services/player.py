from __future__ import annotations
import asyncio
from typing import Callable, Optional

from routesim.core.logger import get_logger
from routesim.services.session import SimulationSession
from routesim.utils.geo import GeoPoint, haversine_m

log = get_logger(__name__)

MIN_STEP_DELAY_S = 0.05

Deliver = Callable[[GeoPoint], None]


def step_delay(a: GeoPoint, b: GeoPoint, speed_mps: float, min_delay: float = MIN_STEP_DELAY_S) -> float:
    """Seconds to travel a -> b at speed_mps, floored at min_delay."""
    return max(min_delay, haversine_m(a, b) / speed_mps)


async def _wait_cancelled(cancel: asyncio.Event, delay: float) -> bool:
    """Sleep for delay seconds; return True as soon as cancel is set."""
    try:
        await asyncio.wait_for(cancel.wait(), timeout=delay)
    except asyncio.TimeoutError:
        return False
    return True


class PlaybackScheduler:
    """Walks a session's dense path, pacing each step by distance / live speed.

    The scheduler is the only writer of index/position/progress while a run is
    active. On cancellation it simply stops touching the session; whoever set
    the cancel event decides the resulting state.
    """

    def __init__(self, deliver: Optional[Deliver] = None, min_delay: float = MIN_STEP_DELAY_S):
        self._deliver = deliver
        self.min_delay = min_delay

    async def run(
        self,
        session: SimulationSession,
        start_index: int,
        cancel: asyncio.Event,
        resume: bool = False,
    ) -> bool:
        """Play from start_index. Returns True if the path was completed.

        With resume=True the point at start_index is neither committed nor
        delivered again if the interrupted run already published it. A run
        paused before its first commit still emits start_index.
        """
        path = session.path
        last = len(path) - 1
        index = start_index
        skip_emit = resume and session.committed == start_index
        while index < last:
            if cancel.is_set():
                return False
            if skip_emit:
                point = path[index]
                skip_emit = False
            else:
                point = session.commit(index)
                self._emit(point)

            delay = step_delay(point, path[index + 1], session.speed_mps, self.min_delay)
            if await _wait_cancelled(cancel, delay):
                return False
            index += 1

        if cancel.is_set():
            return False
        self._emit(session.complete())
        log.info("Playback completed (%d points)", len(path))
        return True

    def _emit(self, point: GeoPoint) -> None:
        if self._deliver is not None:
            self._deliver(point)
