"""Route simulator: owns one session and at most one playback task."""
from __future__ import annotations
import asyncio
from typing import Optional, Sequence

from routesim.core.logger import get_logger
from routesim.schemas.route import Stop
from routesim.services.composer import ComposedRoute, CompositionError, compose_route
from routesim.services.delivery import FanOutDispatcher
from routesim.services.directions import DirectionsService
from routesim.services.player import MIN_STEP_DELAY_S, PlaybackScheduler
from routesim.services.session import SessionSnapshot, SessionState, SimulationSession

log = get_logger(__name__)


class RouteSimulator:
    def __init__(
        self,
        directions: DirectionsService,
        dispatcher: FanOutDispatcher,
        speed_mps: float = 14.0,
        min_delay: float = MIN_STEP_DELAY_S,
        spacing_m: float = 10.0,
    ):
        self.directions = directions
        self.dispatcher = dispatcher
        self.spacing_m = spacing_m
        self.session = SimulationSession(speed_mps)
        self._scheduler = PlaybackScheduler(dispatcher.dispatch, min_delay)
        self._route: Optional[ComposedRoute] = None
        self._task: Optional[asyncio.Task] = None
        self._cancel: Optional[asyncio.Event] = None
        self._lock = asyncio.Lock()

    @property
    def route(self) -> Optional[ComposedRoute]:
        return self._route

    def snapshot(self) -> SessionSnapshot:
        return self.session.snapshot()

    def set_speed(self, speed_mps: float) -> None:
        """Takes effect on the next step delay; a wait already in progress is kept."""
        self.session.speed_mps = speed_mps

    async def load_route(self, stops: Sequence[Stop]) -> bool:
        """Compose a route through stops and load it. False leaves everything as it was."""
        try:
            composed = await compose_route(stops, self.directions, self.spacing_m)
        except CompositionError as e:
            log.warning("Route composition failed: %s", e)
            return False
        async with self._lock:
            await self._halt()
            if self.session.state is not SessionState.IDLE:
                self.session.clear(keep_position=True)
            self.session.load(composed.path, composed.metrics)
            self._route = composed
        return True

    async def start(self) -> bool:
        async with self._lock:
            if self.session.state is SessionState.RUNNING:
                return False
            await self._halt()
            if not self.session.begin():
                return False
            self._launch(0, resume=False)
        return True

    async def pause(self) -> bool:
        async with self._lock:
            if self.session.state is not SessionState.RUNNING:
                return False
            await self._halt()
            # the run may have reached the end while we were cancelling it
            return self.session.pause()

    async def resume(self) -> bool:
        async with self._lock:
            await self._halt()
            if not self.session.resume():
                return False
            self._launch(self.session.index, resume=True)
        return True

    async def stop(self) -> None:
        """Cancel playback and drop the route; the last position is kept."""
        async with self._lock:
            await self._halt()
            self.session.clear(keep_position=True)
            self._route = None

    async def reset(self) -> None:
        async with self._lock:
            await self._halt()
            self.session.clear(keep_position=False)
            self._route = None

    async def wait_until_idle(self) -> None:
        """Wait for the active playback run (if any) to finish on its own."""
        task = self._task
        if task is not None:
            await asyncio.shield(task)

    async def aclose(self) -> None:
        await self.reset()
        await self.dispatcher.drain()

    def _launch(self, start_index: int, resume: bool) -> None:
        self._cancel = asyncio.Event()
        self._task = asyncio.create_task(
            self._scheduler.run(self.session, start_index, self._cancel, resume=resume),
            name="route-playback",
        )
        self._task.add_done_callback(self._on_done)

    def _on_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is None:
            return
        log.error("Playback stopped unexpectedly: %s", exc, exc_info=exc)
        # a halted run is detached first, so only a crash of the live run lands here
        if task is self._task:
            self._task = self._cancel = None
            self.session.pause()

    async def _halt(self) -> None:
        """Signal the active run and wait until it no longer touches the session."""
        task, cancel = self._task, self._cancel
        self._task = self._cancel = None
        if task is None:
            return
        if cancel is not None:
            cancel.set()
        await asyncio.gather(task, return_exceptions=True)
