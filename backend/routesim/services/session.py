"""Simulation session: the playback state record.

Writes happen under a lock and always replace the (index, position, progress)
triple together, so readers calling ``snapshot()`` never see a half-applied
step. Speed is kept outside the lock: it is written by callers at any time
and read fresh by the scheduler before every delay computation.
"""
from __future__ import annotations
import threading
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from routesim.schemas.route import RouteMetrics
from routesim.utils.geo import GeoPoint


class SessionState(str, Enum):
    IDLE = "idle"
    READY = "ready"
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETED = "completed"


@dataclass(frozen=True)
class SessionSnapshot:
    state: SessionState
    index: int
    progress: float
    position: Optional[GeoPoint]
    speed_mps: float
    point_count: int
    metrics: Optional[RouteMetrics]

    @property
    def can_resume(self) -> bool:
        return self.state is SessionState.PAUSED and 0 <= self.index < self.point_count - 1


class SimulationSession:
    def __init__(self, speed_mps: float = 14.0):
        self._lock = threading.Lock()
        self._state = SessionState.IDLE
        self._path: List[GeoPoint] = []
        self._metrics: Optional[RouteMetrics] = None
        self._index = 0
        self._progress = 0.0
        self._position: Optional[GeoPoint] = None
        self._committed = -1  # last index published by commit(), -1 if none since load/begin
        self.speed_mps = speed_mps

    @property
    def speed_mps(self) -> float:
        return self._speed_mps

    @speed_mps.setter
    def speed_mps(self, value: float) -> None:
        if not value > 0:
            raise ValueError("speed must be > 0 m/s")
        self._speed_mps = float(value)

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def path(self) -> List[GeoPoint]:
        return self._path

    @property
    def index(self) -> int:
        return self._index

    @property
    def committed(self) -> int:
        return self._committed

    def snapshot(self) -> SessionSnapshot:
        with self._lock:
            return SessionSnapshot(
                state=self._state,
                index=self._index,
                progress=self._progress,
                position=self._position,
                speed_mps=self._speed_mps,
                point_count=len(self._path),
                metrics=self._metrics,
            )

    # transitions; each returns False when not legal from the current state

    def load(self, path: List[GeoPoint], metrics: RouteMetrics) -> bool:
        if len(path) < 2:
            return False
        with self._lock:
            if self._state not in (SessionState.IDLE, SessionState.READY, SessionState.COMPLETED):
                return False
            self._path = list(path)
            self._metrics = metrics
            self._index = 0
            self._progress = 0.0
            self._committed = -1
            # marker sits on the route start until playback moves it
            self._position = self._path[0]
            self._state = SessionState.READY
        return True

    def begin(self) -> bool:
        """Enter RUNNING from index 0."""
        with self._lock:
            if self._state not in (SessionState.READY, SessionState.PAUSED, SessionState.COMPLETED):
                return False
            self._index = 0
            self._progress = 0.0
            self._committed = -1
            self._state = SessionState.RUNNING
        return True

    def pause(self) -> bool:
        with self._lock:
            if self._state is not SessionState.RUNNING:
                return False
            self._state = SessionState.PAUSED
        return True

    def resume(self) -> bool:
        with self._lock:
            if not (self._state is SessionState.PAUSED and 0 <= self._index < len(self._path) - 1):
                return False
            self._state = SessionState.RUNNING
        return True

    def commit(self, index: int) -> GeoPoint:
        """Publish the point at ``index`` as the current position."""
        point = self._path[index]
        with self._lock:
            self._index = index
            self._position = point
            self._committed = index
            self._progress = index / (len(self._path) - 1)
        return point

    def complete(self) -> GeoPoint:
        last = len(self._path) - 1
        point = self._path[last]
        with self._lock:
            self._index = last
            self._position = point
            self._committed = last
            self._progress = 1.0
            self._state = SessionState.COMPLETED
        return point

    def clear(self, keep_position: bool = True) -> None:
        with self._lock:
            self._path = []
            self._metrics = None
            self._index = 0
            self._progress = 0.0
            self._committed = -1
            if not keep_position:
                self._position = None
            self._state = SessionState.IDLE
