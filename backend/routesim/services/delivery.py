from __future__ import annotations
import asyncio
from typing import Iterable, List, Protocol, Set

from routesim.core.logger import get_logger
from routesim.utils.geo import GeoPoint

log = get_logger(__name__)


class DeliverySink(Protocol):
    async def send(self, point: GeoPoint, target: str) -> None:
        ...


class LogSink:
    """Default sink: records each position in the log."""

    async def send(self, point: GeoPoint, target: str) -> None:
        log.info("position -> %s: %.6f, %.6f", target, point.lat, point.lon)


class FanOutDispatcher:
    """Best-effort fan-out of positions, one task per target.

    ``dispatch`` never blocks: it schedules the sends and returns. A failing
    target only produces a warning; the other targets and the caller are
    unaffected. Nothing is retried.
    """

    def __init__(self, sink: DeliverySink, targets: Iterable[str] = ()):
        self.sink = sink
        self._targets: List[str] = list(targets)
        self._pending: Set[asyncio.Task] = set()

    @property
    def targets(self) -> List[str]:
        return list(self._targets)

    @targets.setter
    def targets(self, value: Iterable[str]) -> None:
        self._targets = list(dict.fromkeys(value))

    @property
    def pending(self) -> int:
        return len(self._pending)

    def dispatch(self, point: GeoPoint) -> None:
        for target in self._targets:
            task = asyncio.create_task(self._send(point, target), name=f"deliver-{target}")
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)

    async def _send(self, point: GeoPoint, target: str) -> None:
        try:
            await self.sink.send(point, target)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            log.warning("Delivery to %s failed: %s", target, e)

    async def drain(self) -> None:
        """Wait for deliveries already in flight."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
