from __future__ import annotations
from fastapi import APIRouter, Depends

from routesim.api.dependencies import get_simulator
from routesim.schemas.run import RunCommandResult, RunStatus, SpeedRequest, TargetsRequest
from routesim.services.simulator import RouteSimulator

router = APIRouter(prefix="/api/run", tags=["run"])


def _status(sim: RouteSimulator) -> RunStatus:
    snap = sim.snapshot()
    return RunStatus(
        state=snap.state.value,
        index=snap.index,
        progress=snap.progress,
        position=tuple(snap.position) if snap.position else None,
        speed_mps=snap.speed_mps,
        point_count=snap.point_count,
        can_resume=snap.can_resume,
        metrics=snap.metrics,
        targets=sim.dispatcher.targets,
    )


def _result(sim: RouteSimulator, applied: bool) -> RunCommandResult:
    return RunCommandResult(applied=applied, status=_status(sim))


@router.get("/status", response_model=RunStatus)
async def status(sim: RouteSimulator = Depends(get_simulator)):
    return _status(sim)


@router.post("/start", response_model=RunCommandResult)
async def start(sim: RouteSimulator = Depends(get_simulator)):
    return _result(sim, await sim.start())


@router.post("/pause", response_model=RunCommandResult)
async def pause(sim: RouteSimulator = Depends(get_simulator)):
    return _result(sim, await sim.pause())


@router.post("/resume", response_model=RunCommandResult)
async def resume(sim: RouteSimulator = Depends(get_simulator)):
    return _result(sim, await sim.resume())


@router.post("/stop", response_model=RunCommandResult)
async def stop(sim: RouteSimulator = Depends(get_simulator)):
    await sim.stop()
    return _result(sim, True)


@router.post("/reset", response_model=RunCommandResult)
async def reset(sim: RouteSimulator = Depends(get_simulator)):
    await sim.reset()
    return _result(sim, True)


@router.put("/speed", response_model=RunStatus)
async def set_speed(req: SpeedRequest, sim: RouteSimulator = Depends(get_simulator)):
    sim.set_speed(req.speed_mps)
    return _status(sim)


@router.put("/targets", response_model=RunStatus)
async def set_targets(req: TargetsRequest, sim: RouteSimulator = Depends(get_simulator)):
    sim.dispatcher.targets = req.targets
    return _status(sim)
