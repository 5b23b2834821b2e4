from __future__ import annotations
from typing import List, Optional, Tuple

from pydantic import BaseModel, Field

from routesim.schemas.route import RouteMetrics


class SpeedRequest(BaseModel):
    speed_mps: float = Field(..., gt=0)


class TargetsRequest(BaseModel):
    targets: List[str] = Field(default_factory=list)


class RunStatus(BaseModel):
    state: str
    index: int
    progress: float
    position: Optional[Tuple[float, float]] = None  # last known [lat, lon]
    speed_mps: float
    point_count: int
    can_resume: bool
    metrics: Optional[RouteMetrics] = None
    targets: List[str] = Field(default_factory=list)


class RunCommandResult(BaseModel):
    applied: bool
    status: RunStatus
