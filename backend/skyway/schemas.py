from pydantic import BaseModel
from typing import Any, List, Optional

from .models import Building, BuildingNode, InstructionKind, RouteResult, RouteStep, RoutingPreference


class LatLon(BaseModel):
    lat: float
    lon: float


class RouteRequest(BaseModel):
    target_building_name: str
    user_latitude: float
    user_longitude: float
    preference: Optional[RoutingPreference] = None


class InstructionOut(BaseModel):
    kind: InstructionKind
    label: str = ""


class StepOut(BaseModel):
    id: Any
    building_name: str
    latitude: float
    longitude: float
    floor: str
    node_type: str
    segment_type: str
    instruction: Optional[InstructionOut] = None


class SegmentOut(BaseModel):
    segment_type: str
    steps: List[StepOut]
    distance_m: float
    duration_s: float


class RouteResponse(BaseModel):
    segments: List[SegmentOut]
    total_distance_m: float
    total_time_s: float


class BuildingOut(BaseModel):
    name: str
    location: Optional[LatLon] = None
    disconnected: bool = False


class NodeOut(BaseModel):
    id: Any
    building_name: str
    location: LatLon


class PopularOut(BaseModel):
    building_name: str
    visits: int


def step_out(step: RouteStep) -> StepOut:
    instruction = None
    if step.instruction is not None:
        instruction = InstructionOut(kind=step.instruction.kind, label=step.instruction.label)
    return StepOut(
        id=step.id,
        building_name=step.building_name,
        latitude=step.latitude,
        longitude=step.longitude,
        floor=step.floor,
        node_type=step.node_type,
        segment_type=step.segment_type,
        instruction=instruction,
    )


def route_response(result: RouteResult) -> RouteResponse:
    return RouteResponse(
        segments=[
            SegmentOut(
                segment_type=s.segment_type,
                steps=[step_out(st) for st in s.steps],
                distance_m=s.distance_m,
                duration_s=s.duration_s,
            )
            for s in result.segments
        ],
        total_distance_m=result.total_distance_m,
        total_time_s=result.total_time_s,
    )


def building_out(b: Building) -> BuildingOut:
    location = None
    if b.coordinates is not None:
        location = LatLon(lat=b.coordinates.latitude, lon=b.coordinates.longitude)
    return BuildingOut(name=b.name, location=location, disconnected=b.disconnected)


def node_out(n: BuildingNode) -> NodeOut:
    return NodeOut(id=n.id, building_name=n.building_name, location=LatLon(lat=n.latitude, lon=n.longitude))
