from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional, Tuple

INDOOR = "indoor"
OUTDOOR = "outdoor"


class RoutingPreference(str, Enum):
    INDOOR = "indoor"
    BALANCED = "balanced"
    FASTEST = "fastest"


class InstructionKind(str, Enum):
    ENTER = "enter"
    FORWARD = "forward"
    ELEVATOR = "elevator"
    LEFT = "left"
    RIGHT = "right"
    FINAL = "final"


@dataclass(frozen=True)
class Coordinates:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class BuildingNode:
    # id is the graph's own identifier, only ever round-tripped
    id: Any
    building_name: str
    latitude: float
    longitude: float

    @property
    def coordinates(self) -> Coordinates:
        return Coordinates(self.latitude, self.longitude)


@dataclass(frozen=True)
class Instruction:
    kind: InstructionKind
    label: str = ""


@dataclass(frozen=True)
class RouteStep:
    id: Any
    building_name: str
    latitude: float
    longitude: float
    floor: str
    node_type: str
    segment_type: str
    instruction: Optional[Instruction] = None

    @property
    def coordinates(self) -> Coordinates:
        return Coordinates(self.latitude, self.longitude)


@dataclass(frozen=True)
class Segment:
    segment_type: str
    steps: Tuple[RouteStep, ...]
    distance_m: float
    duration_s: float


@dataclass(frozen=True)
class RouteResult:
    segments: Tuple[Segment, ...]
    total_distance_m: float
    total_time_s: float

    @property
    def segment_types(self) -> List[str]:
        return [s.segment_type for s in self.segments]


@dataclass(frozen=True)
class PathNode:
    """A node on an indoor path, carrying the metadata instruction synthesis needs."""
    node: BuildingNode
    node_type: str
    floor: str


@dataclass(frozen=True)
class IndoorPath:
    nodes: Tuple[PathNode, ...]
    weight_m: float


@dataclass(frozen=True)
class ProviderStep:
    point: Coordinates  # where the maneuver starts
    maneuver_text: str


@dataclass(frozen=True)
class WalkResult:
    steps: Tuple[ProviderStep, ...]
    distance_m: float
    duration_s: float


@dataclass(frozen=True)
class Classification:
    name: str  # canonical building name
    is_disconnected: bool



@dataclass(frozen=True)
class Building:
    name: str
    coordinates: Optional[Coordinates]
    disconnected: bool
