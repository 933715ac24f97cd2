import json
import logging
from typing import Optional, Sequence

from . import geo
from .config import DEFAULT_CONFIG, RoutingConfig
from .errors import DirectionsError, NoPathError
from .models import (
    INDOOR,
    OUTDOOR,
    Coordinates,
    Instruction,
    InstructionKind,
    PathNode,
    RouteStep,
    Segment,
)

logger = logging.getLogger(__name__)

ENTER_LABEL = "Enter the indoor network"
ARRIVED_LABEL = "You've arrived!"
ELEVATOR_LABEL = "Take the elevator"


def classify_maneuver(text: str) -> Instruction:
    """Map provider maneuver text onto an instruction kind by keyword."""
    label = text.strip().rstrip(".")
    lower = text.lower()
    if "enter" in lower:
        return Instruction(InstructionKind.ENTER, label)
    if "walk" in lower or "straight" in lower or "forward" in lower:
        return Instruction(InstructionKind.FORWARD, label)
    if "arrived" in lower or "on your" in lower:
        return Instruction(InstructionKind.FINAL, label)
    if "right" in lower:
        return Instruction(InstructionKind.RIGHT, label)
    if "left" in lower:
        return Instruction(InstructionKind.LEFT, label)
    return Instruction(InstructionKind.FORWARD, label)


def _outdoor_step(point: Coordinates, instruction: Instruction) -> RouteStep:
    return RouteStep(
        id=json.dumps([point.longitude, point.latitude]),
        building_name="",
        latitude=point.latitude,
        longitude=point.longitude,
        floor="0",
        node_type="sidewalk",
        segment_type=OUTDOOR,
        instruction=instruction,
    )


class OutdoorSegmentBuilder:
    def __init__(self, directions):
        self.directions = directions

    def build(
        self,
        origin: Coordinates,
        destination: Coordinates,
        final_instruction: Instruction,
    ) -> Optional[Segment]:
        """Walking segment origin -> destination, or None when the provider fails."""
        try:
            walk = self.directions.walk(origin, destination)
        except DirectionsError as exc:
            logger.warning("Degraded segment: walking directions failed: %s", exc)
            return None
        except Exception:
            logger.exception("Degraded segment: unexpected error from walking directions")
            return None

        if not walk.steps:
            logger.warning("Degraded segment: provider returned no steps")
            return None

        # the provider's own arrival step is replaced by the exact destination
        steps = [_outdoor_step(s.point, classify_maneuver(s.maneuver_text)) for s in walk.steps[:-1]]
        if not steps:
            steps.append(_outdoor_step(walk.steps[0].point, classify_maneuver(walk.steps[0].maneuver_text)))
        steps.append(_outdoor_step(destination, final_instruction))

        return Segment(
            segment_type=OUTDOOR,
            steps=tuple(steps),
            distance_m=max(0.0, walk.distance_m),
            duration_s=max(0.0, walk.duration_s),
        )


def indoor_instruction(
    index: int,
    nodes: Sequence[PathNode],
    config: RoutingConfig = DEFAULT_CONFIG,
) -> Instruction:
    current = nodes[index]
    if current.node_type == "elevator":
        return Instruction(InstructionKind.ELEVATOR, ELEVATOR_LABEL)
    if index == len(nodes) - 1:
        return Instruction(InstructionKind.FINAL, ARRIVED_LABEL)
    if index == 0:
        return Instruction(InstructionKind.ENTER, ENTER_LABEL)

    prev, nxt = nodes[index - 1], nodes[index + 1]
    b0 = geo.bearing(prev.node.coordinates, current.node.coordinates)
    b1 = geo.bearing(current.node.coordinates, nxt.node.coordinates)
    delta = geo.signed_turn(b0, b1)
    if abs(delta) < config.forward_angle_deg:
        return Instruction(InstructionKind.FORWARD, "Head straight")
    if delta > 0:
        return Instruction(InstructionKind.RIGHT, "Take a right")
    return Instruction(InstructionKind.LEFT, "Take a left")


class IndoorSegmentBuilder:
    def __init__(self, graph, config: RoutingConfig = DEFAULT_CONFIG):
        self.graph = graph
        self.config = config

    def build(self, start_name: str, end_name: str) -> Segment:
        path = self.graph.shortest_path(start_name, end_name)
        if path is None or not path.nodes:
            raise NoPathError(f"No indoor path from '{start_name}' to '{end_name}'")

        nodes = path.nodes
        steps = tuple(
            RouteStep(
                id=p.node.id,
                building_name=p.node.building_name,
                latitude=p.node.latitude,
                longitude=p.node.longitude,
                floor=p.floor,
                node_type=p.node_type,
                segment_type=INDOOR,
                instruction=indoor_instruction(i, nodes, self.config),
            )
            for i, p in enumerate(nodes)
        )
        weight = max(0.0, float(path.weight_m))
        return Segment(
            segment_type=INDOOR,
            steps=steps,
            distance_m=weight,
            duration_s=float(round(weight / self.config.indoor_walking_speed_mps)),
        )
