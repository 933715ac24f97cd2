import logging
import math
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Iterable, List, Optional, Sequence, Union

from . import geo
from .classifier import NodeClassifier
from .config import DEFAULT_CONFIG, RoutingConfig
from .errors import InvalidInput, NoPathFound
from .models import (
    BuildingNode,
    Coordinates,
    Instruction,
    InstructionKind,
    RouteResult,
    RoutingPreference,
    Segment,
)
from .segments import IndoorSegmentBuilder, OutdoorSegmentBuilder
from .selection import rank_start_nodes, select_exit_node

logger = logging.getLogger(__name__)


def aggregate_route(segments: Iterable[Optional[Segment]]) -> RouteResult:
    """Concatenate the legs that exist, in order, and sum their measurements."""
    kept = tuple(s for s in segments if s is not None and s.steps)
    if not kept:
        raise NoPathFound("Route has no segments")
    return RouteResult(
        segments=kept,
        total_distance_m=sum(s.distance_m for s in kept),
        total_time_s=sum(s.duration_s for s in kept),
    )


def find_inside_node(
    candidates: Sequence[BuildingNode],
    user: Coordinates,
    config: RoutingConfig = DEFAULT_CONFIG,
) -> Optional[BuildingNode]:
    """Nearest candidate within the inside-building radius, if any."""
    threshold_km = config.inside_building_m / 1000.0
    best, best_dist = None, None
    for node in candidates:
        d = geo.distance(user, node.coordinates)
        if d <= threshold_km and (best_dist is None or d < best_dist):
            best, best_dist = node, d
    return best


def validate_request(target_name, latitude, longitude, preference) -> Optional[RoutingPreference]:
    if not isinstance(target_name, str) or not target_name.strip():
        raise InvalidInput("Target building name is required")
    for value, name, bound in ((latitude, "latitude", 90.0), (longitude, "longitude", 180.0)):
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
            raise InvalidInput(f"{name} must be a finite number")
        if not -bound <= value <= bound:
            raise InvalidInput(f"{name} must be between {-bound:g} and {bound:g}")
    if preference is None:
        return None
    try:
        return RoutingPreference(preference)
    except ValueError:
        raise InvalidInput(f"Unknown routing preference {preference!r}")


class RouteComposer:
    """Composes outdoor, indoor and outdoor legs into one route for a request.

    The composer holds no per-request state; the graph, directions provider and
    visit counter are passed in and owned by whoever created them. Each call to
    route() runs its optional outdoor legs on a pool of its own. The shared
    pool only runs fire-and-forget visit increments and is shut down by close().
    """

    def __init__(
        self,
        graph,
        directions,
        visits=None,
        config: RoutingConfig = DEFAULT_CONFIG,
        max_workers: int = 2,
    ):
        self.config = config
        self.classifier = NodeClassifier(graph, config)
        self.outdoor = OutdoorSegmentBuilder(directions)
        self.indoor = IndoorSegmentBuilder(graph, config)
        self.visits = visits
        self._visit_executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="visits")

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def close(self) -> None:
        self._visit_executor.shutdown(wait=True)

    def route(
        self,
        target_name: str,
        user: Coordinates,
        preference: Union[RoutingPreference, str, None] = None,
    ) -> RouteResult:
        preference = validate_request(target_name, user.latitude, user.longitude, preference)
        preference = preference or self.config.default_preference

        classification = self.classifier.classify(target_name.strip())
        target = classification.name
        target_coords = self.classifier.target_coordinates(target)

        if classification.is_disconnected:
            candidates = self.classifier.resolve_disconnected_candidates()
        else:
            candidates = self.classifier.resolve_connected_candidates(target)

        inside = find_inside_node(candidates, user, self.config)

        # someone already indoors heading to an indoor building stays in the tunnels
        if not (inside is not None and not classification.is_disconnected):
            direct = self._direct_walk(user, target_coords, target)
            if direct is not None:
                self._record_visit(target)
                return direct

        if classification.is_disconnected:
            exit_node = select_exit_node(candidates, target_coords, user, preference, self.config)
            routing_target = exit_node.building_name
            logger.info("Exit for disconnected %s: %s (%s)", target, routing_target, preference.value)
        else:
            routing_target = target

        if inside is not None:
            start = inside
            logger.info("User is inside %s, skipping first outdoor leg", start.building_name)
        else:
            ranked = rank_start_nodes(candidates, user, routing_target, self.config)
            if not ranked:
                raise NoPathFound(f"No start node toward '{routing_target}'")
            start = ranked[0]
            logger.info("Start node for %s: %s", target, start.building_name)

        # per-request pool; outdoor legs never queue behind other requests
        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="route-leg") as pool:
            first: Optional[Future] = None
            if inside is None:
                first = pool.submit(
                    self.outdoor.build,
                    user,
                    start.coordinates,
                    Instruction(InstructionKind.ENTER, f"Enter {start.building_name}"),
                )

            try:
                indoor = self.indoor.build(start.building_name, routing_target)
            except Exception:
                if first is not None:
                    first.cancel()
                raise

            second: Optional[Future] = None
            if classification.is_disconnected:
                second = pool.submit(
                    self.outdoor.build,
                    indoor.steps[-1].coordinates,
                    target_coords,
                    Instruction(InstructionKind.FINAL, f"Arrive at {target}"),
                )

            legs: List[Optional[Segment]] = [
                first.result() if first is not None else None,
                indoor,
                second.result() if second is not None else None,
            ]
        result = aggregate_route(legs)
        self._record_visit(target)
        return result

    def _direct_walk(self, user: Coordinates, target_coords: Coordinates, target: str) -> Optional[RouteResult]:
        direct_m = geo.distance(user, target_coords) * 1000.0
        if direct_m >= self.config.min_direct_walk_m:
            return None
        segment = self.outdoor.build(
            user,
            target_coords,
            Instruction(InstructionKind.FINAL, f"Arrive at {target}"),
        )
        if segment is None:
            logger.info("Direct walk to %s failed, falling back to tunnel routing", target)
            return None
        logger.info("Direct walk to %s (%.0f m)", target, direct_m)
        return aggregate_route([segment])

    def _record_visit(self, building_name: str) -> None:
        if self.visits is None:
            return
        try:
            self._visit_executor.submit(self._increment_visit, building_name)
        except RuntimeError as exc:
            logger.warning("Could not schedule visit increment for %s: %s", building_name, exc)

    def _increment_visit(self, building_name: str) -> None:
        try:
            self.visits.increment_visit(building_name)
        except Exception as exc:
            logger.warning("Visit increment failed for %s: %s", building_name, exc)
