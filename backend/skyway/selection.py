"""Ranking of indoor nodes as route endpoints.

Two related problems share this module:

* start nodes, where the user enters the indoor network on the way to a
  target. Candidates that would send the user backwards (further from the
  destination than the user already is, give or take the leeway factor) are
  dropped, the rest are scored by distance from the user inflated by how far
  off the user->destination heading they lie.
* exit nodes, where the user leaves the indoor network to walk to a
  disconnected building. Each exit trades an estimated tunnel length against
  outdoor walking weighted by the routing preference.
"""
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from . import geo
from .config import DEFAULT_CONFIG, RoutingConfig
from .errors import NoCandidatesError, TargetNotFound
from .models import BuildingNode, Coordinates, RoutingPreference

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScoredNode:
    node: BuildingNode
    cost: float
    angle_ratio: float
    is_target: bool
    distance_km: float

    def sort_key(self):
        return (self.cost, self.angle_ratio, self.is_target, self.distance_km, self.node.building_name)


def score_start_nodes(
    candidates: Sequence[BuildingNode],
    user: Coordinates,
    target_name: str,
    config: RoutingConfig = DEFAULT_CONFIG,
) -> List[ScoredNode]:
    """Every forward candidate with its cost, best first."""
    destination = next((c for c in candidates if c.building_name == target_name), None)
    if destination is None:
        raise TargetNotFound(f"Target building '{target_name}' not found in node list")

    dest = destination.coordinates
    user_dist_to_dest = geo.distance(user, dest)
    limit = user_dist_to_dest * config.forward_leeway_factor

    forward = [c for c in candidates if geo.distance(c.coordinates, dest) <= limit]

    heading = geo.bearing(user, dest)
    scored = []
    for c in forward:
        dist = geo.distance(user, c.coordinates)
        angle = geo.angular_difference(heading, geo.bearing(user, c.coordinates))
        ratio = angle / 180.0
        cost = dist * (1 + config.direction_angle_weight * ratio)
        is_target = c.building_name == target_name
        if is_target and len(forward) > 1:
            cost *= config.target_penalty_multiplier
        scored.append(ScoredNode(c, cost, ratio, is_target, dist))

    scored.sort(key=ScoredNode.sort_key)
    return scored


def rank_start_nodes(
    candidates: Sequence[BuildingNode],
    user: Coordinates,
    target_name: str,
    config: RoutingConfig = DEFAULT_CONFIG,
    limit: Optional[int] = None,
) -> List[BuildingNode]:
    k = config.max_start_nodes if limit is None else limit
    ranked = score_start_nodes(candidates, user, target_name, config)
    logger.debug("%d of %d candidates are forward of the user", len(ranked), len(candidates))
    return [s.node for s in ranked[:k]]


def select_exit_node(
    boundary_nodes: Sequence[BuildingNode],
    target: Coordinates,
    user: Coordinates,
    preference: Optional[RoutingPreference] = None,
    config: RoutingConfig = DEFAULT_CONFIG,
) -> BuildingNode:
    if not boundary_nodes:
        raise NoCandidatesError("No boundary nodes to exit from")
    preference = preference or config.default_preference
    penalty = config.penalty_for(preference)

    nearby = [n for n in boundary_nodes if geo.distance(n.coordinates, target) < config.max_exit_radius_km]
    if not nearby:
        # nothing close enough; the closest exit beats no route
        closest = min(boundary_nodes, key=lambda n: (geo.distance(n.coordinates, target), n.building_name))
        logger.info("No exit within %.2f km of target, using closest %s",
                    config.max_exit_radius_km, closest.building_name)
        return closest

    def weighted_cost(node: BuildingNode) -> float:
        tunnel_estimate = geo.distance(user, node.coordinates) * config.tunnel_estimate_factor
        outdoor = geo.distance(node.coordinates, target)
        return tunnel_estimate + outdoor * penalty

    return min(nearby, key=lambda n: (weighted_cost(n), n.building_name))
