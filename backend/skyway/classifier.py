import logging
from typing import List

from .config import DEFAULT_CONFIG, RoutingConfig
from .errors import NoCandidatesError, TargetNotFound
from .models import BuildingNode, Classification, Coordinates

logger = logging.getLogger(__name__)


class NodeClassifier:
    """Decides whether a target sits on the indoor graph and which nodes to search over."""

    def __init__(self, graph, config: RoutingConfig = DEFAULT_CONFIG):
        self.graph = graph
        self.config = config

    def classify(self, target_name: str) -> Classification:
        if not self.graph.node_exists(target_name):
            raise TargetNotFound(f"Building '{target_name}' not found")
        name = self.graph.canonical_name(target_name) or target_name
        return Classification(name=name, is_disconnected=bool(self.graph.is_disconnected(name)))

    def target_coordinates(self, target_name: str) -> Coordinates:
        coords = self.graph.building_coordinates(target_name)
        if coords is None:
            raise TargetNotFound(f"Building '{target_name}' has no coordinates")
        return coords

    def resolve_connected_candidates(self, target_name: str) -> List[BuildingNode]:
        nodes = self.graph.connected_nodes(target_name, self.config.max_candidate_hops)
        if not nodes:
            raise NoCandidatesError(f"No indoor nodes connected to '{target_name}'")
        logger.debug("%d connected candidates for %s", len(nodes), target_name)
        return list(nodes)

    def resolve_disconnected_candidates(self) -> List[BuildingNode]:
        nodes = self.graph.all_boundary_nodes()
        if not nodes:
            raise NoCandidatesError("No indoor boundary nodes available")
        logger.debug("%d boundary candidates", len(nodes))
        return list(nodes)
