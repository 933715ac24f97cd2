# backend/tests/conftest.py
#
# A small campus, west to east then north:
#
#   Alpha Hall(1) -- 2 -- Beta Hall(3)
#                           |
#                           4
#                           |
#                        elevator(5)
#                           |
#                      Gamma Center(6)     Epsilon Annex (disconnected, ~96 m NE of Gamma)
#
#   Delta Lab(7) has a building node but no edges.
#   Far Pavilion is disconnected and far from every node.
import pandas as pd
import pytest

from backend.skyway import geo
from backend.skyway.errors import DirectionsError
from backend.skyway.graph_loader import IndoorGraph
from backend.skyway.models import Coordinates, ProviderStep, WalkResult

ALPHA = Coordinates(44.9700, -93.2400)
BETA = Coordinates(44.9700, -93.2360)
GAMMA = Coordinates(44.9730, -93.2360)
DELTA = Coordinates(44.9800, -93.2500)
EPSILON = Coordinates(44.9735, -93.2350)
FAR = Coordinates(45.0000, -93.3000)


def campus_frames():
    nodes = pd.DataFrame([
        {"node_id": 1, "building_name": "Alpha Hall", "node_type": "building_node", "floor": "1", "lat": ALPHA.latitude, "lon": ALPHA.longitude},
        {"node_id": 2, "building_name": "", "node_type": "path", "floor": "1", "lat": 44.9700, "lon": -93.2380},
        {"node_id": 3, "building_name": "Beta Hall", "node_type": "building_node", "floor": "1", "lat": BETA.latitude, "lon": BETA.longitude},
        {"node_id": 4, "building_name": "", "node_type": "path", "floor": "1", "lat": 44.9710, "lon": -93.2360},
        {"node_id": 5, "building_name": "", "node_type": "elevator", "floor": "1", "lat": 44.9720, "lon": -93.2360},
        {"node_id": 6, "building_name": "Gamma Center", "node_type": "building_node", "floor": "2", "lat": GAMMA.latitude, "lon": GAMMA.longitude},
        {"node_id": 7, "building_name": "Delta Lab", "node_type": "building_node", "floor": "1", "lat": DELTA.latitude, "lon": DELTA.longitude},
    ])
    edges = pd.DataFrame([
        {"u": 1, "v": 2, "distance_m": 160.0},
        {"u": 2, "v": 3, "distance_m": 160.0},
        {"u": 3, "v": 4, "distance_m": 110.0},
        {"u": 4, "v": 5, "distance_m": 110.0},
        {"u": 5, "v": 6, "distance_m": 110.0},
    ])
    buildings = pd.DataFrame([
        {"building_name": "Alpha Hall", "lat": ALPHA.latitude, "lon": ALPHA.longitude, "disconnected": False},
        {"building_name": "Beta Hall", "lat": BETA.latitude, "lon": BETA.longitude, "disconnected": False},
        {"building_name": "Gamma Center", "lat": GAMMA.latitude, "lon": GAMMA.longitude, "disconnected": False},
        {"building_name": "Delta Lab", "lat": DELTA.latitude, "lon": DELTA.longitude, "disconnected": False},
        {"building_name": "Epsilon Annex", "lat": EPSILON.latitude, "lon": EPSILON.longitude, "disconnected": True},
        {"building_name": "Far Pavilion", "lat": FAR.latitude, "lon": FAR.longitude, "disconnected": True},
        {"building_name": "Ghost Hall", "lat": None, "lon": None, "disconnected": True},
    ])
    return nodes, edges, buildings


@pytest.fixture
def campus():
    nodes, edges, buildings = campus_frames()
    return IndoorGraph(nodes, edges, buildings, meta={"campus_name": "test"})


class FakeDirections:
    """Deterministic walking directions: origin, a midpoint, then a snapped arrival point."""

    def __init__(self, fail=None):
        self.fail = fail or (lambda origin, destination: False)
        self.calls = []

    def walk(self, origin, destination):
        self.calls.append((origin, destination))
        if self.fail(origin, destination):
            raise DirectionsError("provider down")
        mid = Coordinates((origin.latitude + destination.latitude) / 2,
                          (origin.longitude + destination.longitude) / 2)
        snapped = Coordinates(destination.latitude + 0.00005, destination.longitude)
        meters = geo.distance(origin, destination) * 1000.0
        return WalkResult(
            steps=(
                ProviderStep(origin, "Head east on Church Street SE."),
                ProviderStep(mid, "Turn left onto Washington Avenue."),
                ProviderStep(snapped, "You have arrived at your destination."),
            ),
            distance_m=round(meters * 1.2, 1),
            duration_s=round(meters * 1.2 / 1.4),
        )


@pytest.fixture
def directions():
    return FakeDirections()


@pytest.fixture
def make_directions():
    return FakeDirections
