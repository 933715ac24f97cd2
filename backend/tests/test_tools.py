import pandas as pd
import pytest

from backend.tools.build_graph import normalize_export
from backend.tools.validate_graph import check_graph, connectivity_report

from conftest import campus_frames

EXPORT = {
    "nodes": [
        {"node_id": 1, "building_name": "Coffman", "node_type": "building_node", "floor": 1, "lat": 44.9727, "lon": -93.2354},
        {"node_id": 2, "node_type": "path", "lat": 44.9727, "lon": -93.2340},
    ],
    "edges": [{"u": 1, "v": 2}],
    "buildings": [
        {"building_name": "Coffman", "lat": 44.9727, "lon": -93.2354},
        {"building_name": "Weisman", "lat": 44.9733, "lon": -93.2370, "disconnected": True},
    ],
}


def test_normalize_export_fills_edge_lengths():
    nodes, edges, buildings = normalize_export(EXPORT)
    assert list(nodes["floor"]) == ["1", ""]
    assert list(nodes["node_type"]) == ["building_node", "path"]
    # 0.0014 degrees of longitude at 45N is roughly 110 m
    assert edges.loc[0, "distance_m"] == pytest.approx(110.0, abs=2.0)
    assert list(buildings["disconnected"]) == [False, True]


def test_normalize_export_rejects_unknown_endpoint():
    bad = dict(EXPORT, edges=[{"u": 1, "v": 42}])
    with pytest.raises(ValueError):
        normalize_export(bad)


def test_check_graph_flags_only_the_coordinate_less_building():
    assert check_graph(*campus_frames()) == ["disconnected buildings without coordinates: Ghost Hall"]


def test_check_graph_reports_problems():
    nodes, edges, buildings = campus_frames()
    edges = pd.concat([edges, pd.DataFrame([{"u": 1, "v": 99, "distance_m": -1.0}])], ignore_index=True)
    problems = check_graph(nodes, edges, buildings)
    assert "negative edge distance" in problems
    assert "1 edges reference unknown nodes" in problems


def test_check_graph_flags_nameless_building_nodes():
    nodes, edges, buildings = campus_frames()
    nodes.loc[nodes["node_id"] == 2, "node_type"] = "building_node"
    assert "1 building nodes without a building name" in check_graph(nodes, edges, buildings)


def test_connectivity_report_finds_stranded_buildings():
    nodes, edges, _ = campus_frames()
    report = connectivity_report(nodes, edges)
    assert report["components"] == 2
    assert report["largest_component"] == 6
    assert report["stranded_buildings"] == ["Delta Lab"]
