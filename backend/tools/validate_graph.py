#!/usr/bin/env python3
import argparse, json, sys
from typing import List

import networkx as nx
import pandas as pd


def check_graph(nodes: pd.DataFrame, edges: pd.DataFrame, buildings: pd.DataFrame) -> List[str]:
    """Return a list of problems; empty means the artifacts are usable."""
    problems = []
    if not nodes["lat"].between(-90, 90).all():
        problems.append("node latitude out of range")
    if not nodes["lon"].between(-180, 180).all():
        problems.append("node longitude out of range")
    if not (edges["distance_m"] >= 0).all():
        problems.append("negative edge distance")
    if nodes["node_id"].duplicated().any():
        problems.append("duplicate node ids")

    names = nodes["building_name"].fillna("").astype(str).str.strip()
    nameless = nodes[(nodes["node_type"] == "building_node") & (names == "")]
    if len(nameless):
        problems.append(f"{len(nameless)} building nodes without a building name")

    known = set(nodes["node_id"])
    dangling = edges[~edges["u"].isin(known) | ~edges["v"].isin(known)]
    if len(dangling):
        problems.append(f"{len(dangling)} edges reference unknown nodes")

    disconnected = buildings.loc[buildings["disconnected"].astype(bool), "building_name"]
    missing_coords = buildings[buildings["lat"].isna() | buildings["lon"].isna()]
    bad = set(missing_coords["building_name"]) & set(disconnected)
    if bad:
        problems.append(f"disconnected buildings without coordinates: {', '.join(sorted(bad))}")
    return problems


def connectivity_report(nodes: pd.DataFrame, edges: pd.DataFrame) -> dict:
    G = nx.Graph()
    G.add_nodes_from(nodes["node_id"])
    G.add_edges_from(zip(edges["u"], edges["v"]))
    components = sorted(nx.connected_components(G), key=len, reverse=True)
    largest = components[0] if components else set()
    building_nodes = nodes[nodes["node_type"] == "building_node"]
    stranded = building_nodes[~building_nodes["node_id"].isin(largest)]
    return {
        "components": len(components),
        "largest_component": len(largest),
        "stranded_buildings": sorted(set(stranded["building_name"])),
    }


def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("--prefix", required=True, help="e.g., data/graphs/umn")
    args = ap.parse_args()

    nodes = pd.read_parquet(args.prefix + ".nodes.parquet")
    edges = pd.read_parquet(args.prefix + ".edges.parquet")
    buildings = pd.read_parquet(args.prefix + ".buildings.parquet")
    meta = json.load(open(args.prefix + ".meta.json"))

    print("Meta:", json.dumps(meta, indent=2))
    print("Nodes sample:", nodes.head())
    print("Edges sample:", edges.head())

    report = connectivity_report(nodes, edges)
    print(f"Components: {report['components']}, largest: {report['largest_component']} nodes")
    if report["stranded_buildings"]:
        print("Buildings outside the main network:", ", ".join(report["stranded_buildings"]))

    problems = check_graph(nodes, edges, buildings)
    for p in problems:
        print("FAIL:", p)
    if problems:
        sys.exit(1)
    print("OK")

if __name__ == "__main__":
    main()
