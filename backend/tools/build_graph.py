#!/usr/bin/env python3
"""Build indoor graph artifacts from a JSON export of the tunnel graph.

The export looks like:
    {
      "nodes": [{"node_id": 1, "building_name": "Coffman", "node_type": "building_node",
                 "floor": "1", "lat": 44.97, "lon": -93.23}, ...],
      "edges": [{"u": 1, "v": 2, "distance_m": 41.2}, ...],
      "buildings": [{"building_name": "Coffman", "lat": 44.97, "lon": -93.23,
                     "disconnected": false}, ...]
    }
"""
import argparse, json, sys, time, pathlib
from typing import Any, Dict, Tuple

import pandas as pd

from backend.skyway import geo
from backend.skyway.graph_loader import BUILDING_COLUMNS, EDGE_COLUMNS, NODE_COLUMNS
from backend.skyway.models import Coordinates


# Normalize exported nodes/edges/buildings into the three tables the router loads
def normalize_export(export: Dict[str, Any]) -> Tuple[pd.DataFrame, pd.DataFrame, pd.DataFrame]:
    nodes = []
    for n in export.get("nodes", []):
        nodes.append({
            "node_id": n["node_id"],
            "building_name": n.get("building_name") or "",
            "node_type": n.get("node_type") or "path",
            "floor": str(n["floor"]) if n.get("floor") is not None else "",
            "lat": float(n["lat"]),
            "lon": float(n["lon"]),
        })
    nodes_df = pd.DataFrame(nodes, columns=NODE_COLUMNS)

    coords = {row.node_id: Coordinates(row.lat, row.lon) for row in nodes_df.itertuples()}
    edges = []
    for e in export.get("edges", []):
        u, v = e["u"], e["v"]
        dist = e.get("distance_m")
        if dist is None:
            if u not in coords or v not in coords:
                raise ValueError(f"Edge {u}-{v} has no distance and an unknown endpoint")
            # meters along the straight line
            dist = geo.distance(coords[u], coords[v]) * 1000.0
        edges.append({"u": u, "v": v, "distance_m": float(dist)})
    edges_df = pd.DataFrame(edges, columns=EDGE_COLUMNS)

    buildings = []
    for b in export.get("buildings", []):
        buildings.append({
            "building_name": b["building_name"],
            "lat": b.get("lat"),
            "lon": b.get("lon"),
            "disconnected": bool(b.get("disconnected", False)),
        })
    buildings_df = pd.DataFrame(buildings, columns=BUILDING_COLUMNS)
    return nodes_df, edges_df, buildings_df


# Persist artifacts
def save_artifacts(nodes_df: pd.DataFrame, edges_df: pd.DataFrame, buildings_df: pd.DataFrame,
                   meta: Dict[str, Any], out_prefix: pathlib.Path):
    out_prefix.parent.mkdir(parents=True, exist_ok=True)
    nodes_df.to_parquet(out_prefix.with_suffix(".nodes.parquet"), index=False)
    edges_df.to_parquet(out_prefix.with_suffix(".edges.parquet"), index=False)
    buildings_df.to_parquet(out_prefix.with_suffix(".buildings.parquet"), index=False)
    with open(out_prefix.with_suffix(".meta.json"), "w") as f:
        json.dump(meta, f, indent=2)


def main():
    ap = argparse.ArgumentParser(description="Build indoor graph artifacts from a JSON export")
    ap.add_argument("--export", required=True, help="path to the graph export JSON")
    ap.add_argument("--out", required=True, help="output prefix, e.g., data/graphs/umn")
    ap.add_argument("--name", default=None, help="campus name stored in meta")
    args = ap.parse_args()

    with open(args.export) as f:
        export = json.load(f)

    t0 = time.time()
    try:
        nodes_df, edges_df, buildings_df = normalize_export(export)
    except (KeyError, ValueError) as e:
        print(f"Bad export: {e}")
        sys.exit(2)
    dt = time.time() - t0

    meta = {
        "campus_name": args.name or pathlib.Path(args.out).name,
        "source": str(args.export),
        "generated_at": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
        "counts": {
            "nodes": int(len(nodes_df)),
            "edges": int(len(edges_df)),
            "buildings": int(len(buildings_df)),
            "building_nodes": int((nodes_df["node_type"] == "building_node").sum()),
        },
    }

    print(f"Nodes: {len(nodes_df):,}, Edges: {len(edges_df):,}, Buildings: {len(buildings_df):,} "
          f"(built in {dt:.1f}s)")
    save_artifacts(nodes_df, edges_df, buildings_df, meta, pathlib.Path(args.out))

if __name__ == "__main__":
    main()
