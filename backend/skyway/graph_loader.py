# backend/skyway/graph_loader.py
import heapq
import json
import logging
import math
from collections import deque
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
import pandas as pd
from scipy.spatial import cKDTree

from . import geo
from .errors import GraphStoreError
from .models import Building, BuildingNode, Coordinates, IndoorPath, PathNode

logger = logging.getLogger(__name__)

BUILDING_NODE = "building_node"

NODE_COLUMNS = ["node_id", "building_name", "node_type", "floor", "lat", "lon"]
EDGE_COLUMNS = ["u", "v", "distance_m"]
BUILDING_COLUMNS = ["building_name", "lat", "lon", "disconnected"]


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and math.isnan(value):
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _plain_id(value: Any) -> Any:
    # numpy scalars don't survive json encoding
    return value.item() if isinstance(value, np.generic) else value


def _require_columns(df: pd.DataFrame, columns: List[str], what: str) -> None:
    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise GraphStoreError(f"{what} table is missing columns: {', '.join(missing)}")


@dataclass(eq=False)
class IndoorGraph:
    nodes_df: pd.DataFrame
    edges_df: pd.DataFrame
    buildings_df: pd.DataFrame
    meta: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        _require_columns(self.nodes_df, ["node_id", "building_name", "node_type", "lat", "lon"], "nodes")
        _require_columns(self.edges_df, EDGE_COLUMNS, "edges")
        _require_columns(self.buildings_df, ["building_name", "lat", "lon"], "buildings")

        nodes = self.nodes_df.reset_index(drop=True)
        self._ids: List[Any] = [_plain_id(v) for v in nodes["node_id"].to_numpy()]
        self._names: List[str] = [_text(v) for v in nodes["building_name"].to_numpy()]
        self._types: List[str] = [_text(v) for v in nodes["node_type"].to_numpy()]
        floors = nodes["floor"].to_numpy() if "floor" in nodes.columns else [None] * len(nodes)
        self._floors: List[str] = [_text(v) for v in floors]
        self._lat = nodes["lat"].astype(float).to_numpy()
        self._lon = nodes["lon"].astype(float).to_numpy()

        # node_id -> row index; everything below works on row indices
        self.node_index: Dict[Any, int] = {nid: i for i, nid in enumerate(self._ids)}

        # undirected adjacency: i -> list of (j, distance_m)
        self._adj: List[List[Tuple[int, float]]] = [[] for _ in self._ids]
        skipped = 0
        for u, v, d in zip(self.edges_df["u"].to_numpy(), self.edges_df["v"].to_numpy(),
                           self.edges_df["distance_m"].astype(float).to_numpy()):
            i = self.node_index.get(_plain_id(u))
            j = self.node_index.get(_plain_id(v))
            if i is None or j is None or not np.isfinite(d) or d < 0:
                skipped += 1
                continue
            self._adj[i].append((j, float(d)))
            self._adj[j].append((i, float(d)))
        if skipped:
            logger.warning("Skipped %d edges with unknown endpoints or bad distances", skipped)

        # building name -> building_node row indices
        self._by_building: Dict[str, List[int]] = {}
        for i, (name, kind) in enumerate(zip(self._names, self._types)):
            if kind == BUILDING_NODE and name:
                self._by_building.setdefault(name, []).append(i)
        self._boundary: List[int] = [i for idxs in self._by_building.values() for i in idxs]
        self._boundary.sort()

        self._buildings: Dict[str, Building] = {}
        disconnected = (self.buildings_df["disconnected"].to_numpy()
                        if "disconnected" in self.buildings_df.columns
                        else [False] * len(self.buildings_df))
        for name, lat, lon, dis in zip(self.buildings_df["building_name"].to_numpy(),
                                       self.buildings_df["lat"].to_numpy(),
                                       self.buildings_df["lon"].to_numpy(),
                                       disconnected):
            name = _text(name)
            if not name:
                continue
            coords = None
            if pd.notna(lat) and pd.notna(lon):
                coords = Coordinates(float(lat), float(lon))
            self._buildings[name] = Building(name, coords, bool(dis) if pd.notna(dis) else False)
        # connected buildings that only exist as graph nodes
        for name, idxs in self._by_building.items():
            if name not in self._buildings:
                i = idxs[0]
                self._buildings[name] = Building(name, self._coords(i), False)

        self._lower: Dict[str, str] = {name.lower(): name for name in self._buildings}

        # KDTree on (lat, lon) of boundary nodes
        if self._boundary:
            pts = np.c_[self._lat[self._boundary], self._lon[self._boundary]]
            self.kdtree: Optional[cKDTree] = cKDTree(pts)
        else:
            self.kdtree = None

        logger.debug(
            "Indoor graph ready: %d nodes, %d buildings, %d boundary nodes",
            len(self._ids), len(self._buildings), len(self._boundary),
        )

    # ---- helpers

    def canonical_name(self, name: str) -> Optional[str]:
        if name in self._buildings:
            return name
        return self._lower.get(name.strip().lower())

    def _building_node(self, i: int) -> BuildingNode:
        return BuildingNode(self._ids[i], self._names[i], float(self._lat[i]), float(self._lon[i]))

    def _path_node(self, i: int) -> PathNode:
        return PathNode(self._building_node(i), self._types[i], self._floors[i])

    def _coords(self, i: int) -> Coordinates:
        return Coordinates(float(self._lat[i]), float(self._lon[i]))

    # ---- graph store contract

    def node_exists(self, name: str) -> bool:
        return self.canonical_name(name) is not None

    def is_disconnected(self, name: str) -> bool:
        canonical = self.canonical_name(name)
        if canonical is None:
            return False
        # a building with no indoor node can only be reached from outside
        return self._buildings[canonical].disconnected or canonical not in self._by_building

    def building_coordinates(self, name: str) -> Optional[Coordinates]:
        canonical = self.canonical_name(name)
        if canonical is None:
            return None
        return self._buildings[canonical].coordinates

    def connected_nodes(self, name: str, max_hops: int) -> List[BuildingNode]:
        """The building's own nodes plus every building node within max_hops of them."""
        canonical = self.canonical_name(name)
        if canonical is None:
            return []
        starts = self._by_building.get(canonical, [])
        seen = set(starts)
        order = list(starts)
        queue = deque((i, 0) for i in starts)
        while queue:
            u, hops = queue.popleft()
            if hops >= max_hops:
                continue
            for v, _ in self._adj[u]:
                if v in seen:
                    continue
                seen.add(v)
                queue.append((v, hops + 1))
                if self._types[v] == BUILDING_NODE and self._names[v]:
                    order.append(v)
        return [self._building_node(i) for i in order]

    def all_boundary_nodes(self) -> List[BuildingNode]:
        return [self._building_node(i) for i in self._boundary]

    def shortest_path(self, start_name: str, end_name: str) -> Optional[IndoorPath]:
        """A* between the building nodes of two buildings, weight in meters."""
        start = self.canonical_name(start_name)
        end = self.canonical_name(end_name)
        if start is None or end is None:
            return None
        sources = self._by_building.get(start, [])
        targets = set(self._by_building.get(end, []))
        if not sources or not targets:
            return None

        target_coords = [self._coords(t) for t in sorted(targets)]

        def h(i: int) -> float:
            here = self._coords(i)
            return min(geo.distance(here, t) for t in target_coords) * 1000.0

        INF = float("inf")
        dist: Dict[int, float] = {}
        prev: Dict[int, int] = {}
        pq: List[Tuple[float, int, int]] = []
        counter = 0
        for s in sources:
            dist[s] = 0.0
            heapq.heappush(pq, (h(s), counter, s))
            counter += 1

        found = None
        closed = set()
        while pq:
            _, _, u = heapq.heappop(pq)
            if u in closed:
                continue
            if u in targets:
                found = u
                break
            closed.add(u)
            for v, w in self._adj[u]:
                if v in closed:
                    continue
                nd = dist[u] + w
                if nd < dist.get(v, INF):
                    dist[v] = nd
                    prev[v] = u
                    heapq.heappush(pq, (nd + h(v), counter, v))
                    counter += 1

        if found is None:
            return None

        path_rev = [found]
        cur = found
        while cur in prev:
            cur = prev[cur]
            path_rev.append(cur)
        path = list(reversed(path_rev))
        return IndoorPath(tuple(self._path_node(i) for i in path), dist[found])

    # ---- lookups for the API

    def buildings(self) -> List[Building]:
        return sorted(self._buildings.values(), key=lambda b: b.name)

    def search(self, query: str, limit: int = 5) -> List[Building]:
        q = query.strip().lower()
        if not q:
            return []
        matches = [b for b in self._buildings.values() if q in b.name.lower()]
        matches.sort(key=lambda b: (not b.name.lower().startswith(q), b.name))
        return matches[:limit]

    def nearest_building_node(self, lat: float, lon: float) -> Optional[BuildingNode]:
        if self.kdtree is None:
            return None
        _, idx = self.kdtree.query([lat, lon], k=1)
        return self._building_node(self._boundary[int(idx)])


def load_graph(prefix: str) -> IndoorGraph:
    base = Path(prefix)
    paths = {
        "nodes": base.with_suffix(".nodes.parquet"),
        "edges": base.with_suffix(".edges.parquet"),
        "buildings": base.with_suffix(".buildings.parquet"),
    }
    missing = [str(p) for p in paths.values() if not p.exists()]
    if missing:
        raise GraphStoreError(f"Indoor graph artifacts not found: {', '.join(missing)}")

    nodes = pd.read_parquet(paths["nodes"])
    edges = pd.read_parquet(paths["edges"])
    buildings = pd.read_parquet(paths["buildings"])

    meta_path = base.with_suffix(".meta.json")
    meta: Dict[str, Any] = {}
    if meta_path.exists():
        with open(meta_path) as f:
            meta = json.load(f)

    logger.info("Loaded indoor graph %s (%d nodes, %d edges)", prefix, len(nodes), len(edges))
    return IndoorGraph(nodes_df=nodes, edges_df=edges, buildings_df=buildings, meta=meta)
