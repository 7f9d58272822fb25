"""NetworkX storage for the time-expanded transit graph."""
from dataclasses import dataclass
from typing import Optional

import networkx as nx

from .timetable import HopTimetable


@dataclass
class StopLoopEdge:
    """Zero-length self-edge of a stop, stands for waiting in place."""

    type = "loop"

    def edge_attributes(self) -> dict:
        return {"type": self.type, "weight": 0}


@dataclass
class PatternHopEdge:
    """Traversal between two consecutive stops of a pattern."""

    pattern_id: str
    timetable: HopTimetable

    type = "hop"

    def edge_attributes(self) -> dict:
        return {
            "type": self.type,
            "pattern_id": self.pattern_id,
            "timetable": self.timetable.sorted_schedules,
            "departure_times": list(self.timetable.departure_times),
        }


@dataclass
class TransferEdge:
    """Fixed-duration transfer between two distinct stops."""

    from_stop_id: str
    to_stop_id: str
    min_transfer_time: int

    type = "transfer"

    def edge_attributes(self) -> dict:
        return {"type": self.type, "weight": self.min_transfer_time}


class EdgeHandle:
    """Reference to an edge created in a GraphStore."""

    def __init__(self, store: "GraphStore", edge: int, arcs: list):
        self._store = store
        self.edge = edge
        self._arcs = arcs

    @property
    def name(self) -> Optional[str]:
        u, v = self._arcs[0]
        return self._store.graph.edges[u, v, self.edge].get("name")

    @name.setter
    def name(self, value: str):
        for u, v in self._arcs:
            self._store.graph.edges[u, v, self.edge]["name"] = value

    def __repr__(self):
        return f"EdgeHandle({self.edge}, {self._arcs[0]})"


class GraphStore:
    """
    Time-expanded graph storage backed by a networkx MultiDiGraph.

    Nodes are consecutive integers from 0, one per stop. Edges are keyed by
    consecutive integer ids, so that parallel hop edges of different patterns
    and self-loops can coexist. The ``edges`` side table maps every edge id
    to its record (timetable, transfer duration or loop marker).
    """

    def __init__(self):
        self.graph = nx.MultiDiGraph()
        self.edges = {}
        self.real_edges_size = 0
        self.stop_to_node = {}
        self.stats = None
        self._next_edge = 0

    def create_node(self, lat: float, lon: float, **attrs) -> int:
        """Adds a node at the given WGS84 coordinates and returns its index."""
        node = self.graph.number_of_nodes()
        self.graph.add_node(node, type="transit", x=lon, y=lat, pos=(lon, lat), **attrs)
        return node

    def create_edge(self, u: int, v: int, distance: float, directed: bool = True) -> EdgeHandle:
        """
        Adds an edge between two existing nodes.

        Parameters
        ----------
        u, v : int
            Node indices.
        distance : float
            Length of the edge in meters.
        directed : bool, optional
            If False, the reverse arc is added under the same edge id.

        Returns
        -------
        EdgeHandle
            Handle carrying the new edge id.
        """
        if u not in self.graph or v not in self.graph:
            raise KeyError(f"Cannot create edge {u} -> {v}: node does not exist")

        edge = self._next_edge
        self._next_edge += 1

        arcs = [(u, v)]
        if not directed and u != v:
            arcs.append((v, u))
        for a, b in arcs:
            self.graph.add_edge(a, b, key=edge, length=distance)
        return EdgeHandle(self, edge, arcs)

    def set_edges(self, edges: dict):
        """Attaches the edge id -> record side table and copies records onto graph arcs."""
        self.edges = edges
        for u, v, key, data in self.graph.edges(keys=True, data=True):
            record = edges.get(key)
            if record is not None:
                data.update(record.edge_attributes())

    def set_real_edges_size(self, size: int):
        self.real_edges_size = size
        self.graph.graph["real_edges_size"] = size

    def edges_of_type(self, edge_type: str) -> dict:
        """Side-table entries of one edge type ('hop', 'transfer' or 'loop')."""
        return {edge: record for edge, record in self.edges.items() if record.type == edge_type}
