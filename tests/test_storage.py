import pytest

from nxtimetable.storage import GraphStore, PatternHopEdge, StopLoopEdge, TransferEdge
from nxtimetable.timetable import HopTimetable


def test_create_node_indices():
    store = GraphStore()

    first = store.create_node(55.0, 37.0, stop_id="A")
    second = store.create_node(55.1, 37.1, stop_id="B")

    assert (first, second) == (0, 1)
    assert store.graph.nodes[1]["x"] == 37.1
    assert store.graph.nodes[1]["y"] == 55.1
    assert store.graph.nodes[1]["type"] == "transit"


def test_parallel_edges_and_loops():
    store = GraphStore()
    a = store.create_node(55.0, 37.0)
    b = store.create_node(55.1, 37.1)

    loop = store.create_edge(a, a, 0.0)
    first = store.create_edge(a, b, 100.0)
    second = store.create_edge(a, b, 100.0)
    first.name = "Route 1"
    second.name = "Route 2"

    assert (loop.edge, first.edge, second.edge) == (0, 1, 2)
    assert store.graph.number_of_edges(a, b) == 2
    assert store.graph.edges[a, b, 2]["name"] == "Route 2"
    assert first.name == "Route 1"


def test_undirected_edge_shares_id():
    store = GraphStore()
    a = store.create_node(55.0, 37.0)
    b = store.create_node(55.1, 37.1)

    edge = store.create_edge(a, b, 50.0, directed=False)
    edge.name = "Both ways"

    assert store.graph.edges[b, a, edge.edge]["name"] == "Both ways"
    assert store.graph.edges[a, b, edge.edge]["length"] == 50.0


def test_create_edge_unknown_node():
    store = GraphStore()
    store.create_node(55.0, 37.0)

    with pytest.raises(KeyError):
        store.create_edge(0, 5, 10.0)


def test_set_edges_copies_records():
    store = GraphStore()
    a = store.create_node(55.0, 37.0)
    b = store.create_node(55.1, 37.1)
    loop = store.create_edge(a, a, 0.0)
    hop = store.create_edge(a, b, 10.0)
    transfer = store.create_edge(b, a, 10.0)
    timetable = HopTimetable()
    timetable.add(200, 30)
    timetable.add(100, 40)

    store.set_edges(
        {
            loop.edge: StopLoopEdge(),
            hop.edge: PatternHopEdge("pattern_1", timetable),
            transfer.edge: TransferEdge("B", "A", 90),
        }
    )
    store.set_real_edges_size(3)

    assert store.graph.edges[a, a, loop.edge]["weight"] == 0
    assert store.graph.edges[a, b, hop.edge]["timetable"] == [(100, 40), (200, 30)]
    assert store.graph.edges[a, b, hop.edge]["departure_times"] == [100, 200]
    store.graph.edges[a, b, hop.edge]["departure_times"].append(50)
    assert timetable.departure_times == [100, 200]
    assert store.graph.edges[b, a, transfer.edge]["weight"] == 90
    assert store.graph.graph["real_edges_size"] == 3
    assert list(store.edges_of_type("transfer")) == [transfer.edge]
