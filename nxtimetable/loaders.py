"""Build a time-expanded transit graph from a GTFS feed."""
import datetime
from dataclasses import asdict, dataclass
from typing import Optional

from .exceptions import FirstAndLastStopsDoNotHaveTimes, GraphBuildError
from .expander import expand_departures
from .feed import Feed, load_feed
from .functions import geodesic_distance, validate_feed
from .other import logger
from .storage import GraphStore, PatternHopEdge, StopLoopEdge, TransferEdge
from .timetable import ConnectionCounter, TimetableBuilder

# transfers.txt transfer_type requiring a minimum time between arrival and departure
MINIMUM_TIME_TRANSFER = 2


@dataclass
class BuildStats:
    """Counters of one graph build."""

    nodes: int = 0
    loop_edges: int = 0
    hop_edges: int = 0
    transfer_edges: int = 0
    elementary_connections: int = 0
    overwritten_connections: int = 0

    @property
    def edges(self) -> int:
        return self.loop_edges + self.hop_edges + self.transfer_edges


def _create_nodes(feed: Feed, store: GraphStore, stats: BuildStats):
    """
    Adds a node for every stop, in sorted stop_id order.
    """
    for stop_id in sorted(feed.stops):
        stop = feed.stops[stop_id]
        store.stop_to_node[stop_id] = store.create_node(stop.lat, stop.lon, stop_id=stop_id, name=stop.name)
        stats.nodes += 1
    logger.info(f"Created {stats.nodes} nodes from GTFS stops.")


def _create_loop_edges(store: GraphStore, edges: dict, stats: BuildStats):
    for node in store.stop_to_node.values():
        edge = store.create_edge(node, node, 0.0)
        edge.name = "Loop"
        edges[edge.edge] = StopLoopEdge()
        stats.loop_edges += 1


def _build_pattern_timetables(feed, pattern, start_date, end_date, counter):
    """
    Builds the timetables of every hop of a pattern from all of its trips.

    Raises
    ------
    GraphBuildError
        If the stop times of a trip cannot be interpolated.
    """
    builder = TimetableBuilder(len(pattern.ordered_stops) - 1, counter)
    for trip_id in pattern.associated_trips:
        try:
            stop_times = feed.get_interpolated_stop_times(trip_id)
        except FirstAndLastStopsDoNotHaveTimes as e:
            raise GraphBuildError(
                f"Cannot build timetables of pattern {pattern.pattern_id} ({pattern.name}): {e}",
                trip_id=trip_id,
                pattern_id=pattern.pattern_id,
            ) from e

        events = expand_departures(
            feed.service_for_trip(trip_id),
            feed.frequencies(trip_id),
            start_date,
            end_date,
        )
        builder.add_trip(stop_times, events)
    return builder


def _create_pattern_edges(feed, store, edges, stats, start_date, end_date, counter):
    for pattern in feed.patterns:
        builder = _build_pattern_timetables(feed, pattern, start_date, end_date, counter)

        stops = pattern.ordered_stops
        for hop_index, timetable in builder.hops():
            from_stop = feed.stops[stops[hop_index]]
            to_stop = feed.stops[stops[hop_index + 1]]
            distance = geodesic_distance(from_stop.lat, from_stop.lon, to_stop.lat, to_stop.lon)
            edge = store.create_edge(
                store.stop_to_node[from_stop.stop_id],
                store.stop_to_node[to_stop.stop_id],
                distance,
            )
            edge.name = pattern.name
            edges[edge.edge] = PatternHopEdge(pattern.pattern_id, timetable)
            stats.hop_edges += 1


def _create_transfer_edges(feed, store, edges, stats):
    for transfer in feed.transfers:
        if transfer.transfer_type != MINIMUM_TIME_TRANSFER or transfer.from_stop_id == transfer.to_stop_id:
            continue
        from_stop = feed.stops[transfer.from_stop_id]
        to_stop = feed.stops[transfer.to_stop_id]
        distance = geodesic_distance(from_stop.lat, from_stop.lon, to_stop.lat, to_stop.lon)
        edge = store.create_edge(
            store.stop_to_node[from_stop.stop_id],
            store.stop_to_node[to_stop.stop_id],
            distance,
        )
        edge.name = f"Transfer: {from_stop.name} -> {to_stop.name}"
        edges[edge.edge] = TransferEdge(
            from_stop.stop_id, to_stop.stop_id, transfer.min_transfer_time or 0
        )
        stats.transfer_edges += 1


def build_graph(
    feed: Feed,
    store: Optional[GraphStore] = None,
    start_date: Optional[datetime.date] = None,
    end_date: Optional[datetime.date] = None,
    progress_every: int = 1_000_000,
) -> GraphStore:
    """
    Builds the time-expanded graph of a feed.

    Every stop becomes a node with a self-loop. Every pattern hop becomes
    a directed edge whose timetable holds one (departure, travel_time)
    connection per trip run on that hop over the whole validity window.
    Departures are seconds since midnight of ``start_date``.
    Transfers with a minimum transfer time become fixed-duration edges.

    Parameters
    ----------
    feed : Feed
        Loaded GTFS feed.
    store : GraphStore, optional
        Destination storage, a new one is created if omitted.
    start_date, end_date : datetime.date, optional
        Inclusive validity window, defaults to the window of the feed.
    progress_every : int, optional
        Log a progress line every this many elementary connections.

    Returns
    -------
    GraphStore
        Storage with the graph, the edge side table and build statistics.

    Raises
    ------
    GraphBuildError
        If any trip of any pattern has no times at its first or last stop.
        No partial graph is returned. A ``store`` passed in by the caller
        keeps the nodes and edges written before the failure and its
        ``stats`` stays None, so it must not be used as a finished graph.
    """
    store = store if store is not None else GraphStore()
    start_date = start_date or feed.start_date
    end_date = end_date or feed.end_date

    stats = BuildStats()
    counter = ConnectionCounter(progress_every)
    edges = {}

    _create_nodes(feed, store, stats)
    _create_loop_edges(store, edges, stats)
    _create_pattern_edges(feed, store, edges, stats, start_date, end_date, counter)
    _create_transfer_edges(feed, store, edges, stats)

    stats.elementary_connections = counter.count
    stats.overwritten_connections = counter.overwritten

    store.set_edges(edges)
    store.set_real_edges_size(stats.edges)
    store.stats = stats
    store.graph.graph["stats"] = {**asdict(stats), "edges": stats.edges}
    store.graph.graph["start_date"] = start_date
    store.graph.graph["end_date"] = end_date

    logger.info(f"Created {stats.edges} edges from GTFS trip hops and transfers.")
    logger.info(f"Created {stats.elementary_connections} elementary connections.")

    return store


def feed_to_graph(
    gtfs_path: str,
    start_date: Optional[datetime.date] = None,
    end_date: Optional[datetime.date] = None,
    progress_every: int = 1_000_000,
) -> GraphStore:
    """
    Creates a time-expanded graph from a GTFS feed directory.

    Parameters
    ----------
    gtfs_path : str
        Path to the GTFS files.
    start_date, end_date : datetime.date, optional
        Inclusive validity window, defaults to the calendar range of the feed.
    progress_every : int, optional
        Log a progress line every this many elementary connections.

    Returns
    -------
    GraphStore
        The built graph.

    Examples
    --------
    >>> store = nt.feed_to_graph("data/gtfs")
    >>> store.graph.number_of_nodes(), store.stats.elementary_connections
    """
    # Validate the GTFS feed
    bool_feed_valid = validate_feed(gtfs_path)
    if not bool_feed_valid:
        raise ValueError("The GTFS feed is not valid")

    feed = load_feed(gtfs_path)
    return build_graph(
        feed,
        start_date=start_date,
        end_date=end_date,
        progress_every=progress_every,
    )
