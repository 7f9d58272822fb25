import os
import warnings

import geopandas as gpd
import pandas as pd
from pyproj import Geod
from shapely.geometry import LineString, Point

from .other import logger

GEOD = Geod(ellps="WGS84")


def geodesic_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Geodesic distance in meters between two WGS84 points.
    """
    _, _, distance = GEOD.inv(lon1, lat1, lon2, lat2)
    return float(distance)


def validate_feed(gtfs_path: str) -> bool:
    """
    Validates the GTFS feed located at the specified path.

    Only the files and columns used for building the graph are checked.

    Parameters
    ----------
    gtfs_path : str
        Path to the GTFS dataset directory.

    Returns
    -------
    bool
        True if the GTFS feed is valid, False otherwise.
    """
    if not os.path.isdir(gtfs_path):
        warnings.warn("Invalid GTFS path.")
        return False

    # List of required GTFS files
    required_files = ["stops.txt", "trips.txt", "stop_times.txt"]

    # Check for the existence of required GTFS files
    for file in required_files:
        if not os.path.isfile(os.path.join(gtfs_path, file)):
            warnings.warn(f"Missing required file: {file}")
            return False

    has_calendar = os.path.isfile(os.path.join(gtfs_path, "calendar.txt"))
    has_calendar_dates = os.path.isfile(os.path.join(gtfs_path, "calendar_dates.txt"))
    if not (has_calendar or has_calendar_dates):
        warnings.warn("Missing required file: calendar.txt or calendar_dates.txt")
        return False

    try:
        stops_df = pd.read_csv(os.path.join(gtfs_path, "stops.txt"), dtype=str, skipinitialspace=True)
        trips_df = pd.read_csv(os.path.join(gtfs_path, "trips.txt"), dtype=str, skipinitialspace=True)
        stop_times_df = pd.read_csv(
            os.path.join(gtfs_path, "stop_times.txt"), dtype=str, skipinitialspace=True
        )
    except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        logger.error(f"Error during validation: {e}")
        return False

    critical_errors = False

    # Validate stops.txt
    if stops_df.empty or not {"stop_id", "stop_lat", "stop_lon"}.issubset(stops_df.columns):
        logger.error("stops.txt is invalid or missing required columns (stop_id, stop_lat, stop_lon).")
        return False

    # Validate trips.txt
    if trips_df.empty or not {"trip_id", "service_id"}.issubset(trips_df.columns):
        logger.error("trips.txt is invalid or missing required columns (trip_id, service_id).")
        return False

    # Validate stop_times.txt
    required_columns = {"trip_id", "stop_id", "stop_sequence", "arrival_time", "departure_time"}
    if stop_times_df.empty or not required_columns.issubset(stop_times_df.columns):
        logger.error("stop_times.txt is invalid or missing required columns.")
        return False

    if not set(stop_times_df["trip_id"]).issubset(set(trips_df["trip_id"])):
        logger.error("Mismatch in trip IDs between stop_times and trips files.")
        critical_errors = True

    if not set(stop_times_df["stop_id"]).issubset(set(stops_df["stop_id"])):
        logger.error("Mismatch in stop IDs between stop_times and stops files.")
        critical_errors = True

    # Validate transfers.txt, if present
    transfers_path = os.path.join(gtfs_path, "transfers.txt")
    if os.path.isfile(transfers_path):
        transfers_df = pd.read_csv(transfers_path, dtype=str, skipinitialspace=True)
        if not transfers_df.empty and {"from_stop_id", "to_stop_id"}.issubset(transfers_df.columns):
            transfer_stops = set(transfers_df["from_stop_id"]) | set(transfers_df["to_stop_id"])
            if not transfer_stops.issubset(set(stops_df["stop_id"])):
                logger.error("Mismatch in stop IDs between transfers and stops files.")
                critical_errors = True

    # Blank times in the middle of a trip are interpolated later
    if stop_times_df["departure_time"].isnull().any() or stop_times_df["arrival_time"].isnull().any():
        logger.info("Blank departure or arrival times found in stop_times.txt.")

    if critical_errors:
        logger.error("GTFS feed contains critical errors.")
        return False

    logger.info("GTFS feed is valid.")
    return True


def graph_to_gdfs(store) -> tuple[gpd.GeoDataFrame, gpd.GeoDataFrame]:
    """
    Exports the nodes and edges of a built graph as GeoDataFrames.

    Parameters
    ----------
    store : GraphStore
        Graph produced by ``build_graph`` or ``feed_to_graph``.

    Returns
    -------
    tuple
        A tuple containing:
            - gpd.GeoDataFrame: nodes with Point geometry.
            - gpd.GeoDataFrame: edges with straight LineString geometry
              and the number of connections in their timetable.
    """
    graph = store.graph

    nodes = [
        {
            "node": node,
            "stop_id": data.get("stop_id"),
            "name": data.get("name"),
            "geometry": Point(data["x"], data["y"]),
        }
        for node, data in graph.nodes(data=True)
    ]
    nodes_gdf = gpd.GeoDataFrame(
        nodes,
        columns=["node", "stop_id", "name", "geometry"],
        geometry="geometry",
        crs="EPSG:4326",
    )

    edges = []
    for u, v, key, data in graph.edges(keys=True, data=True):
        u_data, v_data = graph.nodes[u], graph.nodes[v]
        edges.append(
            {
                "edge": key,
                "u": u,
                "v": v,
                "type": data.get("type"),
                "name": data.get("name"),
                "length": data.get("length"),
                "connections": len(data.get("departure_times", ())),
                "geometry": LineString([(u_data["x"], u_data["y"]), (v_data["x"], v_data["y"])]),
            }
        )
    edges_gdf = gpd.GeoDataFrame(
        edges,
        columns=["edge", "u", "v", "type", "name", "length", "connections", "geometry"],
        geometry="geometry",
        crs="EPSG:4326",
    )

    return nodes_gdf, edges_gdf
