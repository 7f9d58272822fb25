"""Read a GTFS feed into the structures used for building the graph."""
import datetime
import os
from collections import namedtuple
from typing import Optional

import numpy as np
import pandas as pd

from .converters import parse_gtfs_date, parse_time_to_seconds
from .exceptions import FeedError, FirstAndLastStopsDoNotHaveTimes
from .functions import GEOD
from .other import logger

Stop = namedtuple("Stop", ["stop_id", "name", "lat", "lon"])
Trip = namedtuple("Trip", ["trip_id", "route_id", "service_id"])
Frequency = namedtuple("Frequency", ["start_time", "end_time", "headway"])
StopTime = namedtuple("StopTime", ["stop_id", "stop_sequence", "arrival_time", "departure_time"])
Transfer = namedtuple("Transfer", ["from_stop_id", "to_stop_id", "transfer_type", "min_transfer_time"])
Pattern = namedtuple("Pattern", ["pattern_id", "name", "ordered_stops", "associated_trips"])
CalendarEntry = namedtuple("CalendarEntry", ["start_date", "end_date", "weekdays"])

WEEKDAY_COLUMNS = [
    "monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"
]

# calendar_dates.txt exception_type values
SERVICE_ADDED = 1
SERVICE_REMOVED = 2


class Service:
    """
    Calendar of a service_id: a calendar.txt entry and calendar_dates.txt exceptions.
    """

    def __init__(self, service_id, calendar: Optional[CalendarEntry] = None, added=(), removed=()):
        self.service_id = service_id
        self.calendar = calendar
        self.added = set(added)
        self.removed = set(removed)

    def active_on(self, date: datetime.date) -> bool:
        """Checks if the service runs on the given date."""
        if date in self.removed:
            return False
        if date in self.added:
            return True
        if self.calendar is None:
            return False
        return (
            self.calendar.start_date <= date <= self.calendar.end_date
            and self.calendar.weekdays[date.weekday()]
        )

    def __repr__(self):
        return f"Service({self.service_id!r})"


def _read_table(gtfs_path: str, filename: str, required: bool = False) -> Optional[pd.DataFrame]:
    path = os.path.join(gtfs_path, filename)
    if not os.path.isfile(path):
        if required:
            raise FeedError(f"Missing required file: {filename}")
        return None
    try:
        return pd.read_csv(path, dtype=str, skipinitialspace=True, encoding="utf-8-sig")
    except pd.errors.EmptyDataError:
        if required:
            raise FeedError(f"Required file is empty: {filename}")
        return None


def _parse_optional_time(value) -> float:
    """Seconds since midnight or NaN for a blank time."""
    if pd.isna(value) or not str(value).strip():
        return np.nan
    return float(parse_time_to_seconds(str(value)))


class Feed:
    """
    GTFS feed prepared for the time-expanded graph build.

    Parameters
    ----------
    stops, trips, stop_times : pandas.DataFrame
        Contents of the required GTFS files, read as strings.
    routes, calendar, calendar_dates, frequencies, transfers : pandas.DataFrame, optional
        Contents of the optional GTFS files.
    """

    def __init__(
        self,
        stops: pd.DataFrame,
        trips: pd.DataFrame,
        stop_times: pd.DataFrame,
        routes: Optional[pd.DataFrame] = None,
        calendar: Optional[pd.DataFrame] = None,
        calendar_dates: Optional[pd.DataFrame] = None,
        frequencies: Optional[pd.DataFrame] = None,
        transfers: Optional[pd.DataFrame] = None,
    ):
        self.stops = self._read_stops(stops)
        self.trips = self._read_trips(trips)
        self.services = self._read_services(calendar, calendar_dates)
        self._route_names = self._read_route_names(routes)
        self._frequencies = self._read_frequencies(frequencies)
        self.transfers = self._read_transfers(transfers)
        self._start_date, self._end_date = self._validity_window(calendar, calendar_dates)

        # Sorting stop_times once so that every trip group is in stop_sequence order
        stop_times = stop_times.copy()
        stop_times["stop_sequence"] = stop_times["stop_sequence"].astype(int)
        stop_times = stop_times.sort_values(["trip_id", "stop_sequence"], kind="stable")
        self._stop_times = {
            trip_id: group.reset_index(drop=True)
            for trip_id, group in stop_times.groupby("trip_id", sort=True)
        }
        self._unknown_services = set()
        self.patterns = self._find_patterns()

    @staticmethod
    def _read_stops(stops: pd.DataFrame) -> dict:
        names = stops["stop_name"] if "stop_name" in stops.columns else stops["stop_id"]
        records = {
            stop_id: Stop(stop_id, name if not pd.isna(name) else stop_id, float(lat), float(lon))
            for stop_id, name, lat, lon in zip(stops["stop_id"], names, stops["stop_lat"], stops["stop_lon"])
        }
        # Deterministic stop iteration order, independent of the file order
        return {stop_id: records[stop_id] for stop_id in sorted(records)}

    @staticmethod
    def _read_trips(trips: pd.DataFrame) -> dict:
        route_ids = trips["route_id"] if "route_id" in trips.columns else [None] * len(trips)
        return {
            trip_id: Trip(trip_id, route_id, service_id)
            for trip_id, route_id, service_id in zip(trips["trip_id"], route_ids, trips["service_id"])
        }

    @staticmethod
    def _read_route_names(routes: Optional[pd.DataFrame]) -> dict:
        if routes is None:
            return {}
        route_names = {}
        for _, route in routes.iterrows():
            name = route.get("route_short_name")
            if pd.isna(name) or not str(name).strip():
                name = route.get("route_long_name")
            if pd.isna(name) or not str(name).strip():
                name = route["route_id"]
            route_names[route["route_id"]] = str(name)
        return route_names

    @staticmethod
    def _read_services(calendar: Optional[pd.DataFrame], calendar_dates: Optional[pd.DataFrame]) -> dict:
        services = {}
        if calendar is not None:
            for _, row in calendar.iterrows():
                entry = CalendarEntry(
                    parse_gtfs_date(row["start_date"]),
                    parse_gtfs_date(row["end_date"]),
                    tuple(int(row[day]) == 1 for day in WEEKDAY_COLUMNS),
                )
                services[row["service_id"]] = Service(row["service_id"], entry)

        if calendar_dates is not None:
            for _, row in calendar_dates.iterrows():
                service = services.setdefault(row["service_id"], Service(row["service_id"]))
                date = parse_gtfs_date(row["date"])
                exception_type = int(row["exception_type"])
                if exception_type == SERVICE_ADDED:
                    service.added.add(date)
                elif exception_type == SERVICE_REMOVED:
                    service.removed.add(date)
                else:
                    raise FeedError(
                        f"Invalid exception_type {exception_type} for service {row['service_id']}"
                    )
        return services

    @staticmethod
    def _read_frequencies(frequencies: Optional[pd.DataFrame]) -> dict:
        result = {}
        if frequencies is None:
            return result
        for _, row in frequencies.iterrows():
            result.setdefault(row["trip_id"], []).append(
                Frequency(
                    parse_time_to_seconds(row["start_time"]),
                    parse_time_to_seconds(row["end_time"]),
                    int(row["headway_secs"]),
                )
            )
        for trip_frequencies in result.values():
            trip_frequencies.sort(key=lambda frequency: frequency.start_time)
        return result

    @staticmethod
    def _read_transfers(transfers: Optional[pd.DataFrame]) -> list:
        if transfers is None:
            return []
        result = []
        for _, row in transfers.iterrows():
            transfer_type = row.get("transfer_type")
            transfer_type = 0 if pd.isna(transfer_type) or not str(transfer_type).strip() else int(transfer_type)
            min_transfer_time = row.get("min_transfer_time")
            if pd.isna(min_transfer_time) or not str(min_transfer_time).strip():
                min_transfer_time = None
            else:
                min_transfer_time = int(float(min_transfer_time))
            result.append(Transfer(row["from_stop_id"], row["to_stop_id"], transfer_type, min_transfer_time))
        return result

    @staticmethod
    def _validity_window(calendar, calendar_dates) -> tuple:
        dates = []
        if calendar is not None and not calendar.empty:
            dates.extend(parse_gtfs_date(value) for value in calendar["start_date"])
            dates.extend(parse_gtfs_date(value) for value in calendar["end_date"])
        if calendar_dates is not None and not calendar_dates.empty:
            added = calendar_dates[calendar_dates["exception_type"].astype(int) == SERVICE_ADDED]
            dates.extend(parse_gtfs_date(value) for value in added["date"])
        if not dates:
            return None, None
        return min(dates), max(dates)

    @property
    def start_date(self) -> datetime.date:
        """First date of the schedule validity window."""
        if self._start_date is None:
            raise FeedError("The feed has no calendar information")
        return self._start_date

    @property
    def end_date(self) -> datetime.date:
        """Last date (inclusive) of the schedule validity window."""
        if self._end_date is None:
            raise FeedError("The feed has no calendar information")
        return self._end_date

    def _find_patterns(self) -> list:
        """
        Groups trips with an identical stop sequence into patterns.

        Patterns are ordered by their first trip, with trips in sorted id order.
        """
        patterns = {}
        for trip_id, group in self._stop_times.items():
            if trip_id not in self.trips:
                logger.warning(f"Trip {trip_id} from stop_times.txt is missing in trips.txt, skipped")
                continue
            ordered_stops = tuple(group["stop_id"])
            if len(ordered_stops) < 2:
                logger.debug(f"Trip {trip_id} has less than two stops, skipped")
                continue
            patterns.setdefault(ordered_stops, []).append(trip_id)

        result = []
        for number, (ordered_stops, trip_ids) in enumerate(patterns.items(), start=1):
            route_id = self.trips[trip_ids[0]].route_id
            route_name = self._route_names.get(route_id, route_id or "")
            first, last = self.stops[ordered_stops[0]], self.stops[ordered_stops[-1]]
            name = f"{route_name} from {first.name} to {last.name}".strip()
            result.append(Pattern(f"pattern_{number}", name, ordered_stops, trip_ids))
        return result

    def service_for_trip(self, trip_id) -> Service:
        """Calendar of a trip; an unknown service_id yields a service that never runs."""
        service_id = self.trips[trip_id].service_id
        service = self.services.get(service_id)
        if service is None:
            if service_id not in self._unknown_services:
                logger.warning(f"Service {service_id} is not defined in calendar files, its trips never run")
                self._unknown_services.add(service_id)
            service = Service(service_id)
        return service

    def frequencies(self, trip_id) -> list:
        """Frequency windows of a trip, sorted by start time."""
        return list(self._frequencies.get(trip_id, ()))

    def _cumulative_distance(self, group: pd.DataFrame) -> np.ndarray:
        if "shape_dist_traveled" in group.columns and group["shape_dist_traveled"].notna().all():
            return group["shape_dist_traveled"].astype(float).to_numpy()

        lats = np.array([self.stops[stop_id].lat for stop_id in group["stop_id"]])
        lons = np.array([self.stops[stop_id].lon for stop_id in group["stop_id"]])
        if len(lats) < 2:
            return np.zeros(len(lats))
        _, _, distances = GEOD.inv(lons[:-1], lats[:-1], lons[1:], lats[1:])
        return np.concatenate([[0.0], np.cumsum(np.abs(distances))])

    def get_interpolated_stop_times(self, trip_id) -> list:
        """
        Stop times of a trip with every stop holding a concrete time.

        A blank arrival copies the departure of the same stop and vice versa.
        Stops with neither are interpolated linearly between the surrounding
        timed stops, weighted by the distance traveled.

        Raises
        ------
        FirstAndLastStopsDoNotHaveTimes
            If the first or the last stop of the trip has no time.
        """
        group = self._stop_times[trip_id]
        arrivals = np.array([_parse_optional_time(value) for value in group["arrival_time"]])
        departures = np.array([_parse_optional_time(value) for value in group["departure_time"]])
        arrivals = np.where(np.isnan(arrivals), departures, arrivals)
        departures = np.where(np.isnan(departures), arrivals, departures)

        if np.isnan(departures[0]) or np.isnan(arrivals[-1]):
            raise FirstAndLastStopsDoNotHaveTimes(trip_id)

        missing = np.isnan(arrivals)
        if missing.any():
            distance = self._cumulative_distance(group)
            timed = np.flatnonzero(~missing)
            for start, end in zip(timed, timed[1:]):
                if end - start < 2:
                    continue
                span = distance[end] - distance[start]
                for idx in range(start + 1, end):
                    if span > 0:
                        fraction = (distance[idx] - distance[start]) / span
                    else:
                        fraction = (idx - start) / (end - start)
                    time = departures[start] + fraction * (arrivals[end] - departures[start])
                    arrivals[idx] = departures[idx] = int(time)

        return [
            StopTime(stop_id, int(sequence), int(arrival), int(departure))
            for stop_id, sequence, arrival, departure in zip(
                group["stop_id"], group["stop_sequence"], arrivals, departures
            )
        ]


def load_feed(gtfs_path: str) -> Feed:
    """
    Loads a GTFS feed from a directory.

    Parameters
    ----------
    gtfs_path : str
        Path to the directory containing GTFS data files.

    Returns
    -------
    Feed
        Feed ready for ``build_graph``.
    """
    if not os.path.isdir(gtfs_path):
        raise FeedError(f"Invalid GTFS path: {gtfs_path}")

    feed = Feed(
        stops=_read_table(gtfs_path, "stops.txt", required=True),
        trips=_read_table(gtfs_path, "trips.txt", required=True),
        stop_times=_read_table(gtfs_path, "stop_times.txt", required=True),
        routes=_read_table(gtfs_path, "routes.txt"),
        calendar=_read_table(gtfs_path, "calendar.txt"),
        calendar_dates=_read_table(gtfs_path, "calendar_dates.txt"),
        frequencies=_read_table(gtfs_path, "frequencies.txt"),
        transfers=_read_table(gtfs_path, "transfers.txt"),
    )
    logger.info(
        f"Loaded GTFS feed: {len(feed.stops)} stops, {len(feed.trips)} trips, {len(feed.patterns)} patterns"
    )
    return feed
