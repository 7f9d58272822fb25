"""Per-hop timetables built from elementary connections."""
import bisect
from typing import Iterable, Iterator, Optional

from .exceptions import GraphBuildError
from .other import logger


class HopTimetable:
    """
    Sorted mapping from departure time to travel time for one pattern hop.

    Departure times are points on the schedule timeline. A connection added
    with a departure time that is already present replaces the previous one.
    """

    def __init__(self):
        self._connections = {}
        self._departure_times = None

    def add(self, departure: int, travel_time: int) -> bool:
        """Adds an elementary connection, returns True if it replaced an existing one."""
        overwritten = departure in self._connections
        self._connections[departure] = travel_time
        if not overwritten:
            self._departure_times = None
        return overwritten

    @property
    def departure_times(self) -> list[int]:
        """Ascending departure times."""
        if self._departure_times is None:
            self._departure_times = sorted(self._connections)
        return self._departure_times

    @property
    def sorted_schedules(self) -> list[tuple[int, int]]:
        """(departure, travel_time) pairs sorted by departure."""
        return [(departure, self._connections[departure]) for departure in self.departure_times]

    def get(self, departure: int, default=None):
        return self._connections.get(departure, default)

    def next_departure(self, time: int) -> Optional[tuple[int, int]]:
        """
        Finds the first connection departing at or after ``time``.

        Returns
        -------
        tuple or None
            (departure, travel_time) or None if nothing departs later.
        """
        departure_times = self.departure_times
        idx = bisect.bisect_left(departure_times, time)
        if idx < len(departure_times):
            departure = departure_times[idx]
            return departure, self._connections[departure]
        return None

    def __len__(self):
        return len(self._connections)

    def __iter__(self):
        return iter(self.sorted_schedules)

    def __repr__(self):
        return f"HopTimetable({len(self)} connections)"


class ConnectionCounter:
    """Counts elementary connections of a build and reports progress."""

    def __init__(self, progress_every: int = 1_000_000):
        self.progress_every = progress_every
        self.count = 0
        self.overwritten = 0

    def increment(self, overwritten: bool = False):
        self.count += 1
        if overwritten:
            self.overwritten += 1
        if self.progress_every and self.count % self.progress_every == 0:
            logger.info(f"Elementary connection {self.count}")


class TimetableBuilder:
    """
    Accumulates elementary connections into one timetable per hop of a pattern.

    Parameters
    ----------
    n_hops : int
        Number of consecutive stop pairs in the pattern.
    counter : ConnectionCounter, optional
        Counter shared by all builders of one graph build.
    """

    def __init__(self, n_hops: int, counter: Optional[ConnectionCounter] = None):
        self.timetables = [HopTimetable() for _ in range(n_hops)]
        self.counter = counter if counter is not None else ConnectionCounter()

    def insert(self, stop_times, shift: int):
        """
        Adds one traversal of the pattern, shifted by ``shift`` seconds on the timeline.

        Hop ``y`` gets departure ``departure(y) + shift`` and travel time
        ``arrival(y + 1) - departure(y)``.
        """
        if len(stop_times) != len(self.timetables) + 1:
            raise GraphBuildError(
                f"Got {len(stop_times)} stop times for a pattern with {len(self.timetables)} hops"
            )
        for timetable, prev, stop_time in zip(self.timetables, stop_times, stop_times[1:]):
            travel_time = stop_time.arrival_time - prev.departure_time
            overwritten = timetable.add(prev.departure_time + shift, travel_time)
            self.counter.increment(overwritten)

    def add_trip(self, stop_times, events: Iterable):
        """Inserts every shift of every departure event of a trip."""
        for event in events:
            for shift in event.shifts:
                self.insert(stop_times, shift)

    def hops(self) -> Iterator[tuple[int, HopTimetable]]:
        """Yields (hop index, timetable) pairs in pattern order."""
        return enumerate(self.timetables)
