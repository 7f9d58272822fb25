"""Errors raised while reading a feed or building the graph."""


class FeedError(ValueError):
    """The GTFS feed cannot be used to build a graph."""


class FirstAndLastStopsDoNotHaveTimes(FeedError):
    """Stop times of a trip cannot be interpolated because a boundary stop has no time."""

    def __init__(self, trip_id):
        self.trip_id = trip_id
        super().__init__(
            f"First and last stops of trip {trip_id} must have departure and arrival times"
        )


class GraphBuildError(RuntimeError):
    """Fatal condition that aborts the whole graph build."""

    def __init__(self, message, trip_id=None, pattern_id=None):
        self.trip_id = trip_id
        self.pattern_id = pattern_id
        super().__init__(message)
