# ruff: noqa: F401
"""
NxTimetable is a Python package for building time-expanded graphs of public transportation systems.
It uses General Transit Feed Specification (GTFS) data to construct a NetworkX graph with sorted timetables on its edges.

Key Features:
- Schedule Expansion: trips are expanded over every service day of the feed validity window, including calendar exceptions and frequency-based service.
- Single Timeline: all departures are placed on one integer axis of seconds since midnight of the first day of the schedule.
- Time-Expanded Graph: one node per stop, hop edges with sorted (departure, travel time) timetables, transfer edges and a self-loop per stop.
"""
__version__ = "0.1.0"

from .loaders import feed_to_graph
from .loaders import build_graph
from .loaders import BuildStats

from .feed import load_feed
from .feed import Feed
from .feed import Service

from .expander import expand_departures
from .expander import service_days

from .timetable import HopTimetable
from .timetable import TimetableBuilder
from .timetable import ConnectionCounter

from .storage import GraphStore

from .functions import validate_feed
from .functions import geodesic_distance
from .functions import graph_to_gdfs

from .converters import schedule_time
from .converters import split_schedule_time
from .converters import parse_seconds_to_time
from .converters import parse_time_to_seconds

from .exceptions import FeedError
from .exceptions import FirstAndLastStopsDoNotHaveTimes
from .exceptions import GraphBuildError
