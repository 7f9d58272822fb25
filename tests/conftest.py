import os

import pandas as pd
import pytest

from nxtimetable.feed import Feed

# Monday 2024-01-01 .. Sunday 2024-01-07
STOPS = pd.DataFrame(
    {
        "stop_id": ["A", "B", "C", "D", "E"],
        "stop_name": ["Alpha", "Bravo", "Charlie", "Delta", "Echo"],
        "stop_lat": ["55.00", "55.01", "55.02", "55.03", "55.04"],
        "stop_lon": ["37.0", "37.0", "37.0", "37.0", "37.0"],
    }
)

ROUTES = pd.DataFrame(
    {
        "route_id": ["R1", "R2"],
        "route_short_name": ["1", "2"],
        "route_type": ["3", "3"],
    }
)

TRIPS = pd.DataFrame(
    {
        "route_id": ["R1", "R1", "R2"],
        "service_id": ["WEEK", "WEEK", "ONCE"],
        "trip_id": ["T1", "T2", "F1"],
    }
)

STOP_TIMES = pd.DataFrame(
    {
        "trip_id": ["T1", "T1", "T1", "T2", "T2", "T2", "F1", "F1"],
        "arrival_time": ["08:00:00", "08:05:00", "08:10:00", "09:00:00", "09:05:00", "09:10:00", "06:00:00", "06:10:00"],
        "departure_time": ["08:00:00", "08:06:00", "08:10:00", "09:00:00", "09:06:00", "09:10:00", "06:00:00", "06:10:00"],
        "stop_id": ["A", "B", "C", "A", "B", "C", "C", "D"],
        "stop_sequence": ["1", "2", "3", "1", "2", "3", "1", "2"],
    }
)

CALENDAR = pd.DataFrame(
    {
        "service_id": ["WEEK"],
        "monday": ["1"],
        "tuesday": ["1"],
        "wednesday": ["1"],
        "thursday": ["1"],
        "friday": ["1"],
        "saturday": ["0"],
        "sunday": ["0"],
        "start_date": ["20240101"],
        "end_date": ["20240107"],
    }
)

CALENDAR_DATES = pd.DataFrame(
    {
        "service_id": ["ONCE"],
        "date": ["20240102"],
        "exception_type": ["1"],
    }
)

FREQUENCIES = pd.DataFrame(
    {
        "trip_id": ["F1"],
        "start_time": ["06:00:00"],
        "end_time": ["07:00:00"],
        "headway_secs": ["600"],
    }
)

TRANSFERS = pd.DataFrame(
    {
        "from_stop_id": ["B", "A", "A"],
        "to_stop_id": ["C", "A", "B"],
        "transfer_type": ["2", "2", "0"],
        "min_transfer_time": ["120", "60", ""],
    }
)


def feed_tables(**overrides) -> dict:
    """Tables of the test feed, any of them can be replaced or dropped with None."""
    tables = {
        "stops": STOPS,
        "routes": ROUTES,
        "trips": TRIPS,
        "stop_times": STOP_TIMES,
        "calendar": CALENDAR,
        "calendar_dates": CALENDAR_DATES,
        "frequencies": FREQUENCIES,
        "transfers": TRANSFERS,
    }
    tables.update(overrides)
    return {name: table.copy() for name, table in tables.items() if table is not None}


def make_feed(**overrides) -> Feed:
    return Feed(**feed_tables(**overrides))


def write_feed(path, **overrides) -> str:
    for name, table in feed_tables(**overrides).items():
        table.to_csv(os.path.join(path, f"{name}.txt"), index=False)
    return str(path)


@pytest.fixture
def feed():
    return make_feed()


@pytest.fixture
def gtfs_dir(tmp_path):
    return write_feed(tmp_path)
