"""Expansion of trips over the service days of the schedule validity window."""
import datetime
from collections import namedtuple
from typing import Iterable, Iterator

from .converters import schedule_time

# One active service day of a trip and the timeline shifts
# to apply to the trip's base stop times on that day
DepartureEvent = namedtuple("DepartureEvent", ["day", "day_offset", "shifts"])


def service_days(
    service, start_date: datetime.date, end_date: datetime.date
) -> Iterator[tuple[int, datetime.date]]:
    """
    Yields every date of the validity window on which the service runs.

    Parameters
    ----------
    service : Service
        Object with an ``active_on(date)`` predicate.
    start_date, end_date : datetime.date
        Inclusive validity window.

    Yields
    ------
    tuple
        (day ordinal from ``start_date``, date)
    """
    day = 0
    date = start_date
    while date <= end_date:
        if service.active_on(date):
            yield day, date
        date += datetime.timedelta(days=1)
        day += 1


def frequency_shifts(frequencies: Iterable) -> list[int]:
    """
    Offsets of the virtual departures of a frequency-based trip within one day.

    Every window replicates the trip each ``headway`` seconds from
    ``start_time`` up to, but not including, ``end_time``. The offsets are
    relative to the window start, because the trip's own stop times
    already place its first run.
    Windows with a non-positive headway or an empty time range
    produce no departures.
    """
    shifts = []
    for frequency in frequencies:
        if frequency.headway <= 0 or frequency.end_time <= frequency.start_time:
            continue
        shifts.extend(
            time - frequency.start_time
            for time in range(frequency.start_time, frequency.end_time, frequency.headway)
        )
    return shifts


def expand_departures(
    service,
    frequencies: Iterable,
    start_date: datetime.date,
    end_date: datetime.date,
) -> Iterator[DepartureEvent]:
    """
    Lazily enumerates the departures of a trip over the validity window.

    Parameters
    ----------
    service : Service
        Calendar of the trip.
    frequencies : iterable of Frequency
        Headway windows of the trip, empty for a trip that runs once
        per service day as scheduled.
    start_date, end_date : datetime.date
        Inclusive validity window.

    Yields
    ------
    DepartureEvent
        One event per active service day. ``shifts`` holds the day offset
        alone for a scheduled trip, or one shift per virtual departure for
        a frequency-based trip (possibly none).
    """
    frequencies = list(frequencies)
    sub_offsets = frequency_shifts(frequencies) if frequencies else None

    for day, _ in service_days(service, start_date, end_date):
        day_offset = schedule_time(day, 0)
        if sub_offsets is None:
            shifts = (day_offset,)
        else:
            shifts = tuple(schedule_time(day, offset) for offset in sub_offsets)
        yield DepartureEvent(day, day_offset, shifts)
