"""Conversions between GTFS time strings, dates and the schedule timeline."""
import datetime

SECONDS_PER_DAY = 86400


def schedule_time(day: int, seconds: int) -> int:
    """
    Encodes a service day and a time of day as a point on the schedule timeline.

    The timeline is a single integer axis in seconds, with 0 at midnight of
    the first day of the schedule validity window.

    Parameters
    ----------
    day : int
        Service day ordinal, 0-based from the start of the validity window.
    seconds : int
        Seconds since midnight of that day. May exceed 86400 for trips
        running past midnight.

    Returns
    -------
    int
        ``day * 86400 + seconds``
    """
    return day * SECONDS_PER_DAY + seconds


def split_schedule_time(value: int) -> tuple[int, int]:
    """Splits a schedule timeline value back into (day, seconds since midnight)."""
    return divmod(value, SECONDS_PER_DAY)


def parse_time_to_seconds(time_str: str) -> int:
    """Converts a time string to the number of seconds since midnight.
    """
    if not isinstance(time_str, str):
        raise ValueError(f"Invalid time format or value: input must be a string, got {time_str!r}")

    parts = time_str.strip().split(':')
    if len(parts) != 3:
        raise ValueError(f"Invalid time format or value: {time_str!r} is not in 'HH:MM:SS' format")

    try:
        h, m, s = map(int, parts)
    except ValueError as e:
        raise ValueError(f"Invalid time format or value: {e}") from e

    # Hours are not capped, trips may run past midnight for more than a day
    if not (h >= 0 and 0 <= m < 60 and 0 <= s < 60):
        raise ValueError(
            f"Invalid time format or value: {time_str!r}, "
            "hours must be non-negative, minutes and seconds must be in 0-59"
        )

    return h * 3600 + m * 60 + s


def parse_seconds_to_time(seconds: int) -> str:
    """Converts the number of seconds since midnight to a time string.

    Hours are not wrapped, so 90000 becomes '25:00:00'.
    """
    minutes, s = divmod(int(seconds), 60)
    h, m = divmod(minutes, 60)
    return f"{h:02d}:{m:02d}:{s:02d}"


def parse_gtfs_date(date_str) -> datetime.date:
    """Parses a GTFS 'YYYYMMDD' date."""
    return datetime.datetime.strptime(str(date_str).strip(), "%Y%m%d").date()
