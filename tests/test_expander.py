import datetime

from nxtimetable.expander import expand_departures, frequency_shifts, service_days
from nxtimetable.feed import CalendarEntry, Frequency, Service

MONDAY = datetime.date(2024, 1, 1)
SUNDAY = datetime.date(2024, 1, 7)
WEEKDAYS = (True, True, True, True, True, False, False)


def test_service_days_weekdays_only():
    service = Service("WEEK", CalendarEntry(MONDAY, SUNDAY, WEEKDAYS))

    days = list(service_days(service, MONDAY, SUNDAY))

    assert [day for day, _ in days] == [0, 1, 2, 3, 4]
    assert days[0][1] == MONDAY


def test_service_days_calendar_exceptions():
    service = Service(
        "WEEK",
        CalendarEntry(MONDAY, SUNDAY, WEEKDAYS),
        added=[datetime.date(2024, 1, 6)],
        removed=[datetime.date(2024, 1, 3)],
    )

    days = [day for day, _ in service_days(service, MONDAY, SUNDAY)]

    assert days == [0, 1, 3, 4, 5]


def test_service_days_outside_calendar_range():
    service = Service("WEEK", CalendarEntry(datetime.date(2024, 1, 3), SUNDAY, WEEKDAYS))

    days = [day for day, _ in service_days(service, MONDAY, SUNDAY)]

    # Day ordinals stay relative to the window start
    assert days == [2, 3, 4]


def test_scheduled_trip_single_event_per_day():
    service = Service("ONCE", added=[datetime.date(2024, 1, 2)])

    events = list(expand_departures(service, [], MONDAY, SUNDAY))

    assert len(events) == 1
    assert events[0].day == 1
    assert events[0].day_offset == 86400
    assert events[0].shifts == (86400,)


def test_frequency_window_shifts():
    service = Service("ONCE", added=[MONDAY])

    events = list(expand_departures(service, [Frequency(0, 3600, 600)], MONDAY, SUNDAY))

    assert len(events) == 1
    assert events[0].shifts == (0, 600, 1200, 1800, 2400, 3000)


def test_frequency_shifts_are_relative_to_window_start():
    service = Service("ONCE", added=[datetime.date(2024, 1, 3)])

    events = list(expand_departures(service, [Frequency(21600, 23400, 900)], MONDAY, SUNDAY))

    assert events[0].shifts == (2 * 86400, 2 * 86400 + 900)


def test_multiple_frequency_windows_in_order():
    shifts = frequency_shifts([Frequency(0, 1200, 600), Frequency(3600, 4200, 300)])

    assert shifts == [0, 600, 0, 300]


def test_empty_and_invalid_windows_yield_nothing():
    frequencies = [
        Frequency(3600, 3600, 600),
        Frequency(7200, 3600, 600),
        Frequency(0, 3600, 0),
        Frequency(0, 3600, -60),
    ]
    service = Service("ONCE", added=[MONDAY])

    events = list(expand_departures(service, frequencies, MONDAY, SUNDAY))

    assert frequency_shifts(frequencies) == []
    # The service day is still reported, with no departures
    assert len(events) == 1
    assert events[0].shifts == ()


def test_inactive_service_yields_no_events():
    service = Service("NEVER")

    assert list(expand_departures(service, [], MONDAY, SUNDAY)) == []


def test_expansion_is_lazy():
    service = Service("WEEK", CalendarEntry(MONDAY, SUNDAY, WEEKDAYS))

    events = expand_departures(service, [], MONDAY, datetime.date(2100, 1, 1))

    assert next(events).day == 0
    assert next(events).day == 1
