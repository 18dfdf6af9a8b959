"""Tests for utilization and engineer-hours reporting."""

from __future__ import annotations

from datetime import date, datetime, time, timezone

import pytest

from studio_scheduler.domain.bus import EventBus
from studio_scheduler.domain.handlers import HandlerRegistry
from studio_scheduler.domain.models import (
    ActivityType,
    Booking,
    BookingStatus,
    ReportPeriod,
    ReportType,
    Room,
)
from studio_scheduler.repos.memory import SchedulingStore
from studio_scheduler.services.utilization import (
    booking_summary,
    engineer_hours,
    generate_report,
    report_period,
    room_utilization,
)

_NOW = datetime(2024, 3, 20, 23, 0, tzinfo=timezone.utc)


def _make_booking(room: Room, day: date, start: int, end: int, **overrides) -> Booking:
    defaults = dict(
        room_id=room.id,
        date=day,
        start_time=time(start, 0),
        end_time=time(end, 0),
        status=BookingStatus.CONFIRMED,
    )
    defaults.update(overrides)
    return Booking(**defaults)


@pytest.fixture()
def env():
    store = SchedulingStore()
    bus = EventBus()
    HandlerRegistry(bus=bus, store=store)
    studio_a = Room(name="Studio A", base_rate=150)
    studio_b = Room(name="Studio B", base_rate=100)
    store.rooms.add(studio_a)
    store.rooms.add(studio_b)
    day = date(2024, 3, 20)
    for booking in (
        _make_booking(studio_a, day, 10, 14, engineer="Marcus Rivera"),
        _make_booking(studio_a, day, 15, 18, engineer="Marcus Rivera", status=BookingStatus.COMPLETED),
        _make_booking(studio_a, day, 18, 20, engineer="Sarah Chen", status=BookingStatus.CANCELLED),
        _make_booking(studio_b, day, 12, 14, engineer="No preference"),
        _make_booking(studio_b, date(2024, 3, 18), 9, 15, engineer="Sarah Chen"),
        _make_booking(studio_b, date(2024, 4, 2), 9, 10, engineer="Sarah Chen"),
    ):
        store.bookings.add(booking)

    class Env:
        pass

    e = Env()
    e.store = store
    e.bus = bus
    e.studio_a = studio_a
    e.studio_b = studio_b
    return e


# ---------------------------------------------------------------------------
# report_period
# ---------------------------------------------------------------------------


def test_daily_period():
    assert report_period(ReportType.END_OF_DAY, date(2024, 3, 20)) == (
        date(2024, 3, 20),
        date(2024, 3, 20),
        ReportPeriod.DAILY,
    )


def test_weekly_period_runs_monday_to_sunday():
    # 2024-03-20 is a Wednesday.
    first, last, period = report_period(ReportType.WEEKLY_SESSION_LOG, date(2024, 3, 20))
    assert (first, last, period) == (date(2024, 3, 18), date(2024, 3, 24), ReportPeriod.WEEKLY)
    # A Monday is its own week start, a Sunday its own week end.
    assert report_period(ReportType.WEEKLY_SESSION_LOG, date(2024, 3, 18))[0] == date(2024, 3, 18)
    assert report_period(ReportType.WEEKLY_SESSION_LOG, date(2024, 3, 24))[0] == date(2024, 3, 18)


def test_monthly_period():
    first, last, period = report_period(ReportType.MONTHLY_SUMMARY, date(2024, 2, 14))
    assert (first, last, period) == (date(2024, 2, 1), date(2024, 2, 29), ReportPeriod.MONTHLY)


# ---------------------------------------------------------------------------
# Aggregates
# ---------------------------------------------------------------------------


def test_room_utilization_for_a_day(env):
    day = date(2024, 3, 20)
    result = room_utilization(
        env.store.rooms.list_all(), env.store.bookings.list_all(), day, day, hours_per_day=12
    )
    by_room = {u.room: u for u in result}

    # 4h confirmed + 3h completed; the cancelled 2h is ignored.
    assert by_room["Studio A"].total_hours == 7
    assert by_room["Studio A"].available_hours == 12
    assert by_room["Studio A"].utilization_rate == pytest.approx(7 / 12 * 100)
    assert by_room["Studio B"].total_hours == 2


def test_room_utilization_for_a_week(env):
    result = room_utilization(
        env.store.rooms.list_all(),
        env.store.bookings.list_all(),
        date(2024, 3, 18),
        date(2024, 3, 24),
        hours_per_day=12,
    )
    by_room = {u.room: u for u in result}
    assert by_room["Studio B"].total_hours == 8
    assert by_room["Studio B"].available_hours == 84


def test_room_utilization_zero_available_hours(env):
    result = room_utilization(
        env.store.rooms.list_all(), [], date(2024, 3, 20), date(2024, 3, 20), hours_per_day=0
    )
    assert all(u.utilization_rate == 0 for u in result)


def test_engineer_hours_groups_by_name(env):
    bookings = env.store.bookings.list_between(date(2024, 3, 18), date(2024, 3, 24))
    result = {e.name: e for e in engineer_hours(bookings)}

    assert set(result) == {"Marcus Rivera", "Sarah Chen"}
    assert (result["Marcus Rivera"].hours, result["Marcus Rivera"].sessions) == (7, 2)
    # Cancelled session excluded.
    assert (result["Sarah Chen"].hours, result["Sarah Chen"].sessions) == (6, 1)


def test_engineer_name_variants_are_not_merged():
    room = Room(name="Studio C", base_rate=125)
    day = date(2024, 3, 20)
    bookings = [
        _make_booking(room, day, 10, 12, engineer="Marcus"),
        _make_booking(room, day, 13, 14, engineer="Marcus R."),
    ]
    assert [e.name for e in engineer_hours(bookings)] == ["Marcus", "Marcus R."]


def test_booking_summary_counts_statuses(env):
    summary = booking_summary(env.store.bookings.list_all())
    assert summary.total_bookings == 6
    assert summary.confirmed_bookings == 4
    assert summary.completed_bookings == 1
    assert summary.cancelled_bookings == 1


# ---------------------------------------------------------------------------
# generate_report
# ---------------------------------------------------------------------------


def test_generate_weekly_report(env):
    report = generate_report(
        env.store, ReportType.WEEKLY_SESSION_LOG, date(2024, 3, 20), "manager-1", bus=env.bus, now=_NOW
    )

    assert report.period == ReportPeriod.WEEKLY
    assert (report.start_date, report.end_date) == (date(2024, 3, 18), date(2024, 3, 24))
    assert report.data.summary.total_bookings == 5
    assert [b.date for b in report.data.bookings] == sorted(b.date for b in report.data.bookings)
    assert {b.studio for b in report.data.bookings} == {"STUDIO_A", "STUDIO_B"}
    assert env.store.reports.get(report.id) is report
    assert [e.type for e in env.store.activity.list_for_subject(report.id)] == [
        ActivityType.REPORT_GENERATED
    ]


def test_report_is_repeatable(env):
    first = generate_report(env.store, ReportType.MONTHLY_SUMMARY, date(2024, 3, 1), now=_NOW)
    second = generate_report(env.store, ReportType.MONTHLY_SUMMARY, date(2024, 3, 1), now=_NOW)

    assert first.data == second.data
    assert len(env.store.reports.list_all()) == 2
