"""Tests for extending a session."""

from __future__ import annotations

from datetime import date, datetime, time, timezone

import pytest

from studio_scheduler.domain.bus import EventBus
from studio_scheduler.domain.errors import ConflictError, InvalidInputError, NotFoundError
from studio_scheduler.domain.handlers import HandlerRegistry
from studio_scheduler.domain.models import ActivityType, Booking, BookingStatus, Room
from studio_scheduler.repos.memory import SchedulingStore
from studio_scheduler.services.extensions import extend_session

_DAY = date(2024, 5, 3)
_NOW = datetime(2024, 5, 3, 17, 0, tzinfo=timezone.utc)


@pytest.fixture()
def store():
    return SchedulingStore()


@pytest.fixture()
def room(store):
    room = Room(name="Studio A", base_rate=150)
    store.rooms.add(room)
    return room


def _make_booking(room: Room | None, start: int, end: int, **overrides) -> Booking:
    defaults = dict(
        room_id=room.id if room else None,
        date=_DAY,
        start_time=time(start, 0),
        end_time=time(end, 0),
        status=BookingStatus.IN_PROGRESS,
    )
    defaults.update(overrides)
    return Booking(**defaults)


def test_extend_moves_end_time(store, room):
    booking = _make_booking(room, 14, 18)
    store.bookings.add(booking)

    result = extend_session(store, booking.id, 2, now=_NOW)

    assert result.booking.end_time == time(20, 0)
    assert result.extension.original_end_time == time(18, 0)
    assert result.extension.new_end_time == time(20, 0)
    assert result.message == "Session extended by 2 hour(s)"
    assert store.extensions.list_for_booking(booking.id) == [result.extension]


def test_extend_keeps_minutes(store, room):
    booking = _make_booking(room, 14, 18, end_time=time(18, 30))
    store.bookings.add(booking)

    result = extend_session(store, booking.id, 1, now=_NOW)

    assert result.booking.end_time == time(19, 30)


def test_extend_blocked_by_next_session(store, room):
    booking = _make_booking(room, 14, 18)
    following = _make_booking(room, 19, 21, status=BookingStatus.CONFIRMED)
    store.bookings.add(booking)
    store.bookings.add(following)

    with pytest.raises(ConflictError) as exc_info:
        extend_session(store, booking.id, 2, now=_NOW)

    assert exc_info.value.conflicts == [following]
    assert store.bookings.get(booking.id).end_time == time(18, 0)
    assert store.extensions.list_for_booking(booking.id) == []


def test_extend_up_to_next_session_is_allowed(store, room):
    booking = _make_booking(room, 14, 18)
    store.bookings.add(booking)
    store.bookings.add(_make_booking(room, 19, 21, status=BookingStatus.CONFIRMED))

    result = extend_session(store, booking.id, 1, now=_NOW)

    assert result.booking.end_time == time(19, 0)


def test_cancelled_neighbour_does_not_block(store, room):
    booking = _make_booking(room, 14, 18)
    store.bookings.add(booking)
    store.bookings.add(_make_booking(room, 18, 20, status=BookingStatus.CANCELLED))

    extend_session(store, booking.id, 2, now=_NOW)


def test_extend_rejects_bad_requests(store, room):
    booking = _make_booking(room, 20, 22)
    done = _make_booking(room, 10, 12, status=BookingStatus.COMPLETED)
    store.bookings.add(booking)
    store.bookings.add(done)

    with pytest.raises(InvalidInputError):
        extend_session(store, booking.id, 0)
    with pytest.raises(InvalidInputError):
        extend_session(store, booking.id, 2)  # would pass midnight
    with pytest.raises(InvalidInputError):
        extend_session(store, done.id, 1)
    with pytest.raises(NotFoundError):
        extend_session(store, "missing", 1)


def test_extend_without_room_skips_conflict_check(store):
    booking = _make_booking(None, 14, 18)
    store.bookings.add(booking)

    result = extend_session(store, booking.id, 1, now=_NOW)

    assert result.booking.end_time == time(19, 0)


def test_extend_records_activity(store, room):
    bus = EventBus()
    HandlerRegistry(bus=bus, store=store)
    booking = _make_booking(room, 14, 18)
    store.bookings.add(booking)

    extend_session(store, booking.id, 1, bus=bus, now=_NOW)

    entries = store.activity.list_for_subject(booking.id)
    assert [e.type for e in entries] == [ActivityType.SESSION_EXTENDED]
    assert entries[0].payload["additional_hours"] == 1
