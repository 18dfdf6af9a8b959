"""Service for room lockouts and the room status derived from them.

A room's status is never set directly: it is recomputed from the room's
current lockouts every time they change, via ``apply_room_status``.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Iterable

from studio_scheduler.domain.bus import EventBus, publish
from studio_scheduler.domain.errors import ConflictError, InvalidInputError, NotFoundError
from studio_scheduler.domain.events import LockoutCreated, LockoutRemoved
from studio_scheduler.domain.models import (
    ActivityEntry,
    ActivityType,
    Room,
    RoomLockout,
    RoomStatus,
)
from studio_scheduler.repos.memory import SchedulingStore
from studio_scheduler.services.conflicts import booking_conflicts
from studio_scheduler.services.intervals import ranges_intersect

logger = logging.getLogger(__name__)


def compute_room_status(lockouts: Iterable[RoomLockout], today: date) -> RoomStatus:
    """LOCKED when any lockout covers *today*, otherwise AVAILABLE."""
    if any(lo.covers(today) for lo in lockouts):
        return RoomStatus.LOCKED
    return RoomStatus.AVAILABLE


def apply_room_status(store: SchedulingStore, room: Room, today: date) -> RoomStatus:
    """Recompute *room*'s status from its stored lockouts and write it back."""
    status = compute_room_status(store.lockouts.list_for_room(room.id), today)
    if status != room.status:
        logger.info("room %s status %s -> %s", room.name, room.status, status)
        store.activity.add(
            ActivityEntry(
                subject_id=room.id,
                type=ActivityType.ROOM_STATUS_CHANGED,
                payload={"from": room.status.value, "to": status.value},
            )
        )
        room.status = status
    return status


def create_lockout(
    store: SchedulingStore,
    room_id: str,
    start_date: date,
    end_date: date,
    reason: str | None = None,
    created_by: str | None = None,
    *,
    bus: EventBus | None = None,
    today: date | None = None,
) -> RoomLockout:
    """Black out *room_id* for every day in ``[start_date, end_date]``.

    Any active booking dated inside the range blocks the lockout, whatever
    its hours; the blocking bookings are carried on the ``ConflictError`` so
    staff can resolve them by hand.
    """
    if start_date > end_date:
        raise InvalidInputError("start_date must not be after end_date")
    today = today or date.today()

    with store.transaction():
        room = store.rooms.get(room_id)
        if room is None:
            raise NotFoundError("Room", room_id)

        lockout = RoomLockout(
            room_id=room_id,
            start_date=start_date,
            end_date=end_date,
            reason=reason,
            created_by=created_by,
        )
        conflicts = booking_conflicts(
            lockout.as_occupancy(), store.bookings.list_for_room(room_id)
        )
        if conflicts:
            logger.info(
                "lockout on %s for %s..%s blocked by %d booking(s)",
                room.name,
                start_date,
                end_date,
                len(conflicts),
            )
            raise ConflictError(
                "Cannot lock room: existing bookings in the selected date range",
                conflicts=conflicts,
            )

        store.lockouts.add(lockout)
        apply_room_status(store, room, today)
        publish(bus, LockoutCreated(lockout_id=lockout.id, room_id=room_id))

    return lockout


def list_lockouts(
    store: SchedulingStore,
    room_id: str,
    start_date: date | None = None,
    end_date: date | None = None,
) -> list[RoomLockout]:
    """Lockouts for a room ordered by start date.

    The range filter only applies when both bounds are given.
    """
    if start_date is not None and end_date is not None and start_date > end_date:
        raise InvalidInputError("start_date must not be after end_date")
    with store.read():
        if store.rooms.get(room_id) is None:
            raise NotFoundError("Room", room_id)
        lockouts = store.lockouts.list_for_room(room_id)
    if start_date is None or end_date is None:
        return lockouts
    return [
        lo
        for lo in lockouts
        if ranges_intersect(lo.start_date, lo.end_date, start_date, end_date)
    ]


def remove_lockout(
    store: SchedulingStore,
    lockout_id: str,
    room_id: str,
    *,
    bus: EventBus | None = None,
    today: date | None = None,
) -> None:
    """Delete a lockout and re-derive the room's status from what remains."""
    today = today or date.today()

    with store.transaction():
        room = store.rooms.get(room_id)
        if room is None:
            raise NotFoundError("Room", room_id)
        lockout = store.lockouts.get(lockout_id)
        if lockout is None or lockout.room_id != room_id:
            raise NotFoundError("Lockout", lockout_id)

        store.lockouts.delete(lockout_id)
        apply_room_status(store, room, today)
        publish(bus, LockoutRemoved(lockout_id=lockout_id, room_id=room_id))


def refresh_room_statuses(store: SchedulingStore, today: date | None = None) -> list[Room]:
    """Recompute every room's status, e.g. after the date has rolled over."""
    today = today or date.today()
    with store.transaction():
        rooms = store.rooms.list_all()
        for room in rooms:
            apply_room_status(store, room, today)
    return rooms
