"""Service for detecting scheduling conflicts between room occupancies."""

from __future__ import annotations

from typing import Iterable

from studio_scheduler.domain.models import Booking, Occupancy, RoomLockout
from studio_scheduler.services.intervals import overlaps, ranges_intersect


def find_conflicts(
    candidate: Occupancy,
    existing: Iterable[Occupancy],
) -> list[Occupancy]:
    """Return existing occupancies that clash with the candidate.

    A clash needs the same room, a different source, intersecting day ranges
    and, when both sides carry a time window, overlapping windows. A side
    without a window blocks its whole days.
    """
    conflicts = []
    for other in existing:
        if other.room_id != candidate.room_id:
            continue
        if other.source_id == candidate.source_id:
            continue
        if not ranges_intersect(
            other.first_day, other.last_day, candidate.first_day, candidate.last_day
        ):
            continue
        if candidate.window is not None and other.window is not None:
            if not overlaps(candidate.window, other.window):
                continue
        conflicts.append(other)
    return conflicts


def active_bookings(bookings: Iterable[Booking]) -> list[Booking]:
    """Drop cancelled and completed bookings; they never block a room."""
    return [b for b in bookings if b.is_active]


def booking_conflicts(candidate: Occupancy, bookings: Iterable[Booking]) -> list[Booking]:
    """Active bookings that clash with the candidate, in input order."""
    by_id = {b.id: b for b in active_bookings(bookings)}
    hits = find_conflicts(candidate, (b.as_occupancy() for b in by_id.values()))
    return [by_id[o.source_id] for o in hits]


def lockout_conflicts(candidate: Occupancy, lockouts: Iterable[RoomLockout]) -> list[RoomLockout]:
    """Lockouts that cover any day of the candidate."""
    by_id = {lo.id: lo for lo in lockouts}
    hits = find_conflicts(candidate, (lo.as_occupancy() for lo in by_id.values()))
    return [by_id[o.source_id] for o in hits]
