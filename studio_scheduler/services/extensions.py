"""Service for extending a session past its booked end time."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from studio_scheduler.domain.bus import EventBus, publish
from studio_scheduler.domain.errors import ConflictError, InvalidInputError, NotFoundError
from studio_scheduler.domain.events import SessionExtended
from studio_scheduler.domain.models import (
    Booking,
    BookingStatus,
    Occupancy,
    OccupancyKind,
    SessionExtension,
    TimeInterval,
)
from studio_scheduler.repos.memory import SchedulingStore
from studio_scheduler.services.conflicts import booking_conflicts

logger = logging.getLogger(__name__)


@dataclass
class ExtensionResult:
    booking: Booking
    extension: SessionExtension
    message: str


def extend_session(
    store: SchedulingStore,
    booking_id: str,
    additional_hours: int,
    *,
    bus: EventBus | None = None,
    now: datetime | None = None,
) -> ExtensionResult:
    """Push a booking's end time back by whole hours if the room is free."""
    if additional_hours < 1:
        raise InvalidInputError("Additional hours must be at least 1")
    now = now or datetime.now(timezone.utc)

    with store.transaction():
        booking = store.bookings.get(booking_id)
        if booking is None:
            raise NotFoundError("Booking", booking_id)
        if booking.status in (BookingStatus.COMPLETED, BookingStatus.CANCELLED):
            raise InvalidInputError("Cannot extend a completed or cancelled booking")

        new_end_hour = booking.end_time.hour + additional_hours
        if new_end_hour > 23:
            raise InvalidInputError("Extended session would run past midnight")
        new_end = booking.end_time.replace(hour=new_end_hour)

        if booking.room_id:
            # Only the added hours need checking; the booked slot is already held.
            candidate = Occupancy(
                source_id=booking.id,
                kind=OccupancyKind.BOOKING,
                room_id=booking.room_id,
                first_day=booking.date,
                last_day=booking.date,
                window=TimeInterval(date=booking.date, start=booking.end_time, end=new_end),
            )
            clashing = booking_conflicts(candidate, store.bookings.list_for_room(booking.room_id))
            if clashing:
                raise ConflictError(
                    "Room is not available for the extended time", conflicts=clashing
                )

        extension = SessionExtension(
            booking_id=booking.id,
            original_end_time=booking.end_time,
            new_end_time=new_end,
            additional_hours=additional_hours,
            created_at=now,
        )
        store.extensions.add(extension)
        booking.end_time = new_end
        publish(
            bus,
            SessionExtended(
                booking_id=booking.id,
                extension_id=extension.id,
                additional_hours=additional_hours,
            ),
        )
        logger.info("booking %s extended by %d hour(s) to %s", booking.id, additional_hours, new_end)

    return ExtensionResult(
        booking=booking,
        extension=extension,
        message=f"Session extended by {additional_hours} hour(s)",
    )
