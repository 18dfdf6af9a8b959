"""Service for moving an existing booking into another room."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from studio_scheduler.config import settings
from studio_scheduler.domain.bus import EventBus, publish
from studio_scheduler.domain.errors import ConflictError, NotFoundError
from studio_scheduler.domain.events import RoomSwapped
from studio_scheduler.domain.models import Booking
from studio_scheduler.repos.memory import SchedulingStore
from studio_scheduler.services.conflicts import booking_conflicts, lockout_conflicts
from studio_scheduler.services.intervals import hours_between

logger = logging.getLogger(__name__)


@dataclass
class SwapResult:
    booking: Booking
    price_difference: float
    disclaimer: str


def swap_room(
    store: SchedulingStore,
    booking_id: str,
    new_room_id: str,
    *,
    bus: EventBus | None = None,
    now: datetime | None = None,
) -> SwapResult:
    """Reassign a booking to *new_room_id* and price the change.

    Fails with ``ConflictError`` when another active booking overlaps the
    slot in the target room, or a lockout covers the booking's date. The
    price difference is the rate delta times the booked whole hours; a
    booking without a known current room is priced from a rate of 0.
    """
    now = now or datetime.now(timezone.utc)

    with store.transaction():
        booking = store.bookings.get(booking_id)
        if booking is None:
            raise NotFoundError("Booking", booking_id)
        new_room = store.rooms.get(new_room_id)
        if new_room is None:
            raise NotFoundError("Room", new_room_id)

        candidate = booking.as_occupancy(room_id=new_room.id)

        clashing = booking_conflicts(candidate, store.bookings.list_for_room(new_room.id))
        if clashing:
            logger.info(
                "swap of booking %s to %s blocked by %d booking(s)",
                booking.id,
                new_room.name,
                len(clashing),
            )
            raise ConflictError(
                "Room is not available for the selected time slot", conflicts=clashing
            )

        locked = lockout_conflicts(candidate, store.lockouts.list_for_room(new_room.id))
        if locked:
            logger.info("swap of booking %s blocked: %s locked on %s", booking.id, new_room.name, booking.date)
            raise ConflictError("Room is locked for the selected date", conflicts=locked)

        current_room = store.rooms.get(booking.room_id) if booking.room_id else None
        if current_room is None:
            logger.warning(
                "booking %s has no current room; pricing swap from a rate of 0", booking.id
            )
            current_rate = 0.0
        else:
            current_rate = current_room.base_rate

        hours = hours_between(booking.start_time, booking.end_time)
        price_difference = (new_room.base_rate - current_rate) * hours

        previous_room_id = booking.room_id
        booking.original_room_id = booking.original_room_id or previous_room_id
        booking.room_id = new_room.id
        booking.room_rate = new_room.base_rate
        booking.room_swapped_at = now

        publish(
            bus,
            RoomSwapped(
                booking_id=booking.id,
                from_room_id=previous_room_id,
                to_room_id=new_room.id,
                price_difference=price_difference,
                swapped_at=now,
            ),
        )
        logger.info(
            "booking %s swapped to %s (price difference %.2f)",
            booking.id,
            new_room.name,
            price_difference,
        )

    return SwapResult(
        booking=booking,
        price_difference=price_difference,
        disclaimer=settings.swap_disclaimer,
    )
