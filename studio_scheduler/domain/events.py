"""Domain events emitted by the scheduling services."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class RoomSwapped(BaseModel):
    """Fired after a booking has been reassigned to another room."""

    booking_id: str
    from_room_id: str | None = None
    to_room_id: str
    price_difference: float
    swapped_at: datetime


class LockoutCreated(BaseModel):
    """Fired when a lockout is persisted for a room."""

    lockout_id: str
    room_id: str


class LockoutRemoved(BaseModel):
    """Fired after a lockout has been deleted."""

    lockout_id: str
    room_id: str


class SessionExtended(BaseModel):
    """Fired when a booking's end time has been pushed back."""

    booking_id: str
    extension_id: str
    additional_hours: int


class ReportGenerated(BaseModel):
    """Fired when a report has been built and stored."""

    report_id: str
    report_type: str
