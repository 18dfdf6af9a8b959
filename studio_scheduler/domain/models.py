"""Domain models for the studio scheduling system."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from enum import Enum

from pydantic import BaseModel, Field, field_validator, model_validator

try:
    from enum import StrEnum
except ImportError:  # pragma: no cover - fallback for older Python runtimes

    class StrEnum(str, Enum):
        pass


class BookingStatus(StrEnum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


# Only these statuses occupy a room for conflict purposes.
ACTIVE_STATUSES = frozenset(
    {BookingStatus.PENDING, BookingStatus.CONFIRMED, BookingStatus.IN_PROGRESS}
)


class RoomStatus(StrEnum):
    AVAILABLE = "AVAILABLE"
    LOCKED = "LOCKED"


class StudioKey(StrEnum):
    STUDIO_A = "STUDIO_A"
    STUDIO_B = "STUDIO_B"
    STUDIO_C = "STUDIO_C"


class ReportType(StrEnum):
    END_OF_DAY = "END_OF_DAY"
    WEEKLY_SESSION_LOG = "WEEKLY_SESSION_LOG"
    MONTHLY_SUMMARY = "MONTHLY_SUMMARY"


class ReportPeriod(StrEnum):
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"


class OccupancyKind(StrEnum):
    BOOKING = "booking"
    LOCKOUT = "lockout"


class ActivityType(StrEnum):
    ROOM_SWAPPED = "room_swapped"
    LOCKOUT_CREATED = "lockout_created"
    LOCKOUT_REMOVED = "lockout_removed"
    ROOM_STATUS_CHANGED = "room_status_changed"
    SESSION_EXTENDED = "session_extended"
    REPORT_GENERATED = "report_generated"


_STUDIO_KEYS_BY_NAME = {
    "studio a": StudioKey.STUDIO_A,
    "studio b": StudioKey.STUDIO_B,
    "studio c": StudioKey.STUDIO_C,
}


def studio_key_for(room_name: str) -> StudioKey:
    """Map a room's display name to its studio key.

    Unknown names fall into ``STUDIO_C``, the catch-all studio.
    """
    return _STUDIO_KEYS_BY_NAME.get(room_name.strip().lower(), StudioKey.STUDIO_C)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


# ---------------------------------------------------------------------------
# Interval value objects
# ---------------------------------------------------------------------------


class TimeInterval(BaseModel):
    """A half-open ``[start, end)`` time-of-day range on a single calendar day."""

    model_config = {"frozen": True}

    date: date
    start: time
    end: time

    @model_validator(mode="after")
    def _end_after_start(self) -> TimeInterval:
        if self.end <= self.start:
            raise ValueError("end must be after start (overnight spans are not supported)")
        return self


@dataclass(frozen=True)
class Occupancy:
    """Anything that occupies a room: a booking slot or a lockout.

    ``window`` is ``None`` when the whole of every day in
    ``[first_day, last_day]`` is occupied.
    """

    source_id: str
    kind: OccupancyKind
    room_id: str
    first_day: date
    last_day: date
    window: TimeInterval | None = None


# ---------------------------------------------------------------------------
# Core domain models
# ---------------------------------------------------------------------------


class Room(BaseModel):
    id: str = Field(default_factory=_new_id)
    name: str
    base_rate: float = Field(ge=0)
    studio_key: StudioKey | None = None
    status: RoomStatus = RoomStatus.AVAILABLE

    @model_validator(mode="after")
    def _derive_studio_key(self) -> Room:
        if self.studio_key is None:
            self.studio_key = studio_key_for(self.name)
        return self


class Booking(BaseModel):
    id: str = Field(default_factory=_new_id)
    client_id: str | None = None
    client_name: str | None = None
    room_id: str | None = None
    room_rate: float | None = None
    date: date
    start_time: time
    end_time: time
    status: BookingStatus = BookingStatus.PENDING
    engineer: str | None = None
    session_type: str | None = None
    original_room_id: str | None = None
    room_swapped_at: datetime | None = None
    created_at: datetime = Field(default_factory=_utcnow)

    @model_validator(mode="after")
    def _end_after_start(self) -> Booking:
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self

    @property
    def interval(self) -> TimeInterval:
        return TimeInterval(date=self.date, start=self.start_time, end=self.end_time)

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    def as_occupancy(self, room_id: str | None = None) -> Occupancy:
        """Project this booking into an occupancy, optionally in another room."""
        return Occupancy(
            source_id=self.id,
            kind=OccupancyKind.BOOKING,
            room_id=room_id or self.room_id or "",
            first_day=self.date,
            last_day=self.date,
            window=self.interval,
        )


class RoomLockout(BaseModel):
    id: str = Field(default_factory=_new_id)
    room_id: str
    start_date: date
    end_date: date
    reason: str | None = None
    created_by: str | None = None
    created_at: datetime = Field(default_factory=_utcnow)

    @model_validator(mode="after")
    def _end_not_before_start(self) -> RoomLockout:
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self

    def covers(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date

    def as_occupancy(self) -> Occupancy:
        return Occupancy(
            source_id=self.id,
            kind=OccupancyKind.LOCKOUT,
            room_id=self.room_id,
            first_day=self.start_date,
            last_day=self.end_date,
        )


class SessionExtension(BaseModel):
    id: str = Field(default_factory=_new_id)
    booking_id: str
    original_end_time: time
    new_end_time: time
    additional_hours: int = Field(ge=1)
    created_at: datetime = Field(default_factory=_utcnow)


class ActivityEntry(BaseModel):
    id: str = Field(default_factory=_new_id)
    subject_id: str
    timestamp: datetime = Field(default_factory=_utcnow)
    type: ActivityType
    payload: dict = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Reporting
# ---------------------------------------------------------------------------


class RoomUtilization(BaseModel):
    room_id: str
    room: str
    total_hours: int
    available_hours: int
    utilization_rate: float


class EngineerHours(BaseModel):
    name: str
    hours: int
    sessions: int


class BookingSummary(BaseModel):
    total_bookings: int = 0
    pending_bookings: int = 0
    confirmed_bookings: int = 0
    in_progress_bookings: int = 0
    completed_bookings: int = 0
    cancelled_bookings: int = 0


class SessionLogEntry(BaseModel):
    id: str
    client_name: str | None = None
    date: date
    start_time: time
    end_time: time
    room_id: str | None = None
    studio: StudioKey | None = None
    session_type: str | None = None
    status: BookingStatus
    hours: int


class ReportData(BaseModel):
    summary: BookingSummary
    bookings: list[SessionLogEntry] = Field(default_factory=list)
    room_utilization: list[RoomUtilization] = Field(default_factory=list)
    engineer_hours: list[EngineerHours] = Field(default_factory=list)


class Report(BaseModel):
    id: str = Field(default_factory=_new_id)
    type: ReportType
    period: ReportPeriod
    start_date: date
    end_date: date
    generated_at: datetime = Field(default_factory=_utcnow)
    generated_by: str | None = None
    data: ReportData


# ---------------------------------------------------------------------------
# Request / Response DTOs
# ---------------------------------------------------------------------------


class SwapRoomRequest(BaseModel):
    new_room_id: str = Field(min_length=1)


class SwapRoomResponse(BaseModel):
    booking: Booking
    price_difference: float
    disclaimer: str


class ExtendSessionRequest(BaseModel):
    additional_hours: int


class ExtendSessionResponse(BaseModel):
    booking: Booking
    extension: SessionExtension
    message: str


class CreateLockoutRequest(BaseModel):
    start_date: date
    end_date: date
    reason: str | None = None
    created_by: str | None = None

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def _parse_date(cls, value):
        # Local import: intervals depends on this module.
        from studio_scheduler.services.intervals import parse_calendar_date

        if isinstance(value, str):
            return parse_calendar_date(value)
        return value


class DeleteLockoutResponse(BaseModel):
    success: bool = True
