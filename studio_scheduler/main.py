"""FastAPI application — entry point for the studio scheduling service."""

from __future__ import annotations

import logging
from datetime import date

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from studio_scheduler.config import settings
from studio_scheduler.domain.bus import EventBus
from studio_scheduler.domain.errors import ConflictError, InternalError, SchedulingError
from studio_scheduler.domain.handlers import HandlerRegistry
from studio_scheduler.domain.models import (
    Booking,
    CreateLockoutRequest,
    DeleteLockoutResponse,
    ExtendSessionRequest,
    ExtendSessionResponse,
    Report,
    ReportType,
    Room,
    RoomLockout,
    SwapRoomRequest,
    SwapRoomResponse,
)
from studio_scheduler.repos.memory import create_scheduling_store
from studio_scheduler.services.extensions import extend_session
from studio_scheduler.services.intervals import parse_calendar_date
from studio_scheduler.services.lockouts import (
    create_lockout,
    list_lockouts,
    refresh_room_statuses,
    remove_lockout,
)
from studio_scheduler.services.swap import swap_room
from studio_scheduler.services.utilization import generate_report

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Studio Scheduling Service")

# ── Singletons (created at import time for simplicity) ────────────────
event_bus = EventBus()
store = create_scheduling_store(seed=settings.seed_demo_data)
handler_registry = HandlerRegistry(bus=event_bus, store=store)


@app.exception_handler(SchedulingError)
def scheduling_error_handler(request: Request, exc: SchedulingError) -> JSONResponse:
    content = {"detail": exc.message}
    if isinstance(exc, ConflictError):
        content["conflicts"] = jsonable_encoder(exc.conflicts)
    return JSONResponse(status_code=exc.status_code, content=content)


def _internal(action: str) -> InternalError:
    logger.exception("Error %s", action)
    return InternalError(f"Failed to {action}")


def _optional_date(raw: str | None) -> date | None:
    return parse_calendar_date(raw) if raw else None


def _detached(items):
    """Copies of stored entities taken under the store lock.

    Responses are serialised after the route returns, by which time another
    request may be writing to the live objects.
    """
    with store.read():
        return [item.model_copy() for item in items]


# ── Bookings ──────────────────────────────────────────────────────────


@app.get("/bookings", response_model=list[Booking])
def list_bookings() -> list[Booking]:
    """Return all bookings."""
    with store.read():
        return _detached(store.bookings.list_all())


@app.get("/bookings/{booking_id}", response_model=Booking)
def get_booking(booking_id: str) -> Booking:
    """Return a single booking by id."""
    with store.read():
        booking = store.bookings.get(booking_id)
        if booking is None:
            raise HTTPException(status_code=404, detail="Booking not found")
        return booking.model_copy()


@app.post("/bookings/{booking_id}/swap-room", response_model=SwapRoomResponse)
def swap_booking_room(booking_id: str, body: SwapRoomRequest) -> SwapRoomResponse:
    """Move a booking to another room and report the price difference."""
    try:
        result = swap_room(store, booking_id, body.new_room_id, bus=event_bus)
    except SchedulingError:
        raise
    except Exception:
        raise _internal("swap room")
    return SwapRoomResponse(
        booking=_detached([result.booking])[0],
        price_difference=result.price_difference,
        disclaimer=result.disclaimer,
    )


@app.post("/bookings/{booking_id}/extend", response_model=ExtendSessionResponse)
def extend_booking(booking_id: str, body: ExtendSessionRequest) -> ExtendSessionResponse:
    """Extend a session by whole hours if the room stays free."""
    try:
        result = extend_session(store, booking_id, body.additional_hours, bus=event_bus)
    except SchedulingError:
        raise
    except Exception:
        raise _internal("extend session")
    return ExtendSessionResponse(
        booking=_detached([result.booking])[0], extension=result.extension, message=result.message
    )


# ── Rooms & lockouts ──────────────────────────────────────────────────


@app.get("/rooms", response_model=list[Room])
def list_rooms() -> list[Room]:
    """Return all rooms with their current status."""
    with store.read():
        return _detached(store.rooms.list_all())


@app.post("/rooms/refresh-status", response_model=list[Room])
def refresh_rooms() -> list[Room]:
    """Re-derive every room's status from its lockouts as of today."""
    return _detached(refresh_room_statuses(store))


@app.get("/rooms/{room_id}", response_model=Room)
def get_room(room_id: str) -> Room:
    """Return a single room by id."""
    with store.read():
        room = store.rooms.get(room_id)
        if room is None:
            raise HTTPException(status_code=404, detail="Room not found")
        return room.model_copy()


@app.post("/rooms/{room_id}/lockouts", response_model=RoomLockout, status_code=201)
def lock_room(room_id: str, body: CreateLockoutRequest) -> RoomLockout:
    """Lock a room for a date range unless bookings fall inside it."""
    try:
        lockout = create_lockout(
            store,
            room_id,
            body.start_date,
            body.end_date,
            reason=body.reason,
            created_by=body.created_by,
            bus=event_bus,
        )
    except SchedulingError:
        raise
    except Exception:
        raise _internal("lock room")
    return _detached([lockout])[0]


@app.get("/rooms/{room_id}/lockouts", response_model=list[RoomLockout])
def get_room_lockouts(
    room_id: str,
    start_date: str | None = Query(default=None),
    end_date: str | None = Query(default=None),
) -> list[RoomLockout]:
    """Return a room's lockouts, optionally only those touching a date range."""
    lockouts = list_lockouts(
        store, room_id, _optional_date(start_date), _optional_date(end_date)
    )
    return _detached(lockouts)


@app.delete("/rooms/{room_id}/lockouts/{lockout_id}", response_model=DeleteLockoutResponse)
def unlock_room(room_id: str, lockout_id: str) -> DeleteLockoutResponse:
    """Remove a lockout; the room's status is recomputed."""
    try:
        remove_lockout(store, lockout_id, room_id, bus=event_bus)
    except SchedulingError:
        raise
    except Exception:
        raise _internal("remove lockout")
    return DeleteLockoutResponse(success=True)


# ── Reports ───────────────────────────────────────────────────────────


@app.get("/reports", response_model=Report)
def get_report(
    report_type: ReportType = Query(default=ReportType.END_OF_DAY, alias="type"),
    reference_date: str | None = Query(default=None, alias="date"),
    generated_by: str | None = Query(default=None),
) -> Report:
    """Generate and store a utilization / engineer-hours report.

    *date* defaults to today and picks the day, week or month reported on.
    """
    reference = _optional_date(reference_date) or date.today()
    try:
        return generate_report(store, report_type, reference, generated_by, bus=event_bus)
    except SchedulingError:
        raise
    except Exception:
        raise _internal("generate report")
