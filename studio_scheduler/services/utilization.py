"""Service for reporting aggregates: room utilization and engineer hours.

Everything here reads bookings and rooms without modifying them, so running
a report twice over the same data gives the same numbers.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Iterable

from dateutil.relativedelta import MO, relativedelta

from studio_scheduler.config import settings
from studio_scheduler.domain.bus import EventBus, publish
from studio_scheduler.domain.events import ReportGenerated
from studio_scheduler.domain.models import (
    Booking,
    BookingStatus,
    BookingSummary,
    EngineerHours,
    Report,
    ReportData,
    ReportPeriod,
    ReportType,
    Room,
    RoomUtilization,
    SessionLogEntry,
)
from studio_scheduler.repos.memory import SchedulingStore
from studio_scheduler.services.intervals import date_in_range, days_in_period, hours_between

logger = logging.getLogger(__name__)

_PERIOD_FOR_TYPE = {
    ReportType.END_OF_DAY: ReportPeriod.DAILY,
    ReportType.WEEKLY_SESSION_LOG: ReportPeriod.WEEKLY,
    ReportType.MONTHLY_SUMMARY: ReportPeriod.MONTHLY,
}


def report_period(report_type: ReportType, reference: date) -> tuple[date, date, ReportPeriod]:
    """Return the inclusive ``(first, last)`` days a report covers.

    Weeks run Monday to Sunday; months are calendar months.
    """
    if report_type == ReportType.WEEKLY_SESSION_LOG:
        first = reference + relativedelta(weekday=MO(-1))
        last = first + relativedelta(days=6)
    elif report_type == ReportType.MONTHLY_SUMMARY:
        first = reference.replace(day=1)
        last = first + relativedelta(months=1, days=-1)
    else:
        first = last = reference
    return first, last, _PERIOD_FOR_TYPE.get(report_type, ReportPeriod.DAILY)


def _billable(bookings: Iterable[Booking]) -> list[Booking]:
    return [b for b in bookings if b.status != BookingStatus.CANCELLED]


def room_utilization(
    rooms: Iterable[Room],
    bookings: Iterable[Booking],
    first: date,
    last: date,
    hours_per_day: int | None = None,
) -> list[RoomUtilization]:
    """Booked hours against theoretical open hours for each room.

    Cancelled bookings are ignored. Open hours assume a fixed number of
    bookable hours per day for every day in the period.
    """
    if hours_per_day is None:
        hours_per_day = settings.available_hours_per_day
    in_period = [b for b in _billable(bookings) if date_in_range(b.date, first, last)]
    available_hours = days_in_period(first, last) * hours_per_day

    utilization = []
    for room in rooms:
        total_hours = sum(
            hours_between(b.start_time, b.end_time) for b in in_period if b.room_id == room.id
        )
        rate = (total_hours / available_hours) * 100 if available_hours > 0 else 0
        utilization.append(
            RoomUtilization(
                room_id=room.id,
                room=room.name,
                total_hours=total_hours,
                available_hours=available_hours,
                utilization_rate=rate,
            )
        )
    return utilization


def engineer_hours(
    bookings: Iterable[Booking],
    no_preference: str | None = None,
) -> list[EngineerHours]:
    """Sum hours and sessions per engineer name, in first-seen order.

    Names are grouped exactly as entered; "Marcus" and "Marcus R." are two
    engineers here.
    """
    if no_preference is None:
        no_preference = settings.no_preference_engineer
    totals: dict[str, EngineerHours] = {}
    for booking in _billable(bookings):
        name = booking.engineer
        if not name or name == no_preference:
            continue
        hours = hours_between(booking.start_time, booking.end_time)
        entry = totals.get(name)
        if entry is None:
            totals[name] = EngineerHours(name=name, hours=hours, sessions=1)
        else:
            entry.hours += hours
            entry.sessions += 1
    return list(totals.values())


def booking_summary(bookings: Iterable[Booking]) -> BookingSummary:
    summary = BookingSummary()
    for booking in bookings:
        summary.total_bookings += 1
        if booking.status == BookingStatus.PENDING:
            summary.pending_bookings += 1
        elif booking.status == BookingStatus.CONFIRMED:
            summary.confirmed_bookings += 1
        elif booking.status == BookingStatus.IN_PROGRESS:
            summary.in_progress_bookings += 1
        elif booking.status == BookingStatus.COMPLETED:
            summary.completed_bookings += 1
        elif booking.status == BookingStatus.CANCELLED:
            summary.cancelled_bookings += 1
    return summary


def generate_report(
    store: SchedulingStore,
    report_type: ReportType,
    reference: date,
    generated_by: str | None = None,
    *,
    bus: EventBus | None = None,
    now: datetime | None = None,
) -> Report:
    """Build the report for the period around *reference* and store it."""
    first, last, period = report_period(report_type, reference)

    with store.transaction():
        rooms = store.rooms.list_all()
        studios = {room.id: room.studio_key for room in rooms}
        bookings = store.bookings.list_between(first, last)

        data = ReportData(
            summary=booking_summary(bookings),
            bookings=[
                SessionLogEntry(
                    id=b.id,
                    client_name=b.client_name,
                    date=b.date,
                    start_time=b.start_time,
                    end_time=b.end_time,
                    room_id=b.room_id,
                    studio=studios.get(b.room_id),
                    session_type=b.session_type,
                    status=b.status,
                    hours=hours_between(b.start_time, b.end_time),
                )
                for b in bookings
            ],
            room_utilization=room_utilization(rooms, bookings, first, last),
            engineer_hours=engineer_hours(bookings),
        )
        report = Report(
            type=report_type,
            period=period,
            start_date=first,
            end_date=last,
            generated_at=now or datetime.now(timezone.utc),
            generated_by=generated_by,
            data=data,
        )
        store.reports.add(report)
        publish(bus, ReportGenerated(report_id=report.id, report_type=report_type.value))

    logger.info(
        "generated %s report for %s..%s (%d bookings)", report_type, first, last, len(bookings)
    )
    return report
