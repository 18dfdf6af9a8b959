"""Interval model helpers: boundary parsing, overlap and duration math."""

from __future__ import annotations

import re
from datetime import date, datetime, time

from dateutil.parser import isoparse

from studio_scheduler.domain.errors import InvalidInputError
from studio_scheduler.domain.models import TimeInterval

_TIME_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})(?::(\d{2}))?\s*$")


def parse_time_of_day(raw: str | time) -> time:
    """Parse an ``HH:MM`` (or ``HH:MM:SS``) string into a ``time``."""
    if isinstance(raw, time):
        return raw
    match = _TIME_RE.match(raw or "")
    if match is None:
        raise InvalidInputError(f"Malformed time of day: {raw!r}")
    hour, minute, second = (int(g) if g else 0 for g in match.groups())
    if hour > 23 or minute > 59 or second > 59:
        raise InvalidInputError(f"Time of day out of range: {raw!r}")
    return time(hour, minute, second)


def parse_calendar_date(raw: str | date) -> date:
    """Parse an ISO calendar date; full ISO datetimes are truncated to their day."""
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    try:
        return isoparse(raw.strip()).date()
    except (ValueError, AttributeError) as exc:
        raise InvalidInputError(f"Malformed date: {raw!r}") from exc


def make_interval(day: str | date, start: str | time, end: str | time) -> TimeInterval:
    """Build a ``TimeInterval`` from boundary values."""
    try:
        return TimeInterval(
            date=parse_calendar_date(day),
            start=parse_time_of_day(start),
            end=parse_time_of_day(end),
        )
    except ValueError as exc:
        if isinstance(exc, InvalidInputError):
            raise
        raise InvalidInputError(str(exc)) from exc


def overlaps(a: TimeInterval, b: TimeInterval) -> bool:
    """Return True if two intervals on the same day overlap.

    Overlap rule: a.start < b.end AND b.start < a.end.
    Back-to-back slots (a.end == b.start) are NOT conflicts.
    """
    return a.date == b.date and a.start < b.end and b.start < a.end


def hours_between(start: time, end: time) -> int:
    """Whole-hour difference using only the hour fields; minutes are ignored."""
    return end.hour - start.hour


def date_in_range(day: date, first: date, last: date) -> bool:
    return first <= day <= last


def ranges_intersect(first: date, last: date, range_first: date, range_last: date) -> bool:
    """Inclusive date-range intersection.

    True when ``[first, last]`` starts within, ends within, or fully contains
    ``[range_first, range_last]``.
    """
    starts_within = range_first <= first <= range_last
    ends_within = range_first <= last <= range_last
    contains = first <= range_first and last >= range_last
    return starts_within or ends_within or contains


def days_in_period(first: date, last: date) -> int:
    """Inclusive number of calendar days in ``[first, last]``; 0 if inverted."""
    return max((last - first).days + 1, 0)
