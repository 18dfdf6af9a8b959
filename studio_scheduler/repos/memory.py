"""In-memory repositories and the transactional store that groups them."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from datetime import date, time
from typing import Iterator

from studio_scheduler.domain.models import (
    ActivityEntry,
    Booking,
    BookingStatus,
    Report,
    Room,
    RoomLockout,
    SessionExtension,
)


class RoomRepository:
    """Dict-backed store for Room instances, keyed by id."""

    def __init__(self) -> None:
        self._store: dict[str, Room] = {}

    def add(self, room: Room) -> None:
        self._store[room.id] = room

    def get(self, room_id: str) -> Room | None:
        return self._store.get(room_id)

    def list_all(self) -> list[Room]:
        return sorted(self._store.values(), key=lambda r: r.name)


class BookingRepository:
    """Dict-backed store for Booking instances, keyed by id."""

    def __init__(self) -> None:
        self._store: dict[str, Booking] = {}

    def add(self, booking: Booking) -> None:
        self._store[booking.id] = booking

    def get(self, booking_id: str) -> Booking | None:
        return self._store.get(booking_id)

    def list_all(self) -> list[Booking]:
        return list(self._store.values())

    def list_for_room(self, room_id: str) -> list[Booking]:
        return [b for b in self._store.values() if b.room_id == room_id]

    def list_between(self, first: date, last: date) -> list[Booking]:
        """Bookings dated within ``[first, last]``, ordered by date and start."""
        return sorted(
            (b for b in self._store.values() if first <= b.date <= last),
            key=lambda b: (b.date, b.start_time),
        )


class LockoutRepository:
    """Dict-backed store for RoomLockout instances, keyed by id."""

    def __init__(self) -> None:
        self._store: dict[str, RoomLockout] = {}

    def add(self, lockout: RoomLockout) -> None:
        self._store[lockout.id] = lockout

    def get(self, lockout_id: str) -> RoomLockout | None:
        return self._store.get(lockout_id)

    def delete(self, lockout_id: str) -> None:
        self._store.pop(lockout_id, None)

    def list_for_room(self, room_id: str) -> list[RoomLockout]:
        return sorted(
            (lo for lo in self._store.values() if lo.room_id == room_id),
            key=lambda lo: lo.start_date,
        )


class ExtensionRepository:
    """List-backed store for SessionExtension instances."""

    def __init__(self) -> None:
        self._items: list[SessionExtension] = []

    def add(self, extension: SessionExtension) -> None:
        self._items.append(extension)

    def list_for_booking(self, booking_id: str) -> list[SessionExtension]:
        return [e for e in self._items if e.booking_id == booking_id]

    def __len__(self) -> int:
        return len(self._items)

    def truncate(self, size: int) -> None:
        del self._items[size:]


class ReportRepository:
    """Dict-backed store for generated Report records."""

    def __init__(self) -> None:
        self._store: dict[str, Report] = {}

    def add(self, report: Report) -> None:
        self._store[report.id] = report

    def get(self, report_id: str) -> Report | None:
        return self._store.get(report_id)

    def list_all(self) -> list[Report]:
        return sorted(self._store.values(), key=lambda r: r.generated_at)

    def __len__(self) -> int:
        return len(self._store)

    def truncate(self, size: int) -> None:
        # Dicts keep insertion order, so the newest reports are the tail.
        for report_id in list(self._store)[size:]:
            del self._store[report_id]


class ActivityRepository:
    """List-backed store for ActivityEntry instances."""

    def __init__(self) -> None:
        self._entries: list[ActivityEntry] = []

    def add(self, entry: ActivityEntry) -> None:
        self._entries.append(entry)

    def list_for_subject(self, subject_id: str) -> list[ActivityEntry]:
        return sorted(
            [e for e in self._entries if e.subject_id == subject_id],
            key=lambda e: e.timestamp,
        )

    def __len__(self) -> int:
        return len(self._entries)

    def truncate(self, size: int) -> None:
        del self._entries[size:]


class SchedulingStore:
    """Groups the repositories behind a single transactional boundary.

    ``transaction()`` serialises callers on a re-entrant lock, so a conflict
    check and the write that depends on it cannot interleave with another
    request. If the block raises, rooms, bookings and lockouts get back the
    state they had when the outermost transaction began, and the append-only
    repositories are cut back to their earlier size. Readers take the same
    lock through ``read()`` so they never see a half-applied write.
    """

    # Entities that services mutate in place.
    _ENTITY_REPOS = ("rooms", "bookings", "lockouts")
    # Write-once records; rolled back by truncating to their earlier size.
    _APPEND_ONLY_REPOS = ("extensions", "reports", "activity")

    def __init__(self) -> None:
        self.rooms = RoomRepository()
        self.bookings = BookingRepository()
        self.lockouts = LockoutRepository()
        self.extensions = ExtensionRepository()
        self.reports = ReportRepository()
        self.activity = ActivityRepository()
        self._lock = threading.RLock()
        self._depth = 0

    @contextmanager
    def transaction(self) -> Iterator[SchedulingStore]:
        with self._lock:
            outermost = self._depth == 0
            snapshot = self._snapshot() if outermost else None
            self._depth += 1
            try:
                yield self
            except BaseException:
                if outermost:
                    self._restore(snapshot)
                raise
            finally:
                self._depth -= 1

    @contextmanager
    def read(self) -> Iterator[SchedulingStore]:
        """Hold the store lock without a snapshot, for consistent reads."""
        with self._lock:
            yield self

    def _snapshot(self) -> dict:
        entities = []
        for attr in self._ENTITY_REPOS:
            store = getattr(self, attr)._store
            # Entity fields are immutable values, so a shallow copy of each
            # __dict__ is a full copy of its state.
            states = [(obj, dict(obj.__dict__)) for obj in store.values()]
            entities.append((getattr(self, attr), dict(store), states))
        sizes = {attr: len(getattr(self, attr)) for attr in self._APPEND_ONLY_REPOS}
        return {"entities": entities, "sizes": sizes}

    def _restore(self, snapshot: dict) -> None:
        # Restore in place so references held by callers see the rolled-back state.
        for repo, store, states in snapshot["entities"]:
            repo._store = store
            for obj, state in states:
                obj.__dict__.clear()
                obj.__dict__.update(state)
        for attr, size in snapshot["sizes"].items():
            getattr(self, attr).truncate(size)


# ---------------------------------------------------------------------------
# Seed data – three studios and a few sessions useful for swap testing
# ---------------------------------------------------------------------------


def _seed(store: SchedulingStore, today: date) -> None:
    studio_a = Room(name="Studio A", base_rate=150)
    studio_b = Room(name="Studio B", base_rate=100)
    studio_c = Room(name="Studio C", base_rate=125)
    for room in (studio_a, studio_b, studio_c):
        store.rooms.add(room)

    store.bookings.add(
        Booking(
            client_name="Midnight Echo",
            room_id=studio_a.id,
            room_rate=studio_a.base_rate,
            date=today,
            start_time=time(10, 0),
            end_time=time(14, 0),
            status=BookingStatus.CONFIRMED,
            engineer="Marcus Rivera",
            session_type="RECORDING",
        )
    )
    store.bookings.add(
        Booking(
            client_name="The Velvet Lines",
            room_id=studio_b.id,
            room_rate=studio_b.base_rate,
            date=today,
            start_time=time(14, 0),
            end_time=time(18, 0),
            status=BookingStatus.PENDING,
            engineer="Sarah Chen",
            session_type="MIXING",
        )
    )
    store.bookings.add(
        Booking(
            client_name="DJ Solace",
            room_id=studio_c.id,
            room_rate=studio_c.base_rate,
            date=today,
            start_time=time(12, 0),
            end_time=time(16, 0),
            status=BookingStatus.CANCELLED,
            engineer="No preference",
            session_type="MASTERING",
        )
    )


def create_scheduling_store(seed: bool = False, today: date | None = None) -> SchedulingStore:
    """Return a SchedulingStore, optionally pre-loaded with sample data."""
    store = SchedulingStore()
    if seed:
        _seed(store, today or date.today())
    return store
