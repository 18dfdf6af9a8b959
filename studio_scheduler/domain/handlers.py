"""Domain event handlers — wired up at application startup."""

from __future__ import annotations

from studio_scheduler.domain.bus import EventBus
from studio_scheduler.domain.events import (
    LockoutCreated,
    LockoutRemoved,
    ReportGenerated,
    RoomSwapped,
    SessionExtended,
)
from studio_scheduler.domain.models import ActivityEntry, ActivityType
from studio_scheduler.repos.memory import SchedulingStore


class HandlerRegistry:
    """Wires scheduling-event handlers to the bus with access to the store."""

    def __init__(self, bus: EventBus, store: SchedulingStore) -> None:
        self.bus = bus
        self.store = store
        self._register()

    def _register(self) -> None:
        self.bus.subscribe(RoomSwapped, self.on_room_swapped)
        self.bus.subscribe(LockoutCreated, self.on_lockout_created)
        self.bus.subscribe(LockoutRemoved, self.on_lockout_removed)
        self.bus.subscribe(SessionExtended, self.on_session_extended)
        self.bus.subscribe(ReportGenerated, self.on_report_generated)

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def on_room_swapped(self, event: RoomSwapped) -> None:
        self.store.activity.add(
            ActivityEntry(
                subject_id=event.booking_id,
                type=ActivityType.ROOM_SWAPPED,
                timestamp=event.swapped_at,
                payload={
                    "from_room_id": event.from_room_id,
                    "to_room_id": event.to_room_id,
                    "price_difference": event.price_difference,
                },
            )
        )

    def on_lockout_created(self, event: LockoutCreated) -> None:
        lockout = self.store.lockouts.get(event.lockout_id)
        if lockout is None:
            return

        self.store.activity.add(
            ActivityEntry(
                subject_id=event.room_id,
                type=ActivityType.LOCKOUT_CREATED,
                payload={
                    "lockout_id": lockout.id,
                    "start_date": lockout.start_date.isoformat(),
                    "end_date": lockout.end_date.isoformat(),
                    "reason": lockout.reason,
                },
            )
        )

    def on_lockout_removed(self, event: LockoutRemoved) -> None:
        self.store.activity.add(
            ActivityEntry(
                subject_id=event.room_id,
                type=ActivityType.LOCKOUT_REMOVED,
                payload={"lockout_id": event.lockout_id},
            )
        )

    def on_session_extended(self, event: SessionExtended) -> None:
        self.store.activity.add(
            ActivityEntry(
                subject_id=event.booking_id,
                type=ActivityType.SESSION_EXTENDED,
                payload={
                    "extension_id": event.extension_id,
                    "additional_hours": event.additional_hours,
                },
            )
        )

    def on_report_generated(self, event: ReportGenerated) -> None:
        self.store.activity.add(
            ActivityEntry(
                subject_id=event.report_id,
                type=ActivityType.REPORT_GENERATED,
                payload={"type": event.report_type},
            )
        )
