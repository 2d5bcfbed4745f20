"""Domain event handlers, wired up at application startup."""

from __future__ import annotations

from agenda.domain.bus import EventBus
from agenda.domain.events import (
    SessionRemoved,
    SessionRescheduled,
    SessionScheduled,
    SpeakerConflictDetected,
)
from agenda.domain.models import TimelineEntry, TimelineEntryType
from agenda.repos.memory import TimelineRepository


class HandlerRegistry:
    """Wires domain-event handlers to the bus; records each outcome on the
    owning event's timeline."""

    def __init__(self, bus: EventBus, timeline_repo: TimelineRepository) -> None:
        self.bus = bus
        self.timeline_repo = timeline_repo
        self._register()

    def _register(self) -> None:
        self.bus.subscribe(SessionScheduled, self.on_session_scheduled)
        self.bus.subscribe(SessionRescheduled, self.on_session_rescheduled)
        self.bus.subscribe(SessionRemoved, self.on_session_removed)
        self.bus.subscribe(SpeakerConflictDetected, self.on_speaker_conflict)

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def on_session_scheduled(self, event: SessionScheduled) -> None:
        self.timeline_repo.add(
            TimelineEntry(
                event_id=event.event_id,
                session_id=event.session_id,
                type=TimelineEntryType.CREATED,
                payload={"speaker_id": event.speaker_id},
            )
        )

    def on_session_rescheduled(self, event: SessionRescheduled) -> None:
        self.timeline_repo.add(
            TimelineEntry(
                event_id=event.event_id,
                session_id=event.session_id,
                type=TimelineEntryType.UPDATED,
                payload={"speaker_id": event.speaker_id},
            )
        )

    def on_session_removed(self, event: SessionRemoved) -> None:
        self.timeline_repo.add(
            TimelineEntry(
                event_id=event.event_id,
                session_id=event.session_id,
                type=TimelineEntryType.DELETED,
            )
        )

    def on_speaker_conflict(self, event: SpeakerConflictDetected) -> None:
        self.timeline_repo.add(
            TimelineEntry(
                event_id=event.event_id,
                session_id=event.session_id,
                type=TimelineEntryType.CONFLICT_REJECTED,
                payload={
                    "speaker_id": event.speaker_id,
                    "conflicting_session_id": event.conflicting_session_id,
                },
            )
        )
