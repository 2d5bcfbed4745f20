"""In-memory repositories for events, sessions and the activity timeline."""

from __future__ import annotations

import itertools
import logging
import threading
from datetime import datetime, timedelta, timezone

from agenda.domain.errors import OverlapConstraintError
from agenda.domain.models import Event, Session, SessionDraft, TimelineEntry
from agenda.repos.interfaces import EventStore, SessionStore
from agenda.services.conflicts import intervals_overlap

logger = logging.getLogger(__name__)


def _by_start(session: Session) -> tuple[datetime, int]:
    return session.start_time, session.id


class InMemoryEventRepository(EventStore):
    """Dict-backed store for Event instances, keyed by id."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._store: dict[str, Event] = {}

    def add(self, event: Event) -> None:
        with self._lock:
            self._store[event.id] = event

    def get(self, event_id: str) -> Event | None:
        with self._lock:
            return self._store.get(event_id)

    def list_all(self) -> list[Event]:
        with self._lock:
            return list(self._store.values())

    def clear(self) -> None:
        with self._lock:
            self._store.clear()


class InMemorySessionRepository(SessionStore):
    """Dict-backed store for Session instances, keyed by integer id.

    With ``enforce_speaker_overlap`` set, writes that would overlap another
    session of the same speaker in the same event are rejected with
    ``OverlapConstraintError``, the way a database exclusion constraint would.
    Returned sessions are copies.
    """

    def __init__(self, enforce_speaker_overlap: bool = True) -> None:
        self.enforce_speaker_overlap = enforce_speaker_overlap
        self._lock = threading.RLock()
        self._store: dict[int, Session] = {}
        self._ids = itertools.count(1)

    def list_sessions_by_speaker(self, event_id: str, speaker_id: str) -> list[Session]:
        with self._lock:
            return [
                s.model_copy()
                for s in self._store.values()
                if s.event_id == event_id and s.speaker_id == speaker_id
            ]

    def list_sessions_for_event(self, event_id: str) -> list[Session]:
        with self._lock:
            sessions = [s.model_copy() for s in self._store.values() if s.event_id == event_id]
        return sorted(sessions, key=_by_start)

    def get_session(self, session_id: int) -> Session | None:
        with self._lock:
            session = self._store.get(session_id)
            return session.model_copy() if session is not None else None

    def insert_session(self, event_id: str, draft: SessionDraft) -> Session:
        with self._lock:
            self._check_overlap(event_id, draft, exclude_session_id=None)
            now = datetime.now(timezone.utc)
            session = Session(
                id=next(self._ids),
                event_id=event_id,
                created_at=now,
                updated_at=now,
                **draft.model_dump(),
            )
            self._store[session.id] = session
            return session.model_copy()

    def update_session(self, session_id: int, draft: SessionDraft) -> Session | None:
        with self._lock:
            current = self._store.get(session_id)
            if current is None:
                return None
            self._check_overlap(current.event_id, draft, exclude_session_id=session_id)
            session = current.model_copy(
                update={**draft.model_dump(), "updated_at": datetime.now(timezone.utc)}
            )
            self._store[session_id] = session
            return session.model_copy()

    def delete_session(self, session_id: int) -> bool:
        with self._lock:
            return self._store.pop(session_id, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._store.clear()
            self._ids = itertools.count(1)

    def _check_overlap(
        self, event_id: str, draft: SessionDraft, exclude_session_id: int | None
    ) -> None:
        if not self.enforce_speaker_overlap or draft.speaker_id is None:
            return
        for existing in self._store.values():
            if (
                existing.event_id == event_id
                and existing.speaker_id == draft.speaker_id
                and existing.id != exclude_session_id
                and intervals_overlap(
                    draft.start_time, draft.end_time,
                    existing.start_time, existing.end_time,
                )
            ):
                logger.warning(
                    f"Overlap guard rejected write for speaker {draft.speaker_id} "
                    f"in event {event_id}: clashes with session {existing.id}"
                )
                raise OverlapConstraintError(existing.model_copy())


class TimelineRepository:
    """List-backed store for TimelineEntry instances."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: list[TimelineEntry] = []

    def add(self, entry: TimelineEntry) -> None:
        with self._lock:
            self._entries.append(entry)

    def list_for_event(self, event_id: str) -> list[TimelineEntry]:
        with self._lock:
            entries = [e for e in self._entries if e.event_id == event_id]
        return sorted(entries, key=lambda e: e.timestamp)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


# ---------------------------------------------------------------------------
# Seed data – a demo event with one booked speaker
# ---------------------------------------------------------------------------


def seed_demo_data(
    event_repo: InMemoryEventRepository, session_repo: InMemorySessionRepository
) -> Event:
    """Store a demo conference with one keynote; return the event."""
    start = datetime.now(timezone.utc).replace(
        hour=9, minute=0, second=0, microsecond=0
    ) + timedelta(days=7)
    event = Event(
        title="Demo Conference",
        start_date=start,
        end_date=start + timedelta(days=2, hours=9),
    )
    event_repo.add(event)
    session_repo.insert_session(
        event.id,
        SessionDraft(
            title="Opening Keynote",
            description="Welcome and state of the community",
            start_time=start + timedelta(hours=1),
            end_time=start + timedelta(hours=2, minutes=30),
            room="Main Hall",
            speaker_id="speaker-1",
        ),
    )
    return event
