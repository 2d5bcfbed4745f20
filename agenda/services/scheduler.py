"""Session scheduler: the only mutating entry point for event sessions.

``schedule_session`` validates a draft, checks the speaker's other sessions in
the same event for overlaps and stores the session, all while holding the
``(event_id, speaker_id)`` lock so two concurrent requests cannot both pass
the check and double-book the speaker.

Expected failures come back as typed results (``ValidationFailed``,
``SpeakerConflict``, ``NotFound``); ``StorageError`` is logged and raised.
"""

from __future__ import annotations

import logging
import math
from contextlib import contextmanager
from datetime import datetime
from typing import Literal, Union

from pydantic import BaseModel

from agenda.domain.bus import EventBus
from agenda.domain.errors import OverlapConstraintError, StorageError
from agenda.domain.events import (
    SessionRemoved,
    SessionRescheduled,
    SessionScheduled,
    SpeakerConflictDetected,
)
from agenda.domain.models import (
    Pagination,
    Session,
    SessionDraft,
    SessionPage,
    SessionPatch,
    SpeakerAvailability,
)
from agenda.domain.results import (
    Conflict,
    Deleted,
    DeleteResult,
    NotFound,
    Scheduled,
    ScheduleResult,
    SpeakerConflict,
    ValidationFailed,
)
from agenda.repos.interfaces import EventStore, SessionStore
from agenda.services.conflicts import detect_conflict, overlapping_sessions
from agenda.services.locks import KeyedLocks
from agenda.services.validation import (
    localize,
    normalize_draft,
    validate_draft,
    validate_time_range,
)
from agenda.settings import SchedulerSettings, get_settings

logger = logging.getLogger(__name__)


@contextmanager
def _logging_storage_failures(action: str):
    try:
        yield
    except StorageError:
        logger.exception(f"Storage failure while {action}")
        raise


class CreateMode(BaseModel):
    kind: Literal["create"] = "create"


class UpdateMode(BaseModel):
    kind: Literal["update"] = "update"
    session_id: int


ScheduleMode = Union[CreateMode, UpdateMode]


class SessionScheduler:
    """Creates, updates and removes sessions without double-booking speakers.

    All collaborators are passed in; nothing is looked up globally, so tests
    can hand in fakes.
    """

    def __init__(
        self,
        event_store: EventStore,
        session_store: SessionStore,
        bus: EventBus | None = None,
        locks: KeyedLocks | None = None,
        settings: SchedulerSettings | None = None,
    ) -> None:
        self.event_store = event_store
        self.session_store = session_store
        self.bus = bus or EventBus()
        self.locks = locks or KeyedLocks()
        self.settings = settings or get_settings()

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    def schedule_session(
        self, event_id: str, draft: SessionDraft, mode: ScheduleMode
    ) -> ScheduleResult:
        draft = normalize_draft(draft, self.settings.default_tzinfo)
        field_errors = validate_draft(draft)
        if field_errors:
            logger.info(
                f"Rejected session draft for event {event_id}: "
                f"{[e.field for e in field_errors]}"
            )
            return ValidationFailed(field_errors=field_errors)

        existing_id = mode.session_id if isinstance(mode, UpdateMode) else None
        with _logging_storage_failures(f"scheduling a session for event {event_id}"):
            if self.event_store.get(event_id) is None:
                return NotFound(resource="event", resource_id=event_id)
            if existing_id is not None:
                current = self.session_store.get_session(existing_id)
                if current is None or current.event_id != event_id:
                    return NotFound(resource="session", resource_id=str(existing_id))
            result = self._check_and_commit(event_id, draft, existing_id)

        self._announce(event_id, draft, existing_id, result)
        return result

    def create_session(self, event_id: str, draft: SessionDraft) -> ScheduleResult:
        return self.schedule_session(event_id, draft, CreateMode())

    def update_session(
        self, event_id: str, session_id: int, draft: SessionDraft
    ) -> ScheduleResult:
        return self.schedule_session(event_id, draft, UpdateMode(session_id=session_id))

    def patch_session(
        self, event_id: str, session_id: int, patch: SessionPatch
    ) -> ScheduleResult:
        """Apply the fields set on *patch* to the stored session, then update."""
        with _logging_storage_failures(f"loading session {session_id} for a patch"):
            current = self.session_store.get_session(session_id)
        if current is None or current.event_id != event_id:
            return NotFound(resource="session", resource_id=str(session_id))
        return self.update_session(event_id, session_id, patch.apply_to(current))

    def _check_and_commit(
        self, event_id: str, draft: SessionDraft, existing_id: int | None
    ) -> ScheduleResult:
        if draft.speaker_id is None:
            return self._commit(event_id, draft, existing_id)

        with self.locks.hold((event_id, draft.speaker_id)):
            booked = self.session_store.list_sessions_by_speaker(event_id, draft.speaker_id)
            verdict = detect_conflict(draft, booked, exclude_session_id=existing_id)
            if isinstance(verdict, Conflict):
                clash = verdict.conflicting_session
                logger.warning(
                    f"Speaker {draft.speaker_id} already booked in event {event_id} "
                    f"by session {clash.id} ({clash.time_range_label()})"
                )
                return SpeakerConflict(conflicting_session=clash)
            return self._commit(event_id, draft, existing_id)

    def _commit(
        self, event_id: str, draft: SessionDraft, existing_id: int | None
    ) -> ScheduleResult:
        try:
            if existing_id is None:
                session = self.session_store.insert_session(event_id, draft)
            else:
                session = self.session_store.update_session(existing_id, draft)
        except OverlapConstraintError as exc:
            return SpeakerConflict(conflicting_session=exc.conflicting_session)

        if session is None:
            # Removed between the lookup and the write.
            return NotFound(resource="session", resource_id=str(existing_id))

        verb = "Created" if existing_id is None else "Updated"
        logger.info(f"{verb} session {session.id} in event {event_id}")
        return Scheduled(session=session)

    def _announce(
        self,
        event_id: str,
        draft: SessionDraft,
        existing_id: int | None,
        result: ScheduleResult,
    ) -> None:
        if isinstance(result, Scheduled):
            event_type = SessionScheduled if existing_id is None else SessionRescheduled
            self.bus.publish(
                event_type(
                    event_id=event_id,
                    session_id=result.session.id,
                    speaker_id=result.session.speaker_id,
                )
            )
        elif isinstance(result, SpeakerConflict):
            self.bus.publish(
                SpeakerConflictDetected(
                    event_id=event_id,
                    speaker_id=draft.speaker_id,
                    conflicting_session_id=result.conflicting_session.id,
                    session_id=existing_id,
                )
            )

    # ------------------------------------------------------------------
    # Removal and queries
    # ------------------------------------------------------------------

    def delete_session(self, session_id: int) -> DeleteResult:
        """Remove a session. Freeing a slot never creates a conflict, so no
        other session is re-checked."""
        with _logging_storage_failures(f"deleting session {session_id}"):
            session = self.session_store.get_session(session_id)
            if session is None or not self.session_store.delete_session(session_id):
                return NotFound(resource="session", resource_id=str(session_id))

        logger.info(f"Deleted session {session_id} from event {session.event_id}")
        self.bus.publish(SessionRemoved(event_id=session.event_id, session_id=session_id))
        return Deleted(session_id=session_id)

    def get_session(self, session_id: int) -> Session | None:
        with _logging_storage_failures(f"loading session {session_id}"):
            return self.session_store.get_session(session_id)

    def list_event_sessions(
        self, event_id: str, page: int = 1, limit: int | None = None
    ) -> SessionPage | NotFound:
        limit = limit or self.settings.PAGE_LIMIT_DEFAULT
        limit = max(1, min(limit, self.settings.PAGE_LIMIT_MAX))
        page = max(1, page)

        with _logging_storage_failures(f"listing sessions for event {event_id}"):
            if self.event_store.get(event_id) is None:
                return NotFound(resource="event", resource_id=event_id)
            sessions = self.session_store.list_sessions_for_event(event_id)
        offset = (page - 1) * limit
        return SessionPage(
            sessions=sessions[offset : offset + limit],
            pagination=Pagination(
                page=page,
                limit=limit,
                total=len(sessions),
                total_pages=math.ceil(len(sessions) / limit),
            ),
        )

    def check_speaker_availability(
        self,
        event_id: str,
        speaker_id: str,
        start_time: datetime,
        end_time: datetime,
        exclude_session_id: int | None = None,
    ) -> SpeakerAvailability | NotFound | ValidationFailed:
        """Report whether *speaker_id* is free for the range, without writing."""
        tz = self.settings.default_tzinfo
        start_time, end_time = localize(start_time, tz), localize(end_time, tz)
        range_error = validate_time_range(start_time, end_time)
        if range_error is not None:
            return ValidationFailed(field_errors=[range_error])
        with _logging_storage_failures(f"checking availability of speaker {speaker_id}"):
            if self.event_store.get(event_id) is None:
                return NotFound(resource="event", resource_id=event_id)
            booked = self.session_store.list_sessions_by_speaker(event_id, speaker_id)
        clashes = sorted(
            overlapping_sessions(speaker_id, start_time, end_time, booked, exclude_session_id),
            key=lambda s: (s.start_time, s.id),
        )
        return SpeakerAvailability(
            event_id=event_id,
            speaker_id=speaker_id,
            start_time=start_time,
            end_time=end_time,
            available=not clashes,
            conflicting_sessions=clashes,
        )
