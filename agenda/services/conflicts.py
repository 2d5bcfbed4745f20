"""Service for detecting speaker double-bookings between sessions."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from datetime import datetime

from agenda.domain.models import Session, SessionDraft
from agenda.domain.results import Conflict, ConflictResult, NoConflict


def intervals_overlap(
    a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime
) -> bool:
    """Half-open ``[start, end)`` intersection test.

    Exact boundary touches (``a_end == b_start``) are NOT overlaps.
    """
    return a_start < b_end and b_start < a_end


def overlapping_sessions(
    speaker_id: str,
    start_time: datetime,
    end_time: datetime,
    existing_sessions: Iterable[Session],
    exclude_session_id: int | None = None,
) -> Iterator[Session]:
    """Yield, in input order, the sessions of *speaker_id* that overlap the range."""
    for session in existing_sessions:
        if session.speaker_id != speaker_id:
            continue
        if exclude_session_id is not None and session.id == exclude_session_id:
            continue
        if intervals_overlap(start_time, end_time, session.start_time, session.end_time):
            yield session


def detect_conflict(
    candidate: SessionDraft,
    existing_sessions: Iterable[Session],
    exclude_session_id: int | None = None,
) -> ConflictResult:
    """Return the first existing session (in input order) that double-books
    the candidate's speaker, or ``NoConflict``.

    Sessions belonging to other speakers are filtered out here, so an event's
    full session list can be passed in. A candidate without a speaker never
    conflicts. Rooms play no part in the decision. Intervals are assumed to be
    well formed (``start_time < end_time``).
    """
    if candidate.speaker_id is None:
        return NoConflict()
    clashes = overlapping_sessions(
        candidate.speaker_id,
        candidate.start_time,
        candidate.end_time,
        existing_sessions,
        exclude_session_id,
    )
    first = next(clashes, None)
    if first is None:
        return NoConflict()
    return Conflict(conflicting_session=first)
