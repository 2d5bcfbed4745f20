"""Domain events emitted when a session's schedule changes."""

from __future__ import annotations

from pydantic import BaseModel


class SessionScheduled(BaseModel):
    """Fired when a new session is stored."""

    event_id: str
    session_id: int
    speaker_id: str | None = None


class SessionRescheduled(BaseModel):
    """Fired when an existing session is updated."""

    event_id: str
    session_id: int
    speaker_id: str | None = None


class SessionRemoved(BaseModel):
    event_id: str
    session_id: int


class SpeakerConflictDetected(BaseModel):
    """Fired when a create or update was refused because the speaker is booked."""

    event_id: str
    speaker_id: str
    conflicting_session_id: int
    session_id: int | None = None
