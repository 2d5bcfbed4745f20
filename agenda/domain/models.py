"""Domain models for event sessions and their scheduling."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import StrEnum
from typing import Literal

from pydantic import BaseModel, Field, field_validator

SESSION_TITLE_MIN = 3
SESSION_TITLE_MAX = 200
SESSION_DESCRIPTION_MAX = 1000
SESSION_ROOM_MAX = 100


class TimelineEntryType(StrEnum):
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"
    CONFLICT_REJECTED = "conflict_rejected"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


def _blank_to_none(value: str | None) -> str | None:
    if value is None or not value.strip():
        return None
    return value.strip()


# ---------------------------------------------------------------------------
# Core domain models
# ---------------------------------------------------------------------------


class Event(BaseModel):
    id: str = Field(default_factory=_new_id)
    title: str
    start_date: datetime | None = None
    end_date: datetime | None = None
    created_at: datetime = Field(default_factory=_utcnow)


class SessionDraft(BaseModel):
    """A candidate session that has not been validated or stored yet.

    Length and time-range rules are deliberately not enforced here: they are
    checked by ``validate_draft`` so every violation can be reported at once.
    """

    title: str
    description: str | None = None
    start_time: datetime
    end_time: datetime
    room: str | None = None
    speaker_id: str | None = None

    @field_validator("title", mode="before")
    @classmethod
    def _strip_title(cls, value):
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("description", "room", "speaker_id", mode="before")
    @classmethod
    def _empty_is_absent(cls, value):
        if isinstance(value, str):
            return _blank_to_none(value)
        return value


class Session(BaseModel):
    id: int
    event_id: str
    title: str
    description: str | None = None
    start_time: datetime
    end_time: datetime
    room: str | None = None
    speaker_id: str | None = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    def time_range_label(self) -> str:
        return f"{self.start_time:%H:%M}–{self.end_time:%H:%M}"

    def to_draft(self) -> SessionDraft:
        return SessionDraft(
            title=self.title,
            description=self.description,
            start_time=self.start_time,
            end_time=self.end_time,
            room=self.room,
            speaker_id=self.speaker_id,
        )


class SessionPatch(BaseModel):
    """Partial update; only fields that were explicitly sent are applied."""

    title: str | None = None
    description: str | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    room: str | None = None
    speaker_id: str | None = None

    def apply_to(self, session: Session) -> SessionDraft:
        updates = self.model_dump(exclude_unset=True)
        # Required draft fields cannot be cleared, an explicit null keeps them.
        for name in ("title", "start_time", "end_time"):
            if name in updates and updates[name] is None:
                del updates[name]
        merged = session.to_draft().model_dump()
        merged.update(updates)
        return SessionDraft(**merged)


class TimelineEntry(BaseModel):
    id: str = Field(default_factory=_new_id)
    event_id: str
    session_id: int | None = None
    timestamp: datetime = Field(default_factory=_utcnow)
    type: TimelineEntryType
    payload: dict = Field(default_factory=dict)


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class SessionPage(BaseModel):
    kind: Literal["session_page"] = "session_page"
    sessions: list[Session]
    pagination: Pagination


class SpeakerAvailability(BaseModel):
    kind: Literal["speaker_availability"] = "speaker_availability"
    event_id: str
    speaker_id: str
    start_time: datetime
    end_time: datetime
    available: bool
    conflicting_sessions: list[Session] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Request DTOs
# ---------------------------------------------------------------------------


class CreateEventRequest(BaseModel):
    title: str = Field(min_length=1)
    start_date: datetime | None = None
    end_date: datetime | None = None
