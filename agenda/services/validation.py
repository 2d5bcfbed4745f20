"""Structural checks for session drafts."""

from __future__ import annotations

from datetime import datetime, tzinfo

from agenda.domain.models import (
    SESSION_DESCRIPTION_MAX,
    SESSION_ROOM_MAX,
    SESSION_TITLE_MAX,
    SESSION_TITLE_MIN,
    SessionDraft,
)
from agenda.domain.results import FieldError


def localize(value: datetime, tz: tzinfo) -> datetime:
    if value.tzinfo is None or value.utcoffset() is None:
        return value.replace(tzinfo=tz)
    return value


def normalize_draft(draft: SessionDraft, tz: tzinfo) -> SessionDraft:
    """Attach *tz* to naive timestamps so every comparison is between aware values."""
    return draft.model_copy(
        update={
            "start_time": localize(draft.start_time, tz),
            "end_time": localize(draft.end_time, tz),
        }
    )


def validate_time_range(start_time: datetime, end_time: datetime) -> FieldError | None:
    if end_time <= start_time:
        return FieldError(
            field="end_time",
            code="INVALID_TIME_RANGE",
            message="End time must be after the start time",
        )
    return None


def validate_draft(draft: SessionDraft) -> list[FieldError]:
    """Return every rule the draft violates; an empty list means it is valid."""
    errors: list[FieldError] = []

    title_length = len(draft.title)
    if title_length < SESSION_TITLE_MIN:
        errors.append(
            FieldError(
                field="title",
                code="TOO_SHORT",
                message=f"Title must be at least {SESSION_TITLE_MIN} characters",
            )
        )
    elif title_length > SESSION_TITLE_MAX:
        errors.append(
            FieldError(
                field="title",
                code="TOO_LONG",
                message=f"Title must be at most {SESSION_TITLE_MAX} characters",
            )
        )

    if draft.description is not None and len(draft.description) > SESSION_DESCRIPTION_MAX:
        errors.append(
            FieldError(
                field="description",
                code="TOO_LONG",
                message=(
                    f"Description must be at most {SESSION_DESCRIPTION_MAX} characters"
                ),
            )
        )

    if draft.room is not None and len(draft.room) > SESSION_ROOM_MAX:
        errors.append(
            FieldError(
                field="room",
                code="TOO_LONG",
                message=f"Room must be at most {SESSION_ROOM_MAX} characters",
            )
        )

    range_error = validate_time_range(draft.start_time, draft.end_time)
    if range_error is not None:
        errors.append(range_error)

    return errors
