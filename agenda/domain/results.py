"""Typed outcomes returned by the session scheduler.

Expected failures (bad input, double-booked speaker, missing records) are
returned as values so callers can map them to fields and messages.
"""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field

from agenda.domain.errors import ErrorCode
from agenda.domain.models import Session


class FieldError(BaseModel):
    field: str
    code: str
    message: str


class Scheduled(BaseModel):
    kind: Literal["scheduled"] = "scheduled"
    session: Session


class Deleted(BaseModel):
    kind: Literal["deleted"] = "deleted"
    session_id: int


class ValidationFailed(BaseModel):
    kind: Literal["validation_error"] = "validation_error"
    code: ErrorCode = ErrorCode.VALIDATION_ERROR
    field_errors: list[FieldError]

    @property
    def message(self) -> str:
        return "; ".join(f"{e.field}: {e.message}" for e in self.field_errors)


class SpeakerConflict(BaseModel):
    kind: Literal["speaker_conflict"] = "speaker_conflict"
    code: ErrorCode = ErrorCode.SPEAKER_CONFLICT
    conflicting_session: Session

    @property
    def message(self) -> str:
        existing = self.conflicting_session
        return (
            f"Speaker is already booked {existing.time_range_label()} "
            f"for '{existing.title}'"
        )


class NotFound(BaseModel):
    kind: Literal["not_found"] = "not_found"
    code: ErrorCode = ErrorCode.NOT_FOUND
    resource: Literal["event", "session"]
    resource_id: str

    @property
    def message(self) -> str:
        return f"{self.resource.capitalize()} {self.resource_id} not found"


ScheduleResult = Annotated[
    Union[Scheduled, ValidationFailed, SpeakerConflict, NotFound],
    Field(discriminator="kind"),
]

DeleteResult = Annotated[Union[Deleted, NotFound], Field(discriminator="kind")]


# ---------------------------------------------------------------------------
# Conflict detector verdicts
# ---------------------------------------------------------------------------


class NoConflict(BaseModel):
    kind: Literal["no_conflict"] = "no_conflict"


class Conflict(BaseModel):
    kind: Literal["conflict"] = "conflict"
    conflicting_session: Session


ConflictResult = Annotated[Union[NoConflict, Conflict], Field(discriminator="kind")]
