"""Error codes and storage exceptions for session scheduling."""

from __future__ import annotations

from enum import StrEnum

from agenda.domain.models import Session


class ErrorCode(StrEnum):
    VALIDATION_ERROR = "VALIDATION_ERROR"
    SPEAKER_CONFLICT = "SPEAKER_CONFLICT"
    NOT_FOUND = "NOT_FOUND"
    STORAGE_ERROR = "STORAGE_ERROR"


class StorageError(Exception):
    """Raised by a store when the underlying persistence fails.

    Fatal for the current request; the scheduler logs it and lets it
    propagate without retrying.
    """

    code = ErrorCode.STORAGE_ERROR


class OverlapConstraintError(StorageError):
    """Raised by a store whose overlap guard rejected a write.

    Carries the already stored session that the write would have overlapped.
    """

    def __init__(self, conflicting_session: Session) -> None:
        super().__init__(
            f"Speaker {conflicting_session.speaker_id} overlaps session "
            f"{conflicting_session.id}"
        )
        self.conflicting_session = conflicting_session
