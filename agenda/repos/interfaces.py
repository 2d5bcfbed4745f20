"""Store interfaces (repository pattern).

Stores are swappable and speak domain models only; the scheduler never sees
rows or column names.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from agenda.domain.models import Event, Session, SessionDraft


class EventStore(ABC):
    """Interface for the events that own sessions."""

    @abstractmethod
    def add(self, event: Event) -> None:
        ...

    @abstractmethod
    def get(self, event_id: str) -> Event | None:
        """Return an event by ID, or None if not found."""
        ...

    @abstractmethod
    def list_all(self) -> list[Event]:
        ...


class SessionStore(ABC):
    """Interface for session persistence.

    Reads reflect committed state only. Implementations raise
    ``StorageError`` for infrastructure failures and may raise
    ``OverlapConstraintError`` when they enforce a speaker overlap guard.
    """

    @abstractmethod
    def list_sessions_by_speaker(self, event_id: str, speaker_id: str) -> list[Session]:
        """Return all sessions of a speaker within an event, in any order."""
        ...

    @abstractmethod
    def list_sessions_for_event(self, event_id: str) -> list[Session]:
        """Return all sessions of an event ordered by start_time ascending."""
        ...

    @abstractmethod
    def get_session(self, session_id: int) -> Session | None:
        ...

    @abstractmethod
    def insert_session(self, event_id: str, draft: SessionDraft) -> Session:
        """Persist a new session, assigning its id and timestamps."""
        ...

    @abstractmethod
    def update_session(self, session_id: int, draft: SessionDraft) -> Session | None:
        """Replace a session's fields; return None if it does not exist."""
        ...

    @abstractmethod
    def delete_session(self, session_id: int) -> bool:
        """Remove a session; return False if it did not exist."""
        ...
