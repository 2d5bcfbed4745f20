"""Tests for the in-memory stores."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from agenda.domain.errors import OverlapConstraintError
from agenda.domain.models import SessionDraft
from agenda.repos.memory import (
    InMemoryEventRepository,
    InMemorySessionRepository,
    seed_demo_data,
)


def _at(hour: int, minute: int = 0) -> datetime:
    return datetime(2024, 12, 1, hour, minute, tzinfo=timezone.utc)


def _draft(start: datetime, end: datetime, speaker_id: str | None = "S1") -> SessionDraft:
    return SessionDraft(title="Session", start_time=start, end_time=end, speaker_id=speaker_id)


@pytest.fixture()
def repo() -> InMemorySessionRepository:
    return InMemorySessionRepository()


def test_insert_assigns_increasing_ids_and_timestamps(repo):
    first = repo.insert_session("event-1", _draft(_at(9), _at(10)))
    second = repo.insert_session("event-1", _draft(_at(10), _at(11)))

    assert (first.id, second.id) == (1, 2)
    assert first.created_at == first.updated_at
    assert first.event_id == "event-1"


def test_list_by_speaker_is_scoped_and_repeatable(repo):
    repo.insert_session("event-1", _draft(_at(9), _at(10)))
    repo.insert_session("event-1", _draft(_at(9), _at(10), speaker_id="S2"))
    repo.insert_session("event-2", _draft(_at(9), _at(10)))

    first_read = repo.list_sessions_by_speaker("event-1", "S1")
    second_read = repo.list_sessions_by_speaker("event-1", "S1")

    assert len(first_read) == 1
    assert first_read == second_read


def test_list_for_event_is_ordered_by_start(repo):
    repo.insert_session("event-1", _draft(_at(14), _at(15), speaker_id=None))
    repo.insert_session("event-1", _draft(_at(9), _at(10), speaker_id=None))

    starts = [s.start_time for s in repo.list_sessions_for_event("event-1")]
    assert starts == [_at(9), _at(14)]


def test_returned_sessions_are_copies(repo):
    session = repo.insert_session("event-1", _draft(_at(9), _at(10)))
    session.title = "Changed outside the store"

    assert repo.get_session(session.id).title == "Session"


def test_overlap_guard_rejects_double_booking(repo):
    existing = repo.insert_session("event-1", _draft(_at(10), _at(11, 30)))

    with pytest.raises(OverlapConstraintError) as excinfo:
        repo.insert_session("event-1", _draft(_at(11), _at(12)))

    assert excinfo.value.conflicting_session.id == existing.id
    assert len(repo.list_sessions_for_event("event-1")) == 1


def test_overlap_guard_ignores_the_row_being_updated(repo):
    existing = repo.insert_session("event-1", _draft(_at(10), _at(11)))
    updated = repo.update_session(existing.id, _draft(_at(10, 30), _at(11, 30)))
    assert updated.start_time == _at(10, 30)


def test_overlap_guard_can_be_disabled():
    repo = InMemorySessionRepository(enforce_speaker_overlap=False)
    repo.insert_session("event-1", _draft(_at(10), _at(11)))
    repo.insert_session("event-1", _draft(_at(10), _at(11)))
    assert len(repo.list_sessions_by_speaker("event-1", "S1")) == 2


def test_update_and_delete_of_missing_session(repo):
    assert repo.update_session(42, _draft(_at(9), _at(10))) is None
    assert repo.delete_session(42) is False


def test_seed_demo_data():
    event_repo = InMemoryEventRepository()
    session_repo = InMemorySessionRepository()

    event = seed_demo_data(event_repo, session_repo)

    assert event_repo.get(event.id) is event
    sessions = session_repo.list_sessions_for_event(event.id)
    assert [s.title for s in sessions] == ["Opening Keynote"]
