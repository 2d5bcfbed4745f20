"""Tests for the conflict-detection service."""

from datetime import datetime, timezone

import pytest

from agenda.domain.models import Session, SessionDraft
from agenda.domain.results import Conflict, NoConflict
from agenda.services.conflicts import detect_conflict, intervals_overlap, overlapping_sessions


def _at(hour: int, minute: int = 0) -> datetime:
    return datetime(2024, 12, 1, hour, minute, tzinfo=timezone.utc)


def _make_session(
    start: datetime,
    end: datetime,
    speaker_id: str | None = "S1",
    session_id: int = 1,
    title: str = "Existing Session",
    room: str | None = "Room 201",
) -> Session:
    return Session(
        id=session_id,
        event_id="event-1",
        title=title,
        start_time=start,
        end_time=end,
        room=room,
        speaker_id=speaker_id,
    )


def _make_draft(
    start: datetime, end: datetime, speaker_id: str | None = "S1", room: str | None = None
) -> SessionDraft:
    return SessionDraft(
        title="Candidate", start_time=start, end_time=end, speaker_id=speaker_id, room=room
    )


def test_no_overlap():
    """Sessions that don't overlap are not conflicts."""
    existing = [_make_session(_at(8), _at(9))]
    result = detect_conflict(_make_draft(_at(10), _at(11)), existing)
    assert isinstance(result, NoConflict)


def test_partial_overlap():
    """A partially overlapping session of the same speaker is a conflict."""
    existing = [_make_session(_at(9), _at(10, 30))]
    result = detect_conflict(_make_draft(_at(10), _at(11)), existing)
    assert isinstance(result, Conflict)
    assert result.conflicting_session.start_time == _at(9)


def test_exact_boundary_no_conflict():
    """When existing.end_time == new start, there is no conflict (boundary touch)."""
    existing = [_make_session(_at(9), _at(10, 30))]
    result = detect_conflict(_make_draft(_at(10, 30), _at(12)), existing)
    assert isinstance(result, NoConflict)


def test_candidate_ending_at_existing_start_no_conflict():
    existing = [_make_session(_at(10, 30), _at(12))]
    result = detect_conflict(_make_draft(_at(9), _at(10, 30)), existing)
    assert isinstance(result, NoConflict)


def test_containment_is_conflict():
    existing = [_make_session(_at(9), _at(12))]
    assert isinstance(detect_conflict(_make_draft(_at(10), _at(11)), existing), Conflict)
    existing = [_make_session(_at(10), _at(11))]
    assert isinstance(detect_conflict(_make_draft(_at(9), _at(12)), existing), Conflict)


@pytest.mark.parametrize(
    "a, b",
    [
        ((_at(9), _at(10, 30)), (_at(10), _at(11))),
        ((_at(9), _at(10, 30)), (_at(10, 30), _at(12))),
        ((_at(9), _at(12)), (_at(10), _at(11))),
        ((_at(8), _at(9)), (_at(13), _at(14))),
    ],
)
def test_overlap_is_symmetric(a, b):
    """Swapping candidate and existing never changes the verdict."""
    forward = detect_conflict(_make_draft(*a), [_make_session(*b)])
    backward = detect_conflict(_make_draft(*b), [_make_session(*a)])
    assert type(forward) is type(backward)
    assert intervals_overlap(*a, *b) == intervals_overlap(*b, *a)


def test_candidate_without_speaker_never_conflicts():
    """A speakerless candidate short-circuits without looking at existing sessions."""

    class Untouchable:
        def __iter__(self):
            raise AssertionError("existing sessions must not be scanned")

    result = detect_conflict(_make_draft(_at(10), _at(11), speaker_id=None), Untouchable())
    assert isinstance(result, NoConflict)


def test_other_speakers_are_ignored():
    """The detector filters by speaker itself, so a full event list is safe."""
    existing = [
        _make_session(_at(10), _at(11), speaker_id="S2"),
        _make_session(_at(10), _at(11), speaker_id=None, session_id=2),
    ]
    result = detect_conflict(_make_draft(_at(10), _at(11), speaker_id="S1"), existing)
    assert isinstance(result, NoConflict)


def test_different_room_still_conflicts():
    existing = [_make_session(_at(10), _at(11), room="Room 201")]
    result = detect_conflict(_make_draft(_at(10), _at(11), room="Room 305"), existing)
    assert isinstance(result, Conflict)


def test_excluded_session_is_skipped():
    """An update is never compared with its own stored record."""
    existing = [_make_session(_at(10), _at(11), session_id=7)]
    draft = _make_draft(_at(10, 15), _at(11, 15))
    assert isinstance(detect_conflict(draft, existing, exclude_session_id=7), NoConflict)
    assert isinstance(detect_conflict(draft, existing, exclude_session_id=8), Conflict)


def test_first_conflict_in_input_order_is_reported():
    existing = [
        _make_session(_at(8), _at(9), session_id=1),
        _make_session(_at(10, 30), _at(11, 30), session_id=2, title="Second"),
        _make_session(_at(9, 30), _at(10, 30), session_id=3, title="Third"),
    ]
    result = detect_conflict(_make_draft(_at(9, 45), _at(11)), existing)
    assert isinstance(result, Conflict)
    assert result.conflicting_session.id == 2


def test_overlapping_sessions_lists_every_clash():
    existing = [
        _make_session(_at(9), _at(10), session_id=1),
        _make_session(_at(10), _at(11), session_id=2),
        _make_session(_at(11), _at(12), session_id=3),
    ]
    clashes = list(overlapping_sessions("S1", _at(9, 30), _at(11, 30), existing))
    assert [s.id for s in clashes] == [1, 2, 3]

    clashes = list(
        overlapping_sessions("S1", _at(9, 30), _at(11, 30), existing, exclude_session_id=2)
    )
    assert [s.id for s in clashes] == [1, 3]
