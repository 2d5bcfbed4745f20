"""FastAPI application: entry point for the session scheduling service.

Authorisation is the caller's concern: whoever fronts this service decides
whether the current user administers the event before calling in.
"""

from __future__ import annotations

import logging
from datetime import datetime

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from agenda.domain.bus import EventBus
from agenda.domain.errors import ErrorCode, StorageError
from agenda.domain.handlers import HandlerRegistry
from agenda.domain.models import (
    CreateEventRequest,
    Event,
    Session,
    SessionDraft,
    SessionPage,
    SessionPatch,
    SpeakerAvailability,
    TimelineEntry,
)
from agenda.domain.results import (
    NotFound,
    Scheduled,
    ScheduleResult,
    SpeakerConflict,
    ValidationFailed,
)
from agenda.repos.memory import (
    InMemoryEventRepository,
    InMemorySessionRepository,
    TimelineRepository,
    seed_demo_data,
)
from agenda.services.locks import KeyedLocks
from agenda.services.scheduler import SessionScheduler
from agenda.settings import get_settings

settings = get_settings()

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Session Scheduling Service")

# ── Singletons (created at import time for simplicity) ────────────────
event_bus = EventBus()
event_repo = InMemoryEventRepository()
session_repo = InMemorySessionRepository(
    enforce_speaker_overlap=settings.ENFORCE_OVERLAP_CONSTRAINT
)
timeline_repo = TimelineRepository()

handler_registry = HandlerRegistry(bus=event_bus, timeline_repo=timeline_repo)

scheduler = SessionScheduler(
    event_store=event_repo,
    session_store=session_repo,
    bus=event_bus,
    locks=KeyedLocks(),
    settings=settings,
)

if settings.SEED_DEMO_DATA:
    seed_demo_data(event_repo, session_repo)


# ── Error mapping ─────────────────────────────────────────────────────


def _raise_for_failure(result: ValidationFailed | SpeakerConflict | NotFound) -> None:
    if isinstance(result, ValidationFailed):
        raise HTTPException(
            status_code=422,
            detail={
                "code": result.code,
                "message": result.message,
                "field_errors": [e.model_dump() for e in result.field_errors],
            },
        )
    if isinstance(result, SpeakerConflict):
        raise HTTPException(
            status_code=409,
            detail={
                "code": result.code,
                "message": result.message,
                "conflicting_session": result.conflicting_session.model_dump(mode="json"),
            },
        )
    raise HTTPException(
        status_code=404,
        detail={"code": result.code, "message": result.message},
    )


def _scheduled_session(result: ScheduleResult) -> Session:
    if not isinstance(result, Scheduled):
        _raise_for_failure(result)
    return result.session


@app.exception_handler(StorageError)
def storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
    logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "detail": {
                "code": ErrorCode.STORAGE_ERROR,
                "message": "The schedule could not be saved, please retry later",
            }
        },
    )


# ── Events ────────────────────────────────────────────────────────────


@app.post("/events", response_model=Event, status_code=201)
def create_event(payload: CreateEventRequest) -> Event:
    event = Event(**payload.model_dump())
    event_repo.add(event)
    logger.info(f"Created event {event.id}")
    return event


@app.get("/events", response_model=list[Event])
def list_events() -> list[Event]:
    return event_repo.list_all()


@app.get("/events/{event_id}", response_model=Event)
def get_event(event_id: str) -> Event:
    event = event_repo.get(event_id)
    if event is None:
        _raise_for_failure(NotFound(resource="event", resource_id=event_id))
    return event


@app.get("/events/{event_id}/timeline", response_model=list[TimelineEntry])
def get_event_timeline(event_id: str) -> list[TimelineEntry]:
    """Return the scheduling outcomes recorded for an event, oldest first."""
    if event_repo.get(event_id) is None:
        _raise_for_failure(NotFound(resource="event", resource_id=event_id))
    return timeline_repo.list_for_event(event_id)


# ── Sessions ──────────────────────────────────────────────────────────


@app.post("/events/{event_id}/sessions", response_model=Session, status_code=201)
def create_session(event_id: str, draft: SessionDraft) -> Session:
    """Schedule a new session; 409 if its speaker is already booked."""
    return _scheduled_session(scheduler.create_session(event_id, draft))


@app.put("/events/{event_id}/sessions/{session_id}", response_model=Session)
def replace_session(event_id: str, session_id: int, draft: SessionDraft) -> Session:
    return _scheduled_session(scheduler.update_session(event_id, session_id, draft))


@app.patch("/events/{event_id}/sessions/{session_id}", response_model=Session)
def patch_session(event_id: str, session_id: int, patch: SessionPatch) -> Session:
    """Change only the fields present in the body; the result is re-checked."""
    return _scheduled_session(scheduler.patch_session(event_id, session_id, patch))


@app.get("/events/{event_id}/sessions", response_model=SessionPage)
def list_sessions(event_id: str, page: int = 1, limit: int | None = None) -> SessionPage:
    result = scheduler.list_event_sessions(event_id, page=page, limit=limit)
    if isinstance(result, NotFound):
        _raise_for_failure(result)
    return result


@app.get(
    "/events/{event_id}/speakers/{speaker_id}/availability",
    response_model=SpeakerAvailability,
)
def speaker_availability(
    event_id: str,
    speaker_id: str,
    start_time: datetime,
    end_time: datetime,
    exclude_session_id: int | None = None,
) -> SpeakerAvailability:
    result = scheduler.check_speaker_availability(
        event_id, speaker_id, start_time, end_time, exclude_session_id
    )
    if not isinstance(result, SpeakerAvailability):
        _raise_for_failure(result)
    return result


@app.get("/sessions/{session_id}", response_model=Session)
def get_session(session_id: int) -> Session:
    session = scheduler.get_session(session_id)
    if session is None:
        _raise_for_failure(NotFound(resource="session", resource_id=str(session_id)))
    return session


@app.delete("/sessions/{session_id}", status_code=200)
def delete_session(session_id: int) -> dict:
    result = scheduler.delete_session(session_id)
    if isinstance(result, NotFound):
        _raise_for_failure(result)
    return {"status": "deleted", "session_id": session_id}
