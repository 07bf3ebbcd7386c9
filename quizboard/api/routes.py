from __future__ import annotations

import time
from collections.abc import Awaitable, Callable

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import StreamingResponse

from quizboard.api.deps import get_disconnect_check, get_facade, get_settings
from quizboard.api.models import (
    AnswerRequest,
    HealthResponse,
    JoinRequest,
    LeaderboardResponse,
    ParticipantOut,
    ParticipantResponse,
    StandingsEntryOut,
)
from quizboard.api.sse import standings_stream
from quizboard.core.errors import ParticipantNotFound, SessionNotFound, ValidationError
from quizboard.facade import SessionFacade, SessionResult
from quizboard.settings import Settings

router = APIRouter()

_started_at = time.monotonic()


def _participant_response(result: SessionResult) -> ParticipantResponse:
    return ParticipantResponse(
        session_id=result.session_id,
        participant=ParticipantOut.from_participant(result.participant),
        standings=[StandingsEntryOut.from_entry(e) for e in result.standings],
    )


@router.get("/healthcheck", response_model=HealthResponse)
async def healthcheck(facade: SessionFacade = Depends(get_facade)) -> HealthResponse:
    return HealthResponse(
        status="ok",
        uptime_sec=round(time.monotonic() - _started_at, 3),
        sessions=len(facade.registry),
        subscribers=facade.hub.subscriber_count(),
    )


@router.post("/join", response_model=ParticipantResponse)
async def join_route(payload: JoinRequest, facade: SessionFacade = Depends(get_facade)) -> ParticipantResponse:
    try:
        result = facade.join(payload.session_id, payload.participant_id, payload.name)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    return _participant_response(result)


@router.post("/answer", response_model=ParticipantResponse)
async def answer_route(payload: AnswerRequest, facade: SessionFacade = Depends(get_facade)) -> ParticipantResponse:
    try:
        result = await facade.submit_result(payload.session_id, payload.participant_id, payload.correct)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except (SessionNotFound, ParticipantNotFound) as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    return _participant_response(result)


@router.get("/leaderboard", response_model=LeaderboardResponse)
async def leaderboard_route(
    session_id: str = Query(""),
    facade: SessionFacade = Depends(get_facade),
) -> LeaderboardResponse:
    session_id = session_id.strip()
    try:
        entries = facade.snapshot(session_id)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except SessionNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    return LeaderboardResponse(session_id=session_id, entries=[StandingsEntryOut.from_entry(e) for e in entries])


@router.get("/events")
async def events_route(
    session_id: str = Query(""),
    facade: SessionFacade = Depends(get_facade),
    settings: Settings = Depends(get_settings),
    is_disconnected: Callable[[], Awaitable[bool]] = Depends(get_disconnect_check),
) -> StreamingResponse:
    """Server-Sent Events stream of standings for one session.

    The first frame is the current standings; later frames follow every result
    submission, with keep-alive comments in between.
    """

    session_id = session_id.strip()
    if not session_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="session_id is required")

    stream = standings_stream(
        facade=facade,
        session_id=session_id,
        is_disconnected=is_disconnected,
        queue_size=settings.subscriber_queue_size,
        poll_interval=settings.poll_interval_sec,
    )
    resp = StreamingResponse(stream, media_type="text/event-stream")
    resp.headers["Cache-Control"] = "no-cache"
    resp.headers["X-Accel-Buffering"] = "no"
    return resp
