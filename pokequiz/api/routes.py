from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, WebSocket, WebSocketDisconnect, status
import redis

from pokequiz.actions import dispatch_event, end_session, snapshot_message
from pokequiz.api.deps import get_redis
from pokequiz.api.models import (
    CatalogSummary,
    GuessRequest,
    HighScoresResponse,
    ModeChangeRequest,
    MovePoolRequest,
    Session,
    SessionCreateRequest,
    SuggestionsResponse,
)
from pokequiz.catalog.registry import MovePool
from pokequiz.catalog.singleton import CatalogUnavailableError, get_catalog, get_popular_moves
from pokequiz.core.answers import suggest_names
from pokequiz.core.events import GuessSubmitted, ModeChanged, MovePoolChanged, Restart, RetryRound, SessionEvent
from pokequiz.scores import ScoreTracker
from pokequiz.session_store import SessionNotFound, create_session, get_session, list_sessions, require_session
from pokequiz.websocket_hub import hub

router = APIRouter()


async def _dispatch(*, r: redis.Redis, session_id: UUID, event: SessionEvent) -> Session:
    try:
        return await dispatch_event(r=r, session_id=session_id, event=event)
    except SessionNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found") from e
    except CatalogUnavailableError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e)) from e
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e


@router.websocket("/ws/sessions/{session_id}")
async def session_updates_ws(websocket: WebSocket, session_id: UUID, r: redis.Redis = Depends(get_redis)) -> None:
    sid = str(session_id)

    def _current_snapshot() -> dict[str, object] | None:
        session = get_session(r=r, session_id=session_id)
        return snapshot_message(session) if session is not None else None

    # Late joiners get the current snapshot before any further updates.
    await hub.connect(sid, websocket, greeting=_current_snapshot)

    try:
        # Keep the socket open; clients only listen.
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        await hub.disconnect(sid, websocket)
    except Exception:
        await hub.disconnect(sid, websocket)
        raise


@router.get("/healthcheck")
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/catalog", response_model=CatalogSummary)
async def catalog_route() -> CatalogSummary:
    try:
        catalog = get_catalog()
    except CatalogUnavailableError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e)) from e

    popular = get_popular_moves()
    return CatalogSummary(
        count=len(catalog),
        generated_at=catalog.generated_at,
        popular_moves_month=popular.month if popular is not None else None,
        move_pools=list(MovePool) if popular is not None else [MovePool.all],
    )


@router.post("/sessions", response_model=Session, status_code=status.HTTP_201_CREATED)
async def create_session_route(payload: SessionCreateRequest, r: redis.Redis = Depends(get_redis)) -> Session:
    try:
        session = create_session(r=r, mode=payload.mode, move_pool=payload.move_pool)
    except CatalogUnavailableError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e)) from e
    return session


@router.get("/sessions", response_model=list[Session])
async def list_sessions_route(r: redis.Redis = Depends(get_redis)) -> list[Session]:
    return list_sessions(r=r)


@router.get("/sessions/{session_id}", response_model=Session)
async def get_session_route(session_id: UUID, r: redis.Redis = Depends(get_redis)) -> Session:
    session = get_session(r=r, session_id=session_id)
    if session is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found")
    return session


@router.delete("/sessions/{session_id}")
async def delete_session_route(session_id: UUID, r: redis.Redis = Depends(get_redis)) -> dict[str, object]:
    removed = await end_session(r=r, session_id=session_id)
    if not removed:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found")
    return {"session_id": str(session_id), "deleted": True}


@router.post("/sessions/{session_id}/guess", response_model=Session)
async def guess_route(session_id: UUID, payload: GuessRequest, r: redis.Redis = Depends(get_redis)) -> Session:
    return await _dispatch(r=r, session_id=session_id, event=GuessSubmitted(guess=payload.guess))


@router.post("/sessions/{session_id}/restart", response_model=Session)
async def restart_route(session_id: UUID, r: redis.Redis = Depends(get_redis)) -> Session:
    return await _dispatch(r=r, session_id=session_id, event=Restart())


@router.post("/sessions/{session_id}/mode", response_model=Session)
async def mode_route(session_id: UUID, payload: ModeChangeRequest, r: redis.Redis = Depends(get_redis)) -> Session:
    return await _dispatch(r=r, session_id=session_id, event=ModeChanged(mode=payload.mode))


@router.post("/sessions/{session_id}/move-pool", response_model=Session)
async def move_pool_route(session_id: UUID, payload: MovePoolRequest, r: redis.Redis = Depends(get_redis)) -> Session:
    return await _dispatch(r=r, session_id=session_id, event=MovePoolChanged(move_pool=payload.move_pool))


@router.post("/sessions/{session_id}/retry", response_model=Session)
async def retry_route(session_id: UUID, r: redis.Redis = Depends(get_redis)) -> Session:
    """Ask for a fresh round after the generator gave up (`round_unavailable`)."""

    return await _dispatch(r=r, session_id=session_id, event=RetryRound())


@router.get("/sessions/{session_id}/suggestions", response_model=SuggestionsResponse)
async def suggestions_route(
    session_id: UUID,
    q: str = Query(default="", max_length=64),
    r: redis.Redis = Depends(get_redis),
) -> SuggestionsResponse:
    try:
        require_session(r=r, session_id=session_id)
        catalog = get_catalog()
    except SessionNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found") from e
    except CatalogUnavailableError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e)) from e

    return SuggestionsResponse(query=q, names=suggest_names(catalog, q))


@router.get("/high-scores", response_model=HighScoresResponse)
async def high_scores_route(r: redis.Redis = Depends(get_redis)) -> HighScoresResponse:
    return HighScoresResponse(high_scores=ScoreTracker(r).high_scores())
