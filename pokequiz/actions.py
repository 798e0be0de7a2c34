from __future__ import annotations

import logging
from dataclasses import replace
from uuid import UUID

import redis

from pokequiz.api.models import Session, StatDuelRound
from pokequiz.config import get_timings
from pokequiz.core.engine import AppliedEvent, TimerRequest, apply_event
from pokequiz.core.events import (
    GuessSubmitted,
    ResultElapsed,
    RevealCompleted,
    SessionEvent,
    TimerEvent,
    event_name,
)
from pokequiz.lock import session_lock
from pokequiz.scheduler import ease_out_cubic, scheduler
from pokequiz.scores import ScoreTracker
from pokequiz.session_store import SessionNotFound, build_context, delete_session, require_session, save_session
from pokequiz.turn_processing.validators import ValidationContext, pipeline_for_action
from pokequiz.websocket_hub import hub


logger = logging.getLogger(__name__)


def snapshot_message(session: Session) -> dict[str, object]:
    return {"type": "session_updated", "session": session.model_dump(mode="json")}


def _apply_locked(*, r: redis.Redis, session_id: UUID, event: SessionEvent) -> AppliedEvent:
    with session_lock(r=r, session_id=str(session_id)):
        session = require_session(r=r, session_id=session_id)

        if not isinstance(event, (RevealCompleted, ResultElapsed)):
            ctx = ValidationContext(
                session_id=str(session_id),
                action=event_name(event),
                guess=event.guess if isinstance(event, GuessSubmitted) else None,
            )
            pipeline_for_action(ctx.action).validate(ctx=ctx, session=session)

        applied = apply_event(session, event, ctx=build_context(r=r))
        if not applied.changed:
            return applied

        session = applied.session
        if applied.final_score is not None:
            best = ScoreTracker(r).record(session.mode, applied.final_score)
            session = session.model_copy(update={"high_score": best})
            applied = replace(applied, session=session)

        save_session(r=r, session=session)
        return applied


async def dispatch_event(*, r: redis.Redis, session_id: UUID, event: SessionEvent) -> Session:
    """Entry point for player actions and timer callbacks.

    Applies an event by:
    - loading the session under a per-session lock
    - validating the action for the current status and mode
    - running the engine transition
    - persisting the session and any new high score
    - canceling / arming the session's timer
    - pushing the snapshot to connected clients
    """

    applied = _apply_locked(r=r, session_id=session_id, event=event)
    session = applied.session
    if not applied.changed:
        logger.debug("Ignored stale %s for session %s", event_name(event), session_id)
        return session

    sid = str(session_id)
    if applied.cancel_timers:
        scheduler.cancel(sid)
    if applied.timer is not None:
        arm_timer(r=r, session=session, timer=applied.timer)

    logger.info("session %s: %s -> %s (score=%d)", sid, event_name(event), session.status.value, session.score)
    await hub.broadcast(sid, snapshot_message(session))
    return session


def arm_timer(*, r: redis.Redis, session: Session, timer: TimerRequest) -> None:
    sid = str(session.session_id)
    session_id = session.session_id
    event: TimerEvent = (
        RevealCompleted(generation=timer.generation)
        if timer.kind == "reveal"
        else ResultElapsed(generation=timer.generation)
    )

    async def _fire() -> None:
        try:
            await dispatch_event(r=r, session_id=session_id, event=event)
        except SessionNotFound:
            logger.info("Session %s went away before its %s timer fired", sid, timer.kind)

    if timer.kind == "result" or not isinstance(session.round, StatDuelRound):
        scheduler.schedule(sid, generation=timer.generation, delay_ms=timer.delay_ms, callback=_fire)
        return

    left_value = session.round.value_of("left")
    right_value = session.round.value_of("right")

    async def _frame(progress: float) -> None:
        if not hub.has_listeners(sid):
            return
        eased = ease_out_cubic(progress)
        await hub.broadcast(
            sid,
            {
                "type": "reveal_frame",
                "session_id": sid,
                "generation": timer.generation,
                "progress": progress,
                "left": round(left_value * eased),
                "right": round(right_value * eased),
            },
        )

    scheduler.schedule_animation(
        sid,
        generation=timer.generation,
        duration_ms=timer.delay_ms,
        frame_ms=get_timings().frame_ms,
        on_frame=_frame,
        on_done=_fire,
    )


async def end_session(*, r: redis.Redis, session_id: UUID) -> bool:
    """Player left: cancel pending timers before the session disappears."""

    scheduler.cancel(str(session_id))
    removed = delete_session(r=r, session_id=session_id)
    if removed:
        await hub.broadcast(str(session_id), {"type": "session_ended", "session_id": str(session_id)})
    return removed
