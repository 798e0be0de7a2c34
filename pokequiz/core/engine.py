"""Session transition function.

`apply_event(session, event, ctx=...)` is pure apart from the rng in the
context: it returns the next Session plus the side effects the caller must
perform (arm a timer, cancel timers, persist a final score). This keeps the
whole state machine testable without Redis, asyncio or a renderer.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, Literal
from uuid import UUID

from pokequiz.api.models import (
    DexGuessRound,
    Feedback,
    Mode,
    Round,
    Session,
    SessionStatus,
    StatDuelRound,
)
from pokequiz.catalog.registry import Catalog, Creature, MovePool, PopularMoves, resolve_move_pool
from pokequiz.config import EngineTimings
from pokequiz.core.answers import is_correct
from pokequiz.core.events import (
    CatalogLoaded,
    GuessSubmitted,
    ModeChanged,
    MovePoolChanged,
    ResultElapsed,
    RetryRound,
    RevealCompleted,
    Restart,
    SessionEvent,
)
from pokequiz.core.rounds import dex_guess_round, move_match_round, move_true_false_round, stat_duel_round
from pokequiz.fsm import InvalidTransition, SessionFSM


logger = logging.getLogger(__name__)

CORRECT = Feedback(text="Correct!", tone="correct")
WRONG = Feedback(text="Wrong!", tone="wrong")
GAME_OVER = Feedback(text="Game Over", tone="wrong")


@dataclass(frozen=True, slots=True)
class EngineContext:
    catalog: Catalog
    popular_moves: PopularMoves | None
    rng: random.Random
    timings: EngineTimings
    # Persisted best score for a mode; consulted when a session enters a mode.
    high_score_for: Callable[[Mode], int]


@dataclass(frozen=True, slots=True)
class TimerRequest:
    kind: Literal["reveal", "result"]
    delay_ms: int
    generation: int


@dataclass(frozen=True, slots=True)
class AppliedEvent:
    """Result of applying an event.

    - `changed`: False when the event was a stale no-op.
    - `timer`: the single timer to arm for this session, if any.
    - `cancel_timers`: pending timers belong to a superseded session.
    - `final_score`: streak that just ended; feed it to the score tracker.
    """

    session: Session
    changed: bool = True
    timer: TimerRequest | None = None
    cancel_timers: bool = False
    final_score: int | None = None


def _now() -> datetime:
    return datetime.now(tz=UTC)


def _update(session: Session, **changes: Any) -> Session:
    changes["last_updated_at"] = _now()
    return session.model_copy(update=changes)


def effective_move_pool(pool: MovePool, popular: PopularMoves | None) -> MovePool:
    # Without curated data every filter degrades to "all".
    return pool if popular is not None else MovePool.all


def generate_round(
    session: Session,
    *,
    ctx: EngineContext,
    keep: Creature | None = None,
    avoid_pair: tuple[int, int] | None = None,
) -> Round | None:
    move_set = resolve_move_pool(ctx.popular_moves, session.move_pool)
    if session.mode == Mode.stat:
        return stat_duel_round(ctx.catalog, rng=ctx.rng, keep=keep, avoid_pair=avoid_pair)
    if session.mode == Mode.move_compare:
        return move_match_round(ctx.catalog, rng=ctx.rng, move_set=move_set)
    if session.mode == Mode.move_truefalse:
        return move_true_false_round(ctx.catalog, rng=ctx.rng, move_set=move_set)
    return dex_guess_round(ctx.catalog, rng=ctx.rng)


def _with_round(session: Session, next_round: Round | None, **changes: Any) -> Session:
    if next_round is None:
        logger.warning("session %s: no valid %s round, waiting for retry", session.session_id, session.mode.value)
    return _update(session, round=next_round, round_unavailable=next_round is None, guess=None, **changes)


def new_session(
    *,
    session_id: UUID,
    mode: Mode,
    move_pool: MovePool,
    ctx: EngineContext,
) -> Session:
    """A fresh session in `loading`, already moved to `ready` with a first round."""

    now = _now()
    session = Session(
        session_id=session_id,
        mode=mode,
        status=SessionStatus.loading,
        move_pool=effective_move_pool(move_pool, ctx.popular_moves),
        high_score=ctx.high_score_for(mode),
        created_at=now,
        last_updated_at=now,
    )
    return apply_event(session, CatalogLoaded(), ctx=ctx).session


def _reset(session: Session, *, ctx: EngineContext, mode: Mode) -> AppliedEvent:
    fsm = SessionFSM(session)
    status = fsm.fire("restart")
    base = session.model_copy(update={"mode": mode})
    next_round = generate_round(base, ctx=ctx)
    next_session = _with_round(
        base,
        next_round,
        status=status,
        score=0,
        carry_creature_id=None,
        previous_pair=None,
        feedback=None,
        generation=session.generation + 1,
        high_score=ctx.high_score_for(mode) if mode != session.mode else session.high_score,
    )
    return AppliedEvent(session=next_session, cancel_timers=True)


def _on_guess(session: Session, event: GuessSubmitted, *, ctx: EngineContext) -> AppliedEvent:
    if session.status != SessionStatus.ready:
        raise InvalidTransition(f"Cannot guess while session is {session.status.value}")
    if session.round is None:
        raise InvalidTransition("No round to answer yet")

    fsm = SessionFSM(session)
    result_timer = TimerRequest(kind="result", delay_ms=ctx.timings.result_pause_ms, generation=session.generation)

    if session.mode == Mode.stat:
        status = fsm.fire("reveal")
        reveal_timer = TimerRequest(kind="reveal", delay_ms=ctx.timings.reveal_ms, generation=session.generation)
        return AppliedEvent(session=_update(session, status=status, guess=event.guess), timer=reveal_timer)

    correct = is_correct(session.round, event.guess)

    if session.mode == Mode.dex_guess:
        # Dex guess scores on submit and only pauses on a correct answer.
        if correct:
            status = fsm.fire("judge")
            next_session = _update(session, status=status, guess=event.guess, score=session.score + 1, feedback=CORRECT)
            return AppliedEvent(session=next_session, timer=result_timer)
        status = fsm.fire("lose")
        next_session = _update(session, status=status, guess=event.guess, feedback=GAME_OVER)
        return AppliedEvent(session=next_session, final_score=session.score)

    status = fsm.fire("judge")
    next_session = _update(session, status=status, guess=event.guess, feedback=CORRECT if correct else WRONG)
    return AppliedEvent(session=next_session, timer=result_timer)


def _on_reveal_completed(session: Session, event: RevealCompleted, *, ctx: EngineContext) -> AppliedEvent:
    if event.generation != session.generation or session.status != SessionStatus.revealing:
        return AppliedEvent(session=session, changed=False)
    if session.round is None or session.guess is None:
        raise InvalidTransition("Cannot reveal without a round and a guess")

    status = SessionFSM(session).fire("judge")
    correct = is_correct(session.round, session.guess)
    next_session = _update(session, status=status, feedback=CORRECT if correct else WRONG)
    timer = TimerRequest(kind="result", delay_ms=ctx.timings.result_pause_ms, generation=session.generation)
    return AppliedEvent(session=next_session, timer=timer)


def _carry_over(session: Session, duel: StatDuelRound) -> Creature:
    """The creature that stays in play after a won stat duel.

    The winner stays, unless it already survived the previous round; then the
    loser stays, so the same creature is not kept forever.
    """

    winner, loser = (duel.left, duel.right) if session.guess == "left" else (duel.right, duel.left)
    return loser if winner.id == session.carry_creature_id else winner


def _on_result_elapsed(session: Session, event: ResultElapsed, *, ctx: EngineContext) -> AppliedEvent:
    if event.generation != session.generation or session.status != SessionStatus.result:
        return AppliedEvent(session=session, changed=False)
    if session.round is None:
        raise InvalidTransition("No round to leave the result pause from")

    fsm = SessionFSM(session)

    if isinstance(session.round, DexGuessRound):
        # Already scored on submit; a dex result is always a correct one.
        status = fsm.fire("advance")
        return AppliedEvent(session=_with_round(session, generate_round(session, ctx=ctx), status=status, feedback=None))

    correct = session.guess is not None and is_correct(session.round, session.guess)
    if not correct:
        status = fsm.fire("lose")
        next_session = _update(session, status=status, feedback=GAME_OVER)
        return AppliedEvent(session=next_session, final_score=session.score)

    status = fsm.fire("advance")
    if isinstance(session.round, StatDuelRound):
        carry = _carry_over(session, session.round)
        pair = (session.round.left.id, session.round.right.id)
        next_round = generate_round(session, ctx=ctx, keep=carry, avoid_pair=pair)
        next_session = _with_round(
            session,
            next_round,
            status=status,
            score=session.score + 1,
            carry_creature_id=carry.id,
            previous_pair=pair,
            feedback=None,
        )
        return AppliedEvent(session=next_session)

    next_round = generate_round(session, ctx=ctx)
    return AppliedEvent(session=_with_round(session, next_round, status=status, score=session.score + 1, feedback=None))


def _on_move_pool_changed(session: Session, event: MovePoolChanged, *, ctx: EngineContext) -> AppliedEvent:
    pool = effective_move_pool(event.move_pool, ctx.popular_moves)
    next_session = _update(session, move_pool=pool)
    # The filter applies to the next round; only regenerate when nothing is on screen.
    if next_session.status == SessionStatus.ready and next_session.round is None:
        next_session = _with_round(next_session, generate_round(next_session, ctx=ctx))
    return AppliedEvent(session=next_session)


def _on_retry(session: Session, *, ctx: EngineContext) -> AppliedEvent:
    if session.status != SessionStatus.ready:
        raise InvalidTransition(f"Cannot retry while session is {session.status.value}")
    if session.round is not None:
        return AppliedEvent(session=session, changed=False)
    keep = ctx.catalog.get(session.carry_creature_id) if session.carry_creature_id is not None else None
    next_round = generate_round(session, ctx=ctx, keep=keep, avoid_pair=session.previous_pair)
    return AppliedEvent(session=_with_round(session, next_round))


def apply_event(session: Session, event: SessionEvent, *, ctx: EngineContext) -> AppliedEvent:
    if isinstance(event, CatalogLoaded):
        if session.status != SessionStatus.loading:
            return AppliedEvent(session=session, changed=False)
        status = SessionFSM(session).fire("loaded")
        return AppliedEvent(session=_with_round(session, generate_round(session, ctx=ctx), status=status))

    if isinstance(event, GuessSubmitted):
        return _on_guess(session, event, ctx=ctx)

    if isinstance(event, RevealCompleted):
        return _on_reveal_completed(session, event, ctx=ctx)

    if isinstance(event, ResultElapsed):
        return _on_result_elapsed(session, event, ctx=ctx)

    if isinstance(event, Restart):
        if session.status == SessionStatus.loading:
            raise InvalidTransition("Cannot restart before the catalog is loaded")
        return _reset(session, ctx=ctx, mode=session.mode)

    if isinstance(event, ModeChanged):
        if session.status == SessionStatus.loading:
            return AppliedEvent(
                session=_update(session, mode=event.mode, high_score=ctx.high_score_for(event.mode)),
                cancel_timers=True,
            )
        return _reset(session, ctx=ctx, mode=event.mode)

    if isinstance(event, MovePoolChanged):
        return _on_move_pool_changed(session, event, ctx=ctx)

    if isinstance(event, RetryRound):
        return _on_retry(session, ctx=ctx)

    raise ValueError(f"Unknown event: {event!r}")
