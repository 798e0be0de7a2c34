from __future__ import annotations

import logging
import random
from uuid import UUID, uuid4

import redis

from pokequiz.api.models import Mode, Session
from pokequiz.catalog.registry import MovePool
from pokequiz.catalog.singleton import get_catalog, get_popular_moves
from pokequiz.config import get_session_ttl_s, get_timings
from pokequiz.core.engine import EngineContext, new_session
from pokequiz.scores import ScoreTracker


logger = logging.getLogger(__name__)

SESSIONS_SET_KEY = "pokequiz:sessions"
SESSION_KEY_PREFIX = "pokequiz:session:"  # + {uuid}


class SessionNotFound(LookupError):
    pass


def _session_key(session_id: UUID) -> str:
    return f"{SESSION_KEY_PREFIX}{session_id}"


def build_context(*, r: redis.Redis, rng: random.Random | None = None) -> EngineContext:
    """Engine inputs for one dispatch. Raises CatalogUnavailableError before the dataset loads."""

    tracker = ScoreTracker(r)
    return EngineContext(
        catalog=get_catalog(),
        popular_moves=get_popular_moves(),
        rng=rng or random.Random(),
        timings=get_timings(),
        high_score_for=tracker.high_score,
    )


def save_session(*, r: redis.Redis, session: Session) -> None:
    r.set(_session_key(session.session_id), session.model_dump_json(), ex=get_session_ttl_s())


def get_session(*, r: redis.Redis, session_id: UUID) -> Session | None:
    raw = r.get(_session_key(session_id))
    if not raw:
        return None
    return Session.model_validate_json(raw)


def require_session(*, r: redis.Redis, session_id: UUID) -> Session:
    session = get_session(r=r, session_id=session_id)
    if session is None:
        raise SessionNotFound(f"Session not found: {session_id}")
    return session


def create_session(*, r: redis.Redis, mode: Mode, move_pool: MovePool) -> Session:
    ctx = build_context(r=r)
    session = new_session(session_id=uuid4(), mode=mode, move_pool=move_pool, ctx=ctx)
    save_session(r=r, session=session)
    r.sadd(SESSIONS_SET_KEY, str(session.session_id))
    logger.info("Created %s session %s", mode.value, session.session_id)
    return session


def delete_session(*, r: redis.Redis, session_id: UUID) -> bool:
    removed = r.delete(_session_key(session_id))
    r.srem(SESSIONS_SET_KEY, str(session_id))
    return bool(removed)


def list_sessions(*, r: redis.Redis) -> list[Session]:
    ids = sorted(r.smembers(SESSIONS_SET_KEY))
    out: list[Session] = []
    for sid in ids:
        try:
            session_id = UUID(sid)
        except ValueError:
            continue
        session = get_session(r=r, session_id=session_id)
        if session is None:
            # Expired via TTL; drop the dangling index entry.
            r.srem(SESSIONS_SET_KEY, sid)
            continue
        out.append(session)
    out.sort(key=lambda s: s.created_at, reverse=True)
    return out
