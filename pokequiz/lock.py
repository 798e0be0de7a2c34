from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from uuid import uuid4

import redis


logger = logging.getLogger(__name__)


class SessionBusy(ValueError):
    pass


def lock_key(session_id: str) -> str:
    return f"pokequiz:lock:session:{session_id}"


def _release(r: redis.Redis, key: str, token: str) -> None:
    """Delete the lock only while it still holds our token."""

    with r.pipeline() as pipe:
        try:
            pipe.watch(key)
            if pipe.get(key) != token:
                pipe.unwatch()
                logger.warning("Lock %s expired or changed hands before release", key)
                return
            pipe.multi()
            pipe.delete(key)
            pipe.execute()
        except redis.WatchError:
            logger.warning("Lock %s changed hands during release", key)


@contextmanager
def session_lock(*, r: redis.Redis, session_id: str, ttl_ms: int = 5_000) -> Iterator[str]:
    """Per-session lock around a dispatch; yields the holder token.

    Dispatches never await while holding it, so contention means a bug or a
    second process working on the same session.
    """

    key = lock_key(session_id)
    token = uuid4().hex
    if not r.set(key, token, nx=True, px=ttl_ms):
        raise SessionBusy("Session is busy")
    try:
        yield token
    finally:
        _release(r, key, token)
