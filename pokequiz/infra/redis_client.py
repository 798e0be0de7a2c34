from __future__ import annotations

import os

import redis


_CLIENT: redis.Redis | None = None


def get_redis_url() -> str:
    return os.environ.get("REDIS_URL", "redis://localhost:6379/0")


def create_redis() -> redis.Redis:
    # decode_responses=True => strings in/out instead of bytes
    return redis.Redis.from_url(get_redis_url(), decode_responses=True)


def get_shared_redis() -> redis.Redis:
    """Process-wide client.

    Timer callbacks outlive the request that armed them, so they need a client
    that is not closed when the request finishes.
    """

    global _CLIENT
    if _CLIENT is None:
        _CLIENT = create_redis()
    return _CLIENT


def close_shared_redis() -> None:
    global _CLIENT
    if _CLIENT is None:
        return
    try:
        _CLIENT.close()
    finally:
        _CLIENT = None
