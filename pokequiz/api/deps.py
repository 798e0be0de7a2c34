from __future__ import annotations

from collections.abc import Generator

import redis

from pokequiz.infra.redis_client import get_shared_redis


def get_redis() -> Generator[redis.Redis, None, None]:
    # Not closed per request: timers armed by this request keep using it.
    yield get_shared_redis()
