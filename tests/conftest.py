from __future__ import annotations

import os
import random
from collections.abc import Generator
from pathlib import Path

import pytest

TEST_DATA_DIR = Path(__file__).resolve().parent / "data"


@pytest.fixture(scope="session", autouse=True)
def _fast_timings_for_tests() -> None:
    """Shorten the timed phases so timer-driven flows finish within a test."""

    os.environ["POKEQUIZ_REVEAL_MS"] = "30"
    os.environ["POKEQUIZ_RESULT_PAUSE_MS"] = "30"
    os.environ["POKEQUIZ_FRAME_MS"] = "10"


@pytest.fixture(scope="session", autouse=True)
def _init_catalog_from_test_fixtures() -> None:
    """Initialize the catalog from `tests/data`.

    This keeps tests hermetic and independent of the real (large) dataset.
    """

    from pokequiz.catalog.singleton import init_catalog, reset_catalog_for_tests

    reset_catalog_for_tests()
    init_catalog(data_dir=TEST_DATA_DIR)


@pytest.fixture()
def catalog():
    from pokequiz.catalog.singleton import get_catalog

    return get_catalog()


@pytest.fixture()
def popular_moves():
    from pokequiz.catalog.singleton import get_popular_moves

    return get_popular_moves()


@pytest.fixture()
def engine_ctx(catalog, popular_moves):
    """Engine context with a seeded rng and an in-memory high score table."""

    from pokequiz.config import EngineTimings
    from pokequiz.core.engine import EngineContext

    best: dict = {}
    return EngineContext(
        catalog=catalog,
        popular_moves=popular_moves,
        rng=random.Random(7),
        timings=EngineTimings(reveal_ms=1500, result_pause_ms=1200, frame_ms=50),
        high_score_for=lambda mode: best.get(mode, 0),
    )


@pytest.fixture()
def client_and_redis() -> Generator:
    """FastAPI TestClient wired to a fakeredis instance.

    The client is entered as a context manager so the event loop (and any
    timers armed by a request) keeps running between requests.
    """

    import fakeredis
    from fastapi.testclient import TestClient

    from pokequiz.api.deps import get_redis
    from pokequiz.main import app

    r = fakeredis.FakeRedis(decode_responses=True)

    def _override() -> Generator[fakeredis.FakeRedis, None, None]:
        yield r

    app.dependency_overrides[get_redis] = _override
    with TestClient(app) as c:
        yield c, r
    app.dependency_overrides.clear()
