from __future__ import annotations

import asyncio
import json
from collections.abc import Callable, Generator
from pathlib import Path
from uuid import UUID, uuid4

import fakeredis
import pytest

from pokequiz.actions import dispatch_event, end_session
from pokequiz.api.models import Mode, Session, SessionStatus
from pokequiz.catalog.registry import MovePool
from pokequiz.core.events import GuessSubmitted, ModeChanged, Restart, ResultElapsed
from pokequiz.scheduler import scheduler
from pokequiz.scores import ScoreTracker, high_score_key
from pokequiz.session_store import SessionNotFound, create_session, get_session


TEST_DATA_DIR = Path(__file__).resolve().parent / "data"


@pytest.fixture()
def r() -> fakeredis.FakeRedis:
    return fakeredis.FakeRedis(decode_responses=True)


@pytest.fixture()
def attack_pair(tmp_path: Path) -> Generator[None, None, None]:
    """Catalog of two creatures that differ only in attack (A=50, B=80)."""

    from pokequiz.catalog.singleton import init_catalog, reset_catalog_for_tests

    doc = {
        "pokemon": [
            {"id": 1, "name": "creature-a", "stats": {"hp": 60, "attack": 50}, "moves": []},
            {"id": 2, "name": "creature-b", "stats": {"hp": 60, "attack": 80}, "moves": []},
        ]
    }
    (tmp_path / "pokemon.json").write_text(json.dumps(doc), encoding="utf-8")
    reset_catalog_for_tests()
    init_catalog(data_dir=tmp_path)
    try:
        yield
    finally:
        reset_catalog_for_tests()
        init_catalog(data_dir=TEST_DATA_DIR)


async def _wait_until(
    r: fakeredis.FakeRedis, session_id: UUID, predicate: Callable[[Session], bool], attempts: int = 200
) -> Session:
    for _ in range(attempts):
        current = get_session(r=r, session_id=session_id)
        if current is not None and predicate(current):
            return current
        await asyncio.sleep(0.01)
    raise AssertionError(f"session never reached expected state: {current}")


@pytest.mark.asyncio
async def test_guess_arms_one_timer_and_restart_cancels_it(r: fakeredis.FakeRedis, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("POKEQUIZ_RESULT_PAUSE_MS", "60000")
    session = create_session(r=r, mode=Mode.move_compare, move_pool=MovePool.all)
    sid = str(session.session_id)

    judged = await dispatch_event(r=r, session_id=session.session_id, event=GuessSubmitted(guess="left"))
    assert judged.status == SessionStatus.result
    assert scheduler.pending_generation(sid) == 0

    restarted = await dispatch_event(r=r, session_id=session.session_id, event=Restart())
    assert restarted.generation == 1
    assert not scheduler.has_pending(sid)


@pytest.mark.asyncio
async def test_stale_timer_event_leaves_session_untouched(r: fakeredis.FakeRedis) -> None:
    session = create_session(r=r, mode=Mode.stat, move_pool=MovePool.popular)

    same = await dispatch_event(r=r, session_id=session.session_id, event=ResultElapsed(generation=5))

    assert same == session
    assert get_session(r=r, session_id=session.session_id) == session


@pytest.mark.asyncio
async def test_timer_chain_runs_to_next_round(r: fakeredis.FakeRedis) -> None:
    session = create_session(r=r, mode=Mode.move_truefalse, move_pool=MovePool.popular)
    answer = session.round.is_true

    await dispatch_event(r=r, session_id=session.session_id, event=GuessSubmitted(guess=answer))
    for _ in range(100):
        current = get_session(r=r, session_id=session.session_id)
        if current.status == SessionStatus.ready:
            break
        await asyncio.sleep(0.01)

    assert current.status == SessionStatus.ready
    assert current.score == 1


@pytest.mark.asyncio
async def test_end_session_cancels_pending_timer(r: fakeredis.FakeRedis, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("POKEQUIZ_RESULT_PAUSE_MS", "60000")
    session = create_session(r=r, mode=Mode.move_compare, move_pool=MovePool.all)
    await dispatch_event(r=r, session_id=session.session_id, event=GuessSubmitted(guess="right"))

    assert await end_session(r=r, session_id=session.session_id)
    assert not scheduler.has_pending(str(session.session_id))
    assert not await end_session(r=r, session_id=session.session_id)


@pytest.mark.asyncio
async def test_unknown_session_raises(r: fakeredis.FakeRedis) -> None:
    with pytest.raises(SessionNotFound):
        await dispatch_event(r=r, session_id=uuid4(), event=Restart())


def _side_of(session: Session, creature_id: int) -> str:
    return "left" if session.round.left.id == creature_id else "right"


@pytest.mark.asyncio
async def test_stat_duel_end_to_end_on_attack(r: fakeredis.FakeRedis, attack_pair: None) -> None:
    session = create_session(r=r, mode=Mode.stat, move_pool=MovePool.all)
    assert session.round.stat == "attack"
    assert {session.round.left.id, session.round.right.id} == {1, 2}

    await dispatch_event(r=r, session_id=session.session_id, event=GuessSubmitted(guess=_side_of(session, 2)))
    scored = await _wait_until(r, session.session_id, lambda s: s.status == SessionStatus.ready)
    assert scored.score == 1
    assert scored.round is not None
    assert {scored.round.left.id, scored.round.right.id} == {1, 2}

    await dispatch_event(r=r, session_id=session.session_id, event=GuessSubmitted(guess=_side_of(scored, 1)))
    over = await _wait_until(r, session.session_id, lambda s: s.status == SessionStatus.gameover)

    assert over.score == 1
    assert over.high_score == 1
    assert ScoreTracker(r).high_score(Mode.stat) == 1
    assert r.get(high_score_key(Mode.stat)) == "1"


@pytest.mark.asyncio
async def test_mode_switch_mid_reveal_leaves_no_live_timer(r: fakeredis.FakeRedis) -> None:
    session = create_session(r=r, mode=Mode.stat, move_pool=MovePool.popular)
    sid = str(session.session_id)

    revealing = await dispatch_event(r=r, session_id=session.session_id, event=GuessSubmitted(guess="left"))
    assert revealing.status == SessionStatus.revealing
    assert scheduler.has_pending(sid)

    switched = await dispatch_event(r=r, session_id=session.session_id, event=ModeChanged(mode=Mode.dex_guess))
    assert not scheduler.has_pending(sid)

    # Well past the reveal and the result pause.
    await asyncio.sleep(0.2)

    assert get_session(r=r, session_id=session.session_id) == switched
    assert switched.status == SessionStatus.ready
    assert switched.mode == Mode.dex_guess
