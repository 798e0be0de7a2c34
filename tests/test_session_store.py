from __future__ import annotations

from uuid import uuid4

import fakeredis
import pytest

from pokequiz.api.models import Mode, SessionStatus
from pokequiz.catalog.registry import MovePool
from pokequiz.lock import SessionBusy, lock_key, session_lock
from pokequiz.session_store import (
    SESSIONS_SET_KEY,
    SessionNotFound,
    create_session,
    delete_session,
    get_session,
    list_sessions,
    require_session,
)


@pytest.fixture()
def r() -> fakeredis.FakeRedis:
    return fakeredis.FakeRedis(decode_responses=True)


def test_create_and_reload_session(r: fakeredis.FakeRedis) -> None:
    session = create_session(r=r, mode=Mode.move_compare, move_pool=MovePool.smogon)

    loaded = get_session(r=r, session_id=session.session_id)

    assert loaded == session
    assert loaded.status == SessionStatus.ready
    assert loaded.move_pool == MovePool.smogon
    assert r.ttl(f"pokequiz:session:{session.session_id}") > 0


def test_require_session_raises_for_unknown_id(r: fakeredis.FakeRedis) -> None:
    with pytest.raises(SessionNotFound):
        require_session(r=r, session_id=uuid4())


def test_list_and_delete(r: fakeredis.FakeRedis) -> None:
    a = create_session(r=r, mode=Mode.stat, move_pool=MovePool.popular)
    b = create_session(r=r, mode=Mode.dex_guess, move_pool=MovePool.popular)

    assert {s.session_id for s in list_sessions(r=r)} == {a.session_id, b.session_id}

    assert delete_session(r=r, session_id=a.session_id)
    assert not delete_session(r=r, session_id=a.session_id)
    assert [s.session_id for s in list_sessions(r=r)] == [b.session_id]


def test_expired_sessions_drop_out_of_the_index(r: fakeredis.FakeRedis) -> None:
    session = create_session(r=r, mode=Mode.stat, move_pool=MovePool.popular)
    r.delete(f"pokequiz:session:{session.session_id}")

    assert list_sessions(r=r) == []
    assert not r.sismember(SESSIONS_SET_KEY, str(session.session_id))


def test_session_lock_rejects_concurrent_holder(r: fakeredis.FakeRedis) -> None:
    with session_lock(r=r, session_id="abc"):
        with pytest.raises(ValueError) as e:
            with session_lock(r=r, session_id="abc"):
                pass
        assert "busy" in str(e.value)

    # Released on exit.
    with session_lock(r=r, session_id="abc"):
        pass


def test_session_lock_holds_a_unique_token(r: fakeredis.FakeRedis) -> None:
    with session_lock(r=r, session_id="abc") as first:
        assert r.get(lock_key("abc")) == first
    with session_lock(r=r, session_id="abc") as second:
        assert second != first

    assert r.get(lock_key("abc")) is None


def test_session_lock_leaves_a_newer_holder_alone(r: fakeredis.FakeRedis) -> None:
    with session_lock(r=r, session_id="abc", ttl_ms=50):
        # Our lease ran out and another process took the lock.
        r.set(lock_key("abc"), "other-holder")

    assert r.get(lock_key("abc")) == "other-holder"
    with pytest.raises(SessionBusy):
        with session_lock(r=r, session_id="abc"):
            pass
