from __future__ import annotations

from datetime import UTC, datetime
from uuid import uuid4

import pytest

from pokequiz.api.models import Mode, Session, SessionStatus
from pokequiz.turn_processing.validators import ValidationContext, pipeline_for_action


def _session(catalog, *, mode: Mode = Mode.stat, status: SessionStatus = SessionStatus.ready, with_round: bool = True):
    from pokequiz.api.models import DexGuessRound, MoveTrueFalseRound, StatDuelRound

    rounds = {
        Mode.stat: StatDuelRound(left=catalog.get(1), right=catalog.get(4), stat="speed"),
        Mode.move_truefalse: MoveTrueFalseRound(focus=catalog.get(1), move="tackle"),
        Mode.dex_guess: DexGuessRound(focus=catalog.get(1), expected_answer="bulbasaur"),
    }
    now = datetime.now(tz=UTC)
    return Session(
        session_id=uuid4(),
        mode=mode,
        status=status,
        round=rounds.get(mode) if with_round else None,
        created_at=now,
        last_updated_at=now,
    )


def _ctx(session: Session, action: str, guess=None) -> ValidationContext:
    return ValidationContext(session_id=str(session.session_id), action=action, guess=guess)


def test_status_validator_denies_wrong_status(catalog) -> None:
    session = _session(catalog, status=SessionStatus.revealing)

    with pytest.raises(ValueError) as e:
        pipeline_for_action("guess").validate(ctx=_ctx(session, "guess", "left"), session=session)

    assert "not allowed" in str(e.value)
    assert "revealing" in str(e.value)


def test_guess_needs_a_round(catalog) -> None:
    session = _session(catalog, with_round=False)

    with pytest.raises(ValueError) as e:
        pipeline_for_action("guess").validate(ctx=_ctx(session, "guess", "left"), session=session)

    assert str(e.value) == "No round to answer yet"


@pytest.mark.parametrize(
    ("mode", "guess"),
    [
        (Mode.stat, True),
        (Mode.stat, "middle"),
        (Mode.move_truefalse, "true"),
        (Mode.dex_guess, False),
    ],
)
def test_guess_shape_is_checked_per_mode(catalog, mode: Mode, guess) -> None:
    session = _session(catalog, mode=mode)

    with pytest.raises(ValueError) as e:
        pipeline_for_action("guess").validate(ctx=_ctx(session, "guess", guess), session=session)

    assert "expects" in str(e.value)


@pytest.mark.parametrize(
    ("mode", "guess"),
    [(Mode.stat, "right"), (Mode.move_truefalse, False), (Mode.dex_guess, "Bulbasaur")],
)
def test_well_formed_guess_passes(catalog, mode: Mode, guess) -> None:
    session = _session(catalog, mode=mode)
    pipeline_for_action("guess").validate(ctx=_ctx(session, "guess", guess), session=session)


def test_retry_only_while_ready(catalog) -> None:
    session = _session(catalog, status=SessionStatus.gameover)

    with pytest.raises(ValueError):
        pipeline_for_action("retry").validate(ctx=_ctx(session, "retry"), session=session)


def test_restart_allowed_from_any_played_status(catalog) -> None:
    for status in (SessionStatus.ready, SessionStatus.revealing, SessionStatus.result, SessionStatus.gameover):
        session = _session(catalog, status=status)
        pipeline_for_action("restart").validate(ctx=_ctx(session, "restart"), session=session)


def test_unknown_action_pipeline_raises() -> None:
    with pytest.raises(ValueError) as e:
        pipeline_for_action("nope")
    assert "Unknown action" in str(e.value)
