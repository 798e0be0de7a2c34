from __future__ import annotations

import fakeredis

from pokequiz.api.models import Mode
from pokequiz.scores import ScoreTracker, high_score_key


def test_keys_are_stable_per_mode() -> None:
    assert high_score_key(Mode.stat) == "pokequiz:stat-guesser-high-score"
    assert high_score_key(Mode.dex_guess) == "pokequiz:dex-guess-high-score"


def test_high_score_only_goes_up() -> None:
    r = fakeredis.FakeRedis(decode_responses=True)
    tracker = ScoreTracker(r)

    assert tracker.record(Mode.move_compare, 3) == 3
    assert tracker.record(Mode.move_compare, 2) == 3
    assert tracker.record(Mode.move_compare, 5) == 5
    assert r.get(high_score_key(Mode.move_compare)) == "5"
    assert tracker.high_score(Mode.stat) == 0


def test_zero_score_never_writes() -> None:
    r = fakeredis.FakeRedis(decode_responses=True)

    assert ScoreTracker(r).record(Mode.stat, 0) == 0
    assert r.get(high_score_key(Mode.stat)) is None


def test_garbage_value_reads_as_zero() -> None:
    r = fakeredis.FakeRedis(decode_responses=True)
    r.set(high_score_key(Mode.dex_guess), "lots")
    tracker = ScoreTracker(r)

    assert tracker.high_score(Mode.dex_guess) == 0
    assert tracker.record(Mode.dex_guess, 2) == 2


def test_high_scores_lists_every_mode() -> None:
    r = fakeredis.FakeRedis(decode_responses=True)
    ScoreTracker(r).record(Mode.move_truefalse, 4)

    scores = ScoreTracker(r).high_scores()

    assert set(scores) == set(Mode)
    assert scores[Mode.move_truefalse] == 4
