"""Round generators, one per quiz mode.

Each generator is rejection sampling on top of `sample_until`. When the
attempt limit runs out the generator returns None instead of a round with an
ambiguous answer.
"""

from __future__ import annotations

import logging
import random

from pokequiz.api.models import DexGuessRound, MoveMatchRound, MoveTrueFalseRound, StatDuelRound
from pokequiz.catalog.registry import STAT_KEYS, Catalog, Creature
from pokequiz.core.sampler import pick_move, pick_random, sample_until


logger = logging.getLogger(__name__)

ROUND_GUARD = 40
OUTER_ATTEMPTS = 80


def stat_duel_round(
    catalog: Catalog,
    *,
    rng: random.Random,
    keep: Creature | None = None,
    avoid_pair: tuple[int, int] | None = None,
) -> StatDuelRound | None:
    """Two creatures and a stat key on which their values differ.

    `keep` is the carried-over creature from a won round; `avoid_pair` is the
    previous round's pair, which must not be shown again right away.
    With only two creatures there is no other pair, so `avoid_pair` is ignored.
    """

    pool = catalog.creatures
    if len(pool) < 2:
        return None

    left = keep or pick_random(pool, rng=rng)
    if left is None:
        return None
    avoid = frozenset(avoid_pair) if avoid_pair and len(pool) > 2 else None

    def draw() -> StatDuelRound | None:
        right = pick_random(pool, rng=rng, exclude_id=left.id)
        stat = rng.choice(STAT_KEYS)
        if right is None or right.id == left.id:
            return None
        if left.stat(stat) == right.stat(stat):
            return None
        if avoid is not None and frozenset((left.id, right.id)) == avoid:
            return None
        return StatDuelRound(left=left, right=right, stat=stat)

    found = sample_until(draw, max_attempts=ROUND_GUARD)
    if found is None:
        logger.warning("stat duel: no distinct pair for creature %s after %d attempts", left.id, ROUND_GUARD)
    return found


def _non_learner(pool: tuple[Creature, ...], *, learner: Creature, move: str, rng: random.Random) -> Creature | None:
    candidate = pick_random(pool, rng=rng, exclude_id=learner.id)
    if candidate is None or candidate.id == learner.id or candidate.knows(move):
        return None
    return candidate


def move_match_round(catalog: Catalog, *, rng: random.Random, move_set: frozenset[str] | None) -> MoveMatchRound | None:
    """Two creatures and a move exactly one of them learns."""

    pool = catalog.creatures
    if len(pool) < 2:
        return None

    def draw() -> MoveMatchRound | None:
        learner = pick_random(pool, rng=rng)
        if learner is None:
            return None
        move = pick_move(learner, rng=rng, move_set=move_set)
        if move is None:
            return None
        other = sample_until(
            lambda: _non_learner(pool, learner=learner, move=move, rng=rng),
            max_attempts=ROUND_GUARD,
        )
        if other is None:
            return None
        # Place the learner on a random side so "left" is not always the answer.
        if rng.random() < 0.5:
            return MoveMatchRound(left=learner, right=other, move=move)
        return MoveMatchRound(left=other, right=learner, move=move)

    found = sample_until(draw, max_attempts=OUTER_ATTEMPTS)
    if found is None:
        logger.warning("move match: no round after %d attempts", OUTER_ATTEMPTS)
    return found


def _foreign_move(
    pool: tuple[Creature, ...],
    *,
    focus: Creature,
    rng: random.Random,
    move_set: frozenset[str] | None,
) -> str | None:
    other = pick_random(pool, rng=rng, exclude_id=focus.id)
    if other is None or other.id == focus.id:
        return None
    move = pick_move(other, rng=rng, move_set=move_set)
    if move is None or focus.knows(move):
        return None
    return move


def move_true_false_round(
    catalog: Catalog,
    *,
    rng: random.Random,
    move_set: frozenset[str] | None,
) -> MoveTrueFalseRound | None:
    """A creature and a move; half the time the creature learns it."""

    pool = catalog.creatures
    if not pool:
        return None

    def draw() -> MoveTrueFalseRound | None:
        focus = pick_random(pool, rng=rng)
        if focus is None:
            return None
        own_move = pick_move(focus, rng=rng, move_set=move_set)
        if own_move is None:
            return None
        if rng.random() < 0.5:
            return MoveTrueFalseRound(focus=focus, move=own_move)
        false_move = sample_until(
            lambda: _foreign_move(pool, focus=focus, rng=rng, move_set=move_set),
            max_attempts=ROUND_GUARD,
        )
        if false_move is None:
            return None
        return MoveTrueFalseRound(focus=focus, move=false_move)

    found = sample_until(draw, max_attempts=OUTER_ATTEMPTS)
    if found is None:
        logger.warning("move true/false: no round after %d attempts", OUTER_ATTEMPTS)
    return found


def dex_guess_round(catalog: Catalog, *, rng: random.Random) -> DexGuessRound | None:
    """A creature with a Pokédex entry; the answer is its canonical name."""

    pool = catalog.creatures
    if not pool:
        return None

    def draw() -> DexGuessRound | None:
        pick = pick_random(pool, rng=rng)
        if pick is None or not pick.flavor_text:
            return None
        return DexGuessRound(focus=pick, expected_answer=pick.name)

    found = sample_until(draw, max_attempts=ROUND_GUARD)
    if found is None:
        logger.warning("dex guess: no creature with flavor text after %d attempts", ROUND_GUARD)
    return found
