from __future__ import annotations

import random
from collections.abc import Callable, Sequence
from typing import TypeVar

from pokequiz.catalog.registry import Creature, normalize_name


T = TypeVar("T")

# Redraw limit for avoiding an excluded id.
EXCLUDE_GUARD = 40


def pick_random(pool: Sequence[Creature], *, rng: random.Random, exclude_id: int | None = None) -> Creature | None:
    """Uniform pick from `pool`, redrawing to avoid `exclude_id`.

    After EXCLUDE_GUARD redraws the last draw is returned even if it is the
    excluded creature; callers reject it themselves when that matters.
    """

    if not pool:
        return None
    candidate = rng.choice(pool)
    guard = 0
    while exclude_id is not None and candidate.id == exclude_id and guard < EXCLUDE_GUARD:
        candidate = rng.choice(pool)
        guard += 1
    return candidate


def pick_move(creature: Creature, *, rng: random.Random, move_set: frozenset[str] | None) -> str | None:
    # `move_set` holds normalized keys: usage stats spell "stealthrock" where the catalog has "stealth-rock".
    pool = creature.moves if move_set is None else frozenset(m for m in creature.moves if normalize_name(m) in move_set)
    if not pool:
        return None
    # Sorted so a seeded rng gives the same pick regardless of set ordering.
    return rng.choice(sorted(pool))


def sample_until(draw: Callable[[], T | None], *, max_attempts: int) -> T | None:
    """Call `draw` until it yields a candidate.

    `draw` returns None to reject an attempt. Returns None once `max_attempts`
    attempts were rejected, meaning "infeasible for now".
    """

    for _ in range(max_attempts):
        candidate = draw()
        if candidate is not None:
            return candidate
    return None
