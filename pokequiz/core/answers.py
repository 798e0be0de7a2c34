from __future__ import annotations

from pokequiz.api.models import DexGuessRound, Guess, MoveMatchRound, MoveTrueFalseRound, Round, StatDuelRound
from pokequiz.catalog.registry import Catalog, normalize_name


SUGGESTION_LIMIT = 8


def normalize(value: str) -> str:
    """Answer normalization: case, punctuation, hyphens and spaces don't count."""

    return normalize_name(value)


def is_correct(question: Round, guess: Guess) -> bool:
    """Verdict for `guess` against `question`. Wrongly shaped guesses are never correct."""

    if isinstance(question, StatDuelRound):
        if guess not in ("left", "right"):
            return False
        other = "right" if guess == "left" else "left"
        return question.value_of(guess) > question.value_of(other)

    if isinstance(question, MoveMatchRound):
        if guess not in ("left", "right"):
            return False
        left_has = question.left.knows(question.move)
        right_has = question.right.knows(question.move)
        if left_has == right_has:
            return False
        return left_has if guess == "left" else right_has

    if isinstance(question, MoveTrueFalseRound):
        if not isinstance(guess, bool):
            return False
        return guess is question.is_true

    if isinstance(question, DexGuessRound):
        if not isinstance(guess, str):
            return False
        return normalize(guess) == normalize(question.expected_answer)

    raise ValueError(f"Unknown round kind: {type(question).__name__}")


def suggest_names(catalog: Catalog, partial: str, *, limit: int = SUGGESTION_LIMIT) -> list[str]:
    """Autocomplete for dex guesses; display only, never affects the verdict."""

    query = normalize(partial)
    if not query:
        return []
    out: list[str] = []
    for name in catalog.names:
        if normalize(name).startswith(query):
            out.append(name)
            if len(out) >= limit:
                break
    return out
