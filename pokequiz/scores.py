from __future__ import annotations

import logging

import redis

from pokequiz.api.models import Mode


logger = logging.getLogger(__name__)

HIGH_SCORE_KEY_PREFIX = "pokequiz:"

# Stable per-mode keys; kept identical to the browser build's storage keys.
HIGH_SCORE_KEYS: dict[Mode, str] = {
    Mode.stat: "stat-guesser-high-score",
    Mode.move_compare: "move-compare-high-score",
    Mode.move_truefalse: "move-truefalse-high-score",
    Mode.dex_guess: "dex-guess-high-score",
}


def high_score_key(mode: Mode) -> str:
    return f"{HIGH_SCORE_KEY_PREFIX}{HIGH_SCORE_KEYS[mode]}"


class ScoreTracker:
    """Persisted best score per mode. Values only ever go up."""

    def __init__(self, r: redis.Redis) -> None:
        self._r = r

    def high_score(self, mode: Mode) -> int:
        raw = self._r.get(high_score_key(mode))
        if not raw:
            return 0
        try:
            value = int(raw)
        except ValueError:
            logger.warning("Ignoring non-numeric high score %r for %s", raw, mode.value)
            return 0
        return max(value, 0)

    def record(self, mode: Mode, score: int) -> int:
        """Offer a finished streak; returns max(persisted, score)."""

        current = self.high_score(mode)
        best = max(current, score)
        # A fresh session scoring 0 never writes.
        if best > current and best > 0:
            self._r.set(high_score_key(mode), str(best))
            logger.info("New %s high score: %d", mode.value, best)
        return best

    def high_scores(self) -> dict[Mode, int]:
        return {mode: self.high_score(mode) for mode in Mode}
