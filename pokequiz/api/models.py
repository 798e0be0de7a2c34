from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Annotated, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, computed_field

from pokequiz.catalog.registry import STAT_LABELS, Creature, MovePool, StatKey


class Mode(StrEnum):
    stat = "stat"
    move_compare = "move-compare"
    move_truefalse = "move-truefalse"
    dex_guess = "dex-guess"


class SessionStatus(StrEnum):
    loading = "loading"
    ready = "ready"
    revealing = "revealing"
    result = "result"
    gameover = "gameover"


Side = Literal["left", "right"]


class StatDuelRound(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["stat"] = "stat"
    left: Creature
    right: Creature
    stat: StatKey

    @computed_field
    @property
    def stat_label(self) -> str:
        return STAT_LABELS[self.stat]

    def value_of(self, side: Side) -> int:
        mon = self.left if side == "left" else self.right
        return mon.stat(self.stat)


class MoveMatchRound(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["move-compare"] = "move-compare"
    left: Creature
    right: Creature
    move: str


class MoveTrueFalseRound(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["move-truefalse"] = "move-truefalse"
    focus: Creature
    move: str

    @property
    def is_true(self) -> bool:
        # Derived from the move set, never stored.
        return self.focus.knows(self.move)


class DexGuessRound(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["dex-guess"] = "dex-guess"
    focus: Creature
    expected_answer: str


Round = Annotated[
    StatDuelRound | MoveMatchRound | MoveTrueFalseRound | DexGuessRound,
    Field(discriminator="kind"),
]

Guess = bool | str


class Feedback(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str
    tone: Literal["correct", "wrong"]


class Session(BaseModel):
    """One active play of a mode.

    Value type: transitions build a new Session with `model_copy(update=...)`.
    """

    model_config = ConfigDict(frozen=True)

    session_id: UUID
    mode: Mode
    status: SessionStatus = SessionStatus.loading
    move_pool: MovePool = MovePool.popular

    round: Round | None = None
    guess: Guess | None = None

    score: int = Field(default=0, ge=0)
    # Persisted best for this mode, read when the session enters the mode.
    high_score: int = Field(default=0, ge=0)

    # Stat duel carry-over bookkeeping.
    carry_creature_id: int | None = None
    previous_pair: tuple[int, int] | None = None

    # Bumped on restart / mode change; timer events from older generations are ignored.
    generation: int = 0

    feedback: Feedback | None = None
    # True when the round generator exhausted its attempts.
    round_unavailable: bool = False

    created_at: datetime
    last_updated_at: datetime


class SessionCreateRequest(BaseModel):
    mode: Mode = Mode.stat
    move_pool: MovePool = MovePool.popular


class GuessRequest(BaseModel):
    # "left"/"right" for two-sided modes, true/false for move-truefalse, free text for dex-guess.
    guess: Guess


class ModeChangeRequest(BaseModel):
    mode: Mode


class MovePoolRequest(BaseModel):
    move_pool: MovePool


class SuggestionsResponse(BaseModel):
    query: str
    names: list[str]


class HighScoresResponse(BaseModel):
    high_scores: dict[Mode, int]


class CatalogSummary(BaseModel):
    count: int
    generated_at: str | None = None
    popular_moves_month: str | None = None
    move_pools: list[MovePool]
