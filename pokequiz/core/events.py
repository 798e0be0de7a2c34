from __future__ import annotations

from dataclasses import dataclass

from pokequiz.api.models import Guess, Mode
from pokequiz.catalog.registry import MovePool


@dataclass(frozen=True, slots=True)
class CatalogLoaded:
    pass


@dataclass(frozen=True, slots=True)
class GuessSubmitted:
    guess: Guess


@dataclass(frozen=True, slots=True)
class RevealCompleted:
    generation: int


@dataclass(frozen=True, slots=True)
class ResultElapsed:
    generation: int


@dataclass(frozen=True, slots=True)
class Restart:
    pass


@dataclass(frozen=True, slots=True)
class ModeChanged:
    mode: Mode


@dataclass(frozen=True, slots=True)
class MovePoolChanged:
    move_pool: MovePool


@dataclass(frozen=True, slots=True)
class RetryRound:
    pass


SessionEvent = (
    CatalogLoaded
    | GuessSubmitted
    | RevealCompleted
    | ResultElapsed
    | Restart
    | ModeChanged
    | MovePoolChanged
    | RetryRound
)

# Events fired by the scheduler rather than by the player.
TimerEvent = RevealCompleted | ResultElapsed


def event_name(event: SessionEvent) -> str:
    return {
        CatalogLoaded: "catalog_loaded",
        GuessSubmitted: "guess",
        RevealCompleted: "reveal_completed",
        ResultElapsed: "result_elapsed",
        Restart: "restart",
        ModeChanged: "mode",
        MovePoolChanged: "move_pool",
        RetryRound: "retry",
    }[type(event)]
