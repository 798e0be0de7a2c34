from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from pokequiz.api.models import Guess, Mode, Session, SessionStatus


@dataclass(frozen=True, slots=True)
class ValidationContext:
    """Inputs available to validators.

    Keep this tight and serializable-ish so we can safely log it.
    """

    session_id: str
    action: str
    guess: Guess | None = None


class ActionValidator(ABC):
    """A small, composable validation unit for an incoming action."""

    @abstractmethod
    def validate(self, *, ctx: ValidationContext, session: Session) -> None:
        raise NotImplementedError


@dataclass(frozen=True, slots=True)
class StatusValidator(ActionValidator):
    """Validates the session status for a given action."""

    allowed_statuses: frozenset[SessionStatus]

    def validate(self, *, ctx: ValidationContext, session: Session) -> None:
        if session.status not in self.allowed_statuses:
            allowed = ",".join(sorted(s.value for s in self.allowed_statuses))
            raise ValueError(
                f"Action '{ctx.action}' not allowed while '{session.status.value}' (allowed: {allowed})"
            )


@dataclass(frozen=True, slots=True)
class PendingRoundValidator(ActionValidator):
    """A guess needs a round on screen."""

    def validate(self, *, ctx: ValidationContext, session: Session) -> None:
        if session.round is None:
            raise ValueError("No round to answer yet")


@dataclass(frozen=True, slots=True)
class GuessShapeValidator(ActionValidator):
    """The guess must have the shape the mode expects."""

    def validate(self, *, ctx: ValidationContext, session: Session) -> None:
        guess = ctx.guess
        if session.mode in (Mode.stat, Mode.move_compare):
            if guess not in ("left", "right"):
                raise ValueError(f"Mode '{session.mode.value}' expects 'left' or 'right'")
        elif session.mode == Mode.move_truefalse:
            if not isinstance(guess, bool):
                raise ValueError("Mode 'move-truefalse' expects true or false")
        elif not isinstance(guess, str):
            raise ValueError("Mode 'dex-guess' expects a text answer")


@dataclass(frozen=True, slots=True)
class ValidatorPipeline:
    validators: tuple[ActionValidator, ...]

    def validate(self, *, ctx: ValidationContext, session: Session) -> None:
        for v in self.validators:
            v.validate(ctx=ctx, session=session)


_PLAYED = frozenset({SessionStatus.ready, SessionStatus.revealing, SessionStatus.result, SessionStatus.gameover})

# Timer events are not listed: they come from the scheduler and are checked by generation instead.
DEFAULT_ACTION_PIPELINES: dict[str, ValidatorPipeline] = {
    "guess": ValidatorPipeline(
        validators=(
            StatusValidator(allowed_statuses=frozenset({SessionStatus.ready})),
            PendingRoundValidator(),
            GuessShapeValidator(),
        )
    ),
    "restart": ValidatorPipeline(validators=(StatusValidator(allowed_statuses=_PLAYED),)),
    "retry": ValidatorPipeline(validators=(StatusValidator(allowed_statuses=frozenset({SessionStatus.ready})),)),
    "mode": ValidatorPipeline(validators=()),
    "move_pool": ValidatorPipeline(validators=()),
}


def pipeline_for_action(action: str) -> ValidatorPipeline:
    pipe = DEFAULT_ACTION_PIPELINES.get(action)
    if pipe is None:
        raise ValueError(f"Unknown action: {action}")
    return pipe
