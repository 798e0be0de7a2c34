from __future__ import annotations

from statemachine import State, StateMachine
from statemachine.exceptions import TransitionNotAllowed

from pokequiz.api.models import Session, SessionStatus


class InvalidTransition(ValueError):
    pass


class SessionFSM(StateMachine):
    """FSM guarding Session.status.

    - loading -> ready once the catalog is available
    - ready -> revealing (stat duel) -> result, or ready -> result
    - result -> ready on a correct guess, result -> gameover otherwise
    - dex guess skips the result pause on a wrong answer: ready -> gameover
    - restart (also used for mode changes) goes back to ready from any played state
    The engine computes the new Session; the FSM only guards transitions.
    """

    loading = State(SessionStatus.loading.value, value=SessionStatus.loading.value, initial=True)
    ready = State(SessionStatus.ready.value, value=SessionStatus.ready.value)
    revealing = State(SessionStatus.revealing.value, value=SessionStatus.revealing.value)
    result = State(SessionStatus.result.value, value=SessionStatus.result.value)
    gameover = State(SessionStatus.gameover.value, value=SessionStatus.gameover.value)

    loaded = loading.to(ready)
    reveal = ready.to(revealing)
    judge = ready.to(result) | revealing.to(result)
    advance = result.to(ready)
    lose = result.to(gameover) | ready.to(gameover)
    restart = gameover.to(ready) | result.to(ready) | revealing.to(ready) | ready.to.itself()

    def __init__(self, session: Session):
        self.session = session
        super().__init__(start_value=session.status.value)

    def fire(self, event: str) -> SessionStatus:
        """Run `event` and return the resulting status."""

        try:
            self.send(event)
        except TransitionNotAllowed as e:
            raise InvalidTransition(
                f"Cannot {event} while session is {self.session.status.value}"
            ) from e
        return SessionStatus(str(self.current_state.value))
