from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass


logger = logging.getLogger(__name__)

Callback = Callable[[], Awaitable[None]]
FrameCallback = Callable[[float], Awaitable[None]]


def ease_out_cubic(progress: float) -> float:
    progress = min(max(progress, 0.0), 1.0)
    return 1 - (1 - progress) ** 3


@dataclass(slots=True)
class _Pending:
    generation: int
    task: asyncio.Task[None]


class SessionScheduler:
    """Cancelable timers keyed by session id.

    Contract:
      - at most one pending task per session; scheduling replaces (and cancels) the previous one.
      - `cancel(session_id)` must be called on mode change, restart and teardown.
      - each task carries the session generation that armed it, so the callback
        can be ignored when the session has moved on.
    """

    def __init__(self, *, clock: Callable[[], float] = time.monotonic) -> None:
        self._pending: dict[str, _Pending] = {}
        self._clock = clock

    def schedule(self, session_id: str, *, generation: int, delay_ms: int, callback: Callback) -> None:
        self.cancel(session_id)

        async def _run() -> None:
            await asyncio.sleep(max(delay_ms, 0) / 1000)
            await self._complete(session_id, callback)

        self._start(session_id, generation, _run())

    def schedule_animation(
        self,
        session_id: str,
        *,
        generation: int,
        duration_ms: int,
        frame_ms: int,
        on_frame: FrameCallback,
        on_done: Callback,
    ) -> None:
        """Run `on_frame(progress)` every `frame_ms` until `duration_ms` elapsed, then `on_done`.

        Progress comes from the clock, not from the number of frames, so slow
        frames shorten the animation instead of delaying the completion.
        """

        self.cancel(session_id)

        async def _run() -> None:
            start = self._clock()
            while True:
                elapsed_ms = (self._clock() - start) * 1000
                progress = 1.0 if duration_ms <= 0 else min(elapsed_ms / duration_ms, 1.0)
                await on_frame(progress)
                if progress >= 1.0:
                    break
                await asyncio.sleep(min(frame_ms, max(duration_ms - elapsed_ms, 0)) / 1000)
            await self._complete(session_id, on_done)

        self._start(session_id, generation, _run())

    def _start(self, session_id: str, generation: int, coro: Awaitable[None]) -> None:
        task = asyncio.get_running_loop().create_task(coro)  # type: ignore[arg-type]
        self._pending[session_id] = _Pending(generation=generation, task=task)
        task.add_done_callback(_log_failure)

    async def _complete(self, session_id: str, callback: Callback) -> None:
        # Unregister first: the callback may schedule this session's next timer.
        current = self._pending.get(session_id)
        if current is not None and current.task is asyncio.current_task():
            del self._pending[session_id]
        await callback()

    def cancel(self, session_id: str) -> bool:
        pending = self._pending.pop(session_id, None)
        if pending is None:
            return False
        if pending.task is not asyncio.current_task():
            pending.task.cancel()
        return True

    def pending_generation(self, session_id: str) -> int | None:
        pending = self._pending.get(session_id)
        return pending.generation if pending is not None else None

    def has_pending(self, session_id: str) -> bool:
        return session_id in self._pending

    async def cancel_all(self) -> None:
        tasks = [p.task for p in self._pending.values()]
        self._pending.clear()
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)


def _log_failure(task: asyncio.Task[None]) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error("Scheduled session task failed", exc_info=exc)


scheduler = SessionScheduler()
