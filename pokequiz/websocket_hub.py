from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from collections.abc import Callable

from fastapi import WebSocket


logger = logging.getLogger(__name__)

Payload = dict[str, object]


class SessionWebSocketHub:
    """Spectator sockets per quiz session.

    A socket joins with `connect`, optionally receiving a greeting (the current
    snapshot) right after it is registered. `broadcast` pushes snapshots and
    reveal frames; sockets that fail a send are pruned. The engine skips reveal
    frames for sessions without listeners.
    """

    def __init__(self) -> None:
        self._by_session: dict[str, set[WebSocket]] = defaultdict(set)
        self._lock = asyncio.Lock()

    async def connect(
        self,
        session_id: str,
        websocket: WebSocket,
        *,
        greeting: Callable[[], Payload | None] | None = None,
    ) -> None:
        await websocket.accept()
        async with self._lock:
            self._by_session[session_id].add(websocket)

        # Built after registering so a later update can only follow it.
        if greeting is not None:
            payload = greeting()
            if payload is not None:
                await websocket.send_json(payload)

    async def disconnect(self, session_id: str, websocket: WebSocket) -> None:
        async with self._lock:
            self._discard(session_id, [websocket])

    def has_listeners(self, session_id: str) -> bool:
        return bool(self._by_session.get(session_id))

    def listener_count(self, session_id: str) -> int:
        return len(self._by_session.get(session_id, ()))

    async def broadcast(self, session_id: str, payload: Payload) -> int:
        """Send to every listener of the session; returns how many got it."""

        async with self._lock:
            conns = list(self._by_session.get(session_id, ()))

        dead: list[WebSocket] = []
        for ws in conns:
            try:
                await ws.send_json(payload)
            except Exception:
                logger.debug("Dropping websocket for session %s", session_id, exc_info=True)
                dead.append(ws)

        if dead:
            async with self._lock:
                self._discard(session_id, dead)
        return len(conns) - len(dead)

    def _discard(self, session_id: str, sockets: list[WebSocket]) -> None:
        conns = self._by_session.get(session_id)
        if conns is None:
            return
        conns.difference_update(sockets)
        if not conns:
            self._by_session.pop(session_id, None)


hub = SessionWebSocketHub()
