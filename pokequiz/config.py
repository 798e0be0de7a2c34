from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from e


@dataclass(frozen=True, slots=True)
class EngineTimings:
    """Durations driving the timed phases, in milliseconds."""

    reveal_ms: int = 1500
    result_pause_ms: int = 1200
    # Interval between reveal animation frames pushed to clients.
    frame_ms: int = 50


def get_timings() -> EngineTimings:
    # Read on every call so tests can shorten the phases with monkeypatch.setenv.
    return EngineTimings(
        reveal_ms=_env_int("POKEQUIZ_REVEAL_MS", 1500),
        result_pause_ms=_env_int("POKEQUIZ_RESULT_PAUSE_MS", 1200),
        frame_ms=max(1, _env_int("POKEQUIZ_FRAME_MS", 50)),
    )


def get_session_ttl_s() -> int:
    return _env_int("POKEQUIZ_SESSION_TTL_S", 86_400)


def get_data_dir(*, project_root: Path) -> Path:
    override = os.environ.get("POKEQUIZ_DATA_DIR", "").strip()
    if override:
        return Path(override)
    return project_root / "data"


def get_log_level() -> str:
    return os.environ.get("POKEQUIZ_LOG_LEVEL", "INFO").strip().upper() or "INFO"
