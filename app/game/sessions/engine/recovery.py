from __future__ import annotations

import structlog

from app.game.sessions.engine.cache import TimeoutMarker
from app.game.sessions.engine.deps import EngineDeps
from app.game.sessions.engine.resolution import rearm_from_marker
from app.game.sessions.expiry import TIMEOUT_KEY_PREFIX, parse_timeout_marker_key
from app.game.sessions.timers import timeout_key

logger = structlog.get_logger("app.game.sessions.engine.recovery")


async def recover_timers(deps: EngineDeps) -> int:
    """Re-arms local handles for durable markers that have no handle in this process."""
    rearmed = 0
    for key in await deps.expiry.scan(TIMEOUT_KEY_PREFIX):
        parsed = parse_timeout_marker_key(key)
        if parsed is None:
            continue
        session_key, question_number = parsed
        if timeout_key(session_key, question_number) in deps.timers:
            continue
        raw = await deps.expiry.get(key)
        marker = TimeoutMarker.from_json(raw) if raw is not None else None
        if marker is None:
            continue
        remaining = await rearm_from_marker(
            deps,
            session_key=session_key,
            question_number=question_number,
            marker=marker,
        )
        rearmed += 1
        logger.info(
            "question_timer_recovered",
            session_key=session_key,
            question_number=question_number,
            remaining_seconds=round(remaining, 3),
        )
    return rearmed
