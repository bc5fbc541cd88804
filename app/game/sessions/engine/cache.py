from __future__ import annotations

import json
from dataclasses import dataclass
from uuid import UUID

import structlog

from app.game.sessions.engine.deps import EngineDeps
from app.game.sessions.expiry import (
    asked_log_key,
    ready_flag_key,
    session_cache_key,
    timeout_marker_key,
    timeout_marker_prefix,
)
from app.game.sessions.ports import ExpiryStore
from app.game.sessions.types import GameSessionState

logger = structlog.get_logger("app.game.sessions.engine.cache")


@dataclass(frozen=True, slots=True)
class TimeoutMarker:
    deadline_ms: int
    session_id: UUID
    user_id: int
    question_id: int

    def to_json(self) -> str:
        return json.dumps(
            {
                "deadline_ms": self.deadline_ms,
                "session_id": str(self.session_id),
                "user_id": self.user_id,
                "question_id": self.question_id,
            },
            separators=(",", ":"),
        )

    @classmethod
    def from_json(cls, raw: str) -> TimeoutMarker | None:
        try:
            payload = json.loads(raw)
            return cls(
                deadline_ms=int(payload["deadline_ms"]),
                session_id=UUID(str(payload["session_id"])),
                user_id=int(payload["user_id"]),
                question_id=int(payload["question_id"]),
            )
        except (TypeError, ValueError, KeyError):
            return None


async def read_marker(deps: EngineDeps, session_key: str, question_number: int) -> TimeoutMarker | None:
    raw = await deps.expiry.get(timeout_marker_key(session_key, question_number))
    if raw is None:
        return None
    marker = TimeoutMarker.from_json(raw)
    if marker is None:
        logger.warning(
            "timeout_marker_unreadable",
            session_key=session_key,
            question_number=question_number,
        )
    return marker


async def write_marker(
    deps: EngineDeps,
    session_key: str,
    question_number: int,
    marker: TimeoutMarker,
) -> None:
    await deps.expiry.set_with_ttl(
        timeout_marker_key(session_key, question_number),
        marker.to_json(),
        deps.timing.marker_ttl_seconds,
    )


async def clear_marker(deps: EngineDeps, session_key: str, question_number: int) -> None:
    await deps.expiry.delete(timeout_marker_key(session_key, question_number))


async def clear_all_markers(deps: EngineDeps, session_key: str) -> None:
    keys = await deps.expiry.scan(timeout_marker_prefix(session_key))
    if keys:
        await deps.expiry.delete_many(keys)


def _state_payload(state: GameSessionState) -> dict[str, object]:
    return {
        "session_id": str(state.session_id),
        "session_key": state.session_key,
        "user_id": state.user_id,
        "game_kind": state.game_kind.value,
        "channel": state.channel.value,
        "status": state.status.value,
        "current_question": state.current_question,
        "current_score": state.current_score,
        "current_question_id": state.current_question_id,
        "eliminate_two_used": state.eliminate_two_used,
        "replace_question_used": state.replace_question_used,
        "tournament_id": str(state.tournament_id) if state.tournament_id else None,
        "entry_consumed": state.entry_consumed,
        "questions_answered": state.questions_answered,
        "started_at": state.started_at.isoformat(),
    }


async def write_session_shadow(deps: EngineDeps, state: GameSessionState) -> None:
    await deps.expiry.set_with_ttl(
        session_cache_key(state.session_key),
        json.dumps(_state_payload(state), separators=(",", ":")),
        deps.timing.session_cache_ttl_seconds,
    )


async def read_asked_ids(deps: EngineDeps, session_key: str) -> list[int]:
    raw = await deps.expiry.get(asked_log_key(session_key))
    if raw is None:
        return []
    try:
        return [int(question_id) for question_id in json.loads(raw)]
    except (TypeError, ValueError):
        logger.warning("asked_question_log_unreadable", session_key=session_key)
        return []


async def append_asked_id(
    deps: EngineDeps,
    session_key: str,
    asked_ids: list[int],
    question_id: int,
) -> list[int]:
    updated = [*asked_ids, question_id] if question_id not in asked_ids else list(asked_ids)
    await deps.expiry.set_with_ttl(
        asked_log_key(session_key),
        json.dumps(updated),
        deps.timing.session_cache_ttl_seconds,
    )
    return updated


async def set_ready_flag(deps: EngineDeps, user_id: int, session_key: str) -> None:
    await deps.expiry.set_with_ttl(ready_flag_key(user_id), session_key, deps.timing.ready_ttl_seconds)


async def get_ready_flag(deps: EngineDeps, user_id: int) -> str | None:
    return await deps.expiry.get(ready_flag_key(user_id))


async def clear_ready_flag(deps: EngineDeps, user_id: int) -> None:
    await deps.expiry.delete(ready_flag_key(user_id))


async def purge_session_cache(expiry: ExpiryStore, *, session_key: str, user_id: int) -> None:
    """Drops every ephemeral entry of one session: markers, shadow, asked log, ready flag."""
    keys = await expiry.scan(timeout_marker_prefix(session_key))
    keys.extend([session_cache_key(session_key), asked_log_key(session_key)])
    await expiry.delete_many(keys)
    if await expiry.get(ready_flag_key(user_id)) == session_key:
        await expiry.delete(ready_flag_key(user_id))
