from __future__ import annotations

import math
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager

import structlog
from redis.asyncio import Redis
from redis.exceptions import RedisError

from app.game.sessions.errors import TransientStoreFailure

logger = structlog.get_logger("app.game.sessions.expiry")

TIMEOUT_KEY_PREFIX = "game:timeout:"
ASKED_KEY_PREFIX = "game:asked:"
SESSION_KEY_PREFIX = "game:session:"
READY_KEY_PREFIX = "game:ready:"


def timeout_marker_key(session_key: str, question_number: int) -> str:
    return f"{TIMEOUT_KEY_PREFIX}{session_key}:{question_number}"


def timeout_marker_prefix(session_key: str) -> str:
    return f"{TIMEOUT_KEY_PREFIX}{session_key}:"


def asked_log_key(session_key: str) -> str:
    return f"{ASKED_KEY_PREFIX}{session_key}"


def session_cache_key(session_key: str) -> str:
    return f"{SESSION_KEY_PREFIX}{session_key}"


def ready_flag_key(user_id: int) -> str:
    return f"{READY_KEY_PREFIX}{user_id}"


def parse_timeout_marker_key(key: str) -> tuple[str, int] | None:
    if not key.startswith(TIMEOUT_KEY_PREFIX):
        return None
    session_key, _, raw_question = key[len(TIMEOUT_KEY_PREFIX) :].rpartition(":")
    if not session_key or not raw_question.isdigit():
        return None
    return session_key, int(raw_question)


class RedisExpiryStore:
    def __init__(self, redis_client: Redis) -> None:
        self._redis = redis_client

    @classmethod
    def from_url(cls, redis_url: str) -> RedisExpiryStore:
        return cls(Redis.from_url(redis_url, decode_responses=True))

    @asynccontextmanager
    async def _call(self, operation: str) -> AsyncIterator[None]:
        try:
            yield
        except RedisError as exc:
            logger.warning("expiry_store_failed", operation=operation, error_type=type(exc).__name__)
            raise TransientStoreFailure(operation) from exc

    async def set_with_ttl(self, key: str, value: str, ttl_seconds: float) -> None:
        async with self._call("set_with_ttl"):
            await self._redis.set(key, value, px=max(1, math.ceil(ttl_seconds * 1000)))

    async def get(self, key: str) -> str | None:
        async with self._call("get"):
            value = await self._redis.get(key)
        if value is None:
            return None
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return str(value)

    async def delete(self, key: str) -> None:
        async with self._call("delete"):
            await self._redis.delete(key)

    async def delete_many(self, keys: Sequence[str]) -> None:
        if not keys:
            return
        async with self._call("delete_many"):
            await self._redis.delete(*keys)

    async def scan(self, prefix: str) -> list[str]:
        keys: list[str] = []
        async with self._call("scan"):
            async for raw_key in self._redis.scan_iter(match=f"{prefix}*", count=500):
                keys.append(raw_key.decode("utf-8") if isinstance(raw_key, bytes) else str(raw_key))
        return keys

    async def ping(self) -> bool:
        return bool(await self._redis.ping())

    async def close(self) -> None:
        await self._redis.aclose()
