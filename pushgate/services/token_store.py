"""
Geçici onay token'ları (TTL'li anahtar-değer deposu).

REDIS_URL tanımlıysa Redis (redis.asyncio), değilse süreç içi
cachetools.TTLCache kullanılır. Anahtar: approval_token:<approvalId>.
"""
import hmac
import logging
import secrets

import redis.asyncio as redis
from cachetools import TTLCache

from pushgate.core.config import settings

log = logging.getLogger("pushgate.tokens")

KEY_PREFIX = "approval_token:"


def new_approval_token() -> str:
    return secrets.token_urlsafe(24)


def _key(approval_id: str) -> str:
    return f"{KEY_PREFIX}{approval_id}"


def tokens_match(provided: str | None, stored: str | None) -> bool:
    if not provided or not stored:
        return False
    return hmac.compare_digest(provided.encode("utf-8"), stored.encode("utf-8"))


class MemoryTokenStore:
    backend = "memory"

    def __init__(self, ttl_seconds: int, maxsize: int = 10_000):
        self.ttl_seconds = ttl_seconds
        self._cache: TTLCache = TTLCache(maxsize=maxsize, ttl=ttl_seconds)

    async def put(self, approval_id: str, token: str) -> None:
        self._cache[_key(approval_id)] = token

    async def get(self, approval_id: str) -> str | None:
        return self._cache.get(_key(approval_id))

    async def delete(self, approval_id: str) -> None:
        self._cache.pop(_key(approval_id), None)

    async def close(self) -> None:
        self._cache.clear()


class RedisTokenStore:
    backend = "redis"

    def __init__(self, url: str, ttl_seconds: int):
        self.ttl_seconds = ttl_seconds
        self._client = redis.Redis.from_url(url, decode_responses=True)

    async def put(self, approval_id: str, token: str) -> None:
        await self._client.set(_key(approval_id), token, ex=self.ttl_seconds)

    async def get(self, approval_id: str) -> str | None:
        return await self._client.get(_key(approval_id))

    async def delete(self, approval_id: str) -> None:
        await self._client.delete(_key(approval_id))

    async def close(self) -> None:
        await self._client.aclose()


def build_token_store():
    ttl = settings.approval_token_ttl_seconds
    if settings.redis_url:
        log.info("Approval tokens stored in Redis")
        return RedisTokenStore(settings.redis_url, ttl)
    log.info("Approval tokens stored in process memory (REDIS_URL not set)")
    return MemoryTokenStore(ttl)
