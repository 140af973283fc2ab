"""Revoked session tokens.

Session tokens issued by the local identity provider are stateless JWTs.
Ending a session puts the token's jti here until the token would have
expired anyway, so a signed-out token stops resolving to a principal
immediately.  Redis-backed when REDIS_URL is set so every API instance
sees the same revocations.
"""

from __future__ import annotations

import time
from typing import Protocol, runtime_checkable

from learnhub.db.redis import redis_pool


@runtime_checkable
class TokenBlacklist(Protocol):
    async def revoke(self, jti: str, expires_at: float) -> None:
        """Blacklist a jti until its token's expiry (Unix seconds)."""
        ...

    async def is_revoked(self, jti: str) -> bool: ...


class InMemoryTokenBlacklist:
    """Per-process blacklist for tests and local dev."""

    def __init__(self) -> None:
        # jti -> expiry timestamp (Unix seconds)
        self._revoked: dict[str, float] = {}

    async def revoke(self, jti: str, expires_at: float) -> None:
        self._revoked[jti] = expires_at

    async def is_revoked(self, jti: str) -> bool:
        exp = self._revoked.get(jti)
        if exp is None:
            return False
        # Mimic Redis TTL: expired entries drop out
        if exp < time.time():
            del self._revoked[jti]
            return False
        return True


class RedisTokenBlacklist:
    _PREFIX = "blacklist:jti:"

    def __init__(self, redis_client) -> None:
        self._redis = redis_client

    async def revoke(self, jti: str, expires_at: float) -> None:
        ttl_seconds = int(expires_at - time.time())
        if ttl_seconds <= 0:
            return  # already expired, nothing to guard
        # SETEX writes value and TTL atomically
        await self._redis.setex(f"{self._PREFIX}{jti}", ttl_seconds, "1")

    async def is_revoked(self, jti: str) -> bool:
        return bool(await self._redis.exists(f"{self._PREFIX}{jti}"))


if redis_pool is not None:
    token_blacklist: TokenBlacklist = RedisTokenBlacklist(redis_pool)
else:
    token_blacklist = InMemoryTokenBlacklist()
