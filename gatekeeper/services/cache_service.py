"""Redis-backed cache service; holds revoked session ids until their tokens expire."""

import logging
import math
from datetime import datetime, timezone
from typing import Optional

import redis
from redis import asyncio as aioredis

from gatekeeper.core.config import settings

logger = logging.getLogger("gatekeeper")

REVOKED_SESSION_PREFIX = "session:revoked:"


class CacheService:
    """Redis-backed caching service."""

    def __init__(self):
        self._client: Optional[aioredis.Redis] = None

    @property
    def client(self) -> aioredis.Redis:
        if self._client is None:
            self._client = aioredis.from_url(
                settings.REDIS_URL,
                decode_responses=True,
                max_connections=100,
            )
        return self._client

    async def get(self, key: str) -> Optional[str]:
        """Get a cached value by key."""
        try:
            return await self.client.get(key)
        except redis.ConnectionError:
            return None

    async def set(self, key: str, value: str, ttl_seconds: int = 600) -> None:
        """Set a cached value with TTL."""
        try:
            await self.client.setex(key, ttl_seconds, value)
        except redis.ConnectionError as e:
            logger.warning("Cache write for %s skipped: %s", key, e)

    async def revoke_session(self, jti: str, expires_at: Optional[datetime]) -> None:
        """Remember a logged-out session id for the rest of its lifetime."""
        if not jti:
            return
        if expires_at is None:
            ttl = settings.SESSION_LIFETIME_MINUTES * 60
        else:
            ttl = math.ceil((expires_at - datetime.now(timezone.utc)).total_seconds())
        if ttl <= 0:
            return
        await self.set(f"{REVOKED_SESSION_PREFIX}{jti}", "1", ttl)

    async def is_session_revoked(self, jti: str) -> bool:
        if not jti:
            return False
        return await self.get(f"{REVOKED_SESSION_PREFIX}{jti}") is not None

    async def health_check(self) -> bool:
        """Check if Redis is reachable."""
        try:
            return await self.client.ping()
        except redis.ConnectionError:
            return False


cache_service = CacheService()
