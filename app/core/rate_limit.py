from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from fastapi import Request
from redis.asyncio import Redis
from redis.exceptions import RedisError

from app.core.config import Settings

logger = logging.getLogger(__name__)

_KEY_PREFIX = "ratelimit:"


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    limit: int
    remaining: int
    retry_after: int = 0


class RateLimiter:
    """Fixed-window request counter per client, stored in Redis.

    Fails open: if Redis cannot be reached the request is admitted and the
    degradation is logged.
    """

    def __init__(self, redis: Redis, *, limit: int = 60, window_seconds: int = 60, enabled: bool = True):
        self._redis = redis
        self._limit = limit
        self._window_seconds = window_seconds
        self._enabled = enabled

    @classmethod
    def from_settings(cls, redis: Redis, settings: Settings) -> RateLimiter:
        return cls(
            redis,
            limit=settings.rate_limit_requests,
            window_seconds=settings.rate_limit_window_seconds,
            enabled=settings.rate_limit_enabled,
        )

    async def admit(self, client_key: str) -> RateLimitDecision:
        if not self._enabled:
            return RateLimitDecision(allowed=True, limit=self._limit, remaining=self._limit)

        key = f"{_KEY_PREFIX}{client_key}"
        try:
            async with self._redis.pipeline(transaction=True) as pipe:
                pipe.set(key, 0, ex=self._window_seconds, nx=True)
                pipe.incr(key)
                pipe.pttl(key)
                _, count, ttl_ms = await pipe.execute()
        except (RedisError, OSError) as exc:
            logger.warning("rate_limit_store_unavailable client=%s fail_open=true: %s", client_key, exc)
            return RateLimitDecision(allowed=True, limit=self._limit, remaining=self._limit)

        count = int(count)
        remaining = max(0, self._limit - count)
        if count <= self._limit:
            return RateLimitDecision(allowed=True, limit=self._limit, remaining=remaining)

        ttl_ms = int(ttl_ms)
        window_left_ms = ttl_ms if ttl_ms > 0 else self._window_seconds * 1000
        retry_after = max(1, math.ceil(window_left_ms / 1000))
        logger.info("rate_limit_denied client=%s count=%s retry_after=%s", client_key, count, retry_after)
        return RateLimitDecision(allowed=False, limit=self._limit, remaining=0, retry_after=retry_after)


def client_key(request: Request, trust_x_forwarded_for: bool = False) -> str:
    if trust_x_forwarded_for:
        forwarded_for = request.headers.get("x-forwarded-for", "").strip()
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"
