from __future__ import annotations

import logging

from redis.asyncio import Redis

from app.analysis.fingerprint import short_fingerprint
from app.schemas.gap_analysis import AnalysisResult

logger = logging.getLogger(__name__)

_KEY_PREFIX = "gap:"


def fast_cache_key(fingerprint: str) -> str:
    return f"{_KEY_PREFIX}{fingerprint}"


class FastCacheStore:
    """Redis tier: ``gap:{fingerprint}`` -> serialized AnalysisResult, expired by TTL."""

    def __init__(self, redis: Redis, ttl_seconds: int = 3600):
        self._redis = redis
        self._ttl_seconds = ttl_seconds

    async def get(self, fingerprint: str) -> AnalysisResult | None:
        data = await self._redis.get(fast_cache_key(fingerprint))
        if data is None:
            return None
        try:
            return AnalysisResult.model_validate_json(data)
        except ValueError as exc:
            logger.warning("fast_cache_entry_invalid fingerprint=%s: %s", short_fingerprint(fingerprint), exc)
            return None

    async def set(self, fingerprint: str, result: AnalysisResult) -> None:
        await self._redis.setex(
            fast_cache_key(fingerprint),
            self._ttl_seconds,
            result.model_dump_json(by_alias=True),
        )
