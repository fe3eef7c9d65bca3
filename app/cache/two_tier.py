from __future__ import annotations

import logging
from dataclasses import dataclass

from app.analysis.fingerprint import short_fingerprint
from app.cache.durable_store import DurableCacheStore
from app.cache.fast_store import FastCacheStore
from app.schemas.gap_analysis import AnalysisResult, CacheSource

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheLookup:
    result: AnalysisResult
    source: CacheSource


class TwoTierCache:
    """Redis in front of SQLite, both keyed by content fingerprint.

    Entries are shared across clients. Store errors are logged and treated as
    misses on read and skipped on write; they never reach the caller.
    """

    def __init__(self, fast: FastCacheStore, durable: DurableCacheStore):
        self._fast = fast
        self._durable = durable

    async def get(self, fingerprint: str) -> CacheLookup | None:
        short = short_fingerprint(fingerprint)
        try:
            result = await self._fast.get(fingerprint)
        except Exception as exc:  # noqa: BLE001 - fall through to the durable tier
            logger.warning("fast_cache_read_failed fingerprint=%s: %s", short, exc)
            result = None
        if result is not None:
            logger.info("cache_hit tier=memory fingerprint=%s", short)
            return CacheLookup(result=result, source="memory")
        logger.info("cache_miss tier=memory fingerprint=%s", short)

        try:
            result = await self._durable.aget(fingerprint)
        except Exception as exc:  # noqa: BLE001 - fall through to the AI gateway
            logger.warning("durable_cache_read_failed fingerprint=%s: %s", short, exc)
            return None
        if result is None:
            logger.info("cache_miss tier=database fingerprint=%s", short)
            return None

        logger.info("cache_hit tier=database fingerprint=%s", short)
        await self._write_fast(fingerprint, result)
        return CacheLookup(result=result, source="database")

    async def put(self, fingerprint: str, *, resume: str, job_description: str, result: AnalysisResult) -> None:
        try:
            await self._durable.aupsert(
                fingerprint,
                resume_text=resume,
                job_description=job_description,
                result=result,
            )
            logger.info("durable_cache_write fingerprint=%s", short_fingerprint(fingerprint))
        except Exception as exc:  # noqa: BLE001 - persistence is best effort
            logger.warning("durable_cache_write_failed fingerprint=%s: %s", short_fingerprint(fingerprint), exc)
        await self._write_fast(fingerprint, result)

    async def _write_fast(self, fingerprint: str, result: AnalysisResult) -> None:
        try:
            await self._fast.set(fingerprint, result)
        except Exception as exc:  # noqa: BLE001 - persistence is best effort
            logger.warning("fast_cache_write_failed fingerprint=%s: %s", short_fingerprint(fingerprint), exc)
