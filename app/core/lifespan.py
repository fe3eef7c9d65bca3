import contextlib
from contextlib import asynccontextmanager
import asyncio
import logging

from redis.asyncio import Redis

from app.ai.config import load_ai_config
from app.ai.factory import get_ai_client, get_ai_gateway
from app.cache.durable_store import DurableCacheStore
from app.cache.fast_store import FastCacheStore
from app.cache.two_tier import TwoTierCache
from app.core.rate_limit import RateLimiter
from app.services.gap_analysis_service import GapAnalysisService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app):
    settings = app.state.settings

    owns_redis = app.state.redis is None
    if owns_redis:
        app.state.redis = Redis.from_url(
            settings.redis_url,
            decode_responses=True,
            socket_timeout=settings.redis_timeout_s,
            socket_connect_timeout=settings.redis_timeout_s,
        )
    redis = app.state.redis

    owns_durable_store = app.state.durable_store is None
    if owns_durable_store:
        app.state.durable_store = DurableCacheStore(
            settings.durable_cache_db_path,
            ttl_hours=settings.durable_cache_ttl_hours,
        )
    durable_store = app.state.durable_store
    try:
        durable_store.init()
    except Exception as exc:  # noqa: BLE001 - the pipeline degrades to the fast tier and AI
        logger.warning("durable_cache_init_failed path=%s: %s", settings.durable_cache_db_path, exc)

    ai_config = load_ai_config()
    ai_client = app.state.ai_client
    owns_ai_client = ai_client is None
    if owns_ai_client:
        ai_client = get_ai_client(ai_config)
    gateway = get_ai_gateway(ai_client, ai_config) if ai_client is not None else None
    if gateway is None:
        logger.warning("ai_gateway_disabled reason=missing_api_key")

    app.state.rate_limiter = RateLimiter.from_settings(redis, settings)
    app.state.gap_analysis_service = GapAnalysisService(
        TwoTierCache(
            FastCacheStore(redis, ttl_seconds=settings.fast_cache_ttl_seconds),
            durable_store,
        ),
        gateway,
        version=settings.app_version,
    )

    stop_event = asyncio.Event()

    async def periodic_purge() -> None:
        while not stop_event.is_set():
            try:
                deleted = await durable_store.apurge_expired()
                if deleted:
                    logger.info("durable_cache_purge deleted=%s", deleted)
            except Exception as exc:  # pragma: no cover - defensive guard
                logger.warning("durable_cache_purge_failed: %s", exc)
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=settings.cache_purge_interval_seconds)
            except asyncio.TimeoutError:
                continue

    purge_task = asyncio.create_task(periodic_purge())
    yield
    stop_event.set()
    if not purge_task.done():
        purge_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await purge_task

    if owns_ai_client and ai_client is not None:
        with contextlib.suppress(Exception):
            await ai_client.close()
    if owns_redis:
        with contextlib.suppress(Exception):
            await redis.aclose()
    if owns_durable_store:
        durable_store.close()
