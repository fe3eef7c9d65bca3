import logging

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from redis.asyncio import Redis
import sentry_sdk

from app.ai.types import AIClient
from app.api.errors import request_validation_handler, service_error_handler
from app.api.gap_analysis import router as gap_analysis_router
from app.api.health import router as health_router
from app.cache.durable_store import DurableCacheStore
from app.core.config import Settings, settings as default_settings
from app.core.cors import cors_allow_origin_regex, cors_allowed_origins
from app.core.errors import ServiceError
from app.core.lifespan import lifespan

logging.basicConfig(level=default_settings.log_level, format="%(message)s")
if default_settings.sentry_dsn:
    sentry_sdk.init(dsn=default_settings.sentry_dsn)


def create_app(
    settings: Settings | None = None,
    *,
    redis_client: Redis | None = None,
    durable_store: DurableCacheStore | None = None,
    ai_client: AIClient | None = None,
) -> FastAPI:
    settings = settings or default_settings
    app = FastAPI(title="Career Gap Analysis API", version=settings.app_version, lifespan=lifespan)

    app.state.settings = settings
    app.state.redis = redis_client
    app.state.durable_store = durable_store
    app.state.ai_client = ai_client

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_allowed_origins(settings),
        allow_origin_regex=cors_allow_origin_regex(settings),
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Retry-After"],
    )
    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    app.include_router(health_router, tags=["Health"])
    app.include_router(gap_analysis_router, prefix="/api", tags=["Gap Analysis"])
    return app


app = create_app()
