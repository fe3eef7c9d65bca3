import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health", summary="Health Check", description="Check that the API process is running.")
async def health_check():
    return {"status": "API is running!"}


@router.get("/db-health", summary="Durable Cache Health", description="Check the durable cache database.")
async def db_health(request: Request):
    try:
        timestamp = await request.app.state.durable_store.aping()
    except Exception as exc:  # noqa: BLE001 - reported to the caller
        logger.warning("db_health_failed: %s", exc)
        return JSONResponse(
            status_code=500,
            content={"status": "Database connection failed", "error": str(exc) or "Unknown error"},
        )
    return {"status": "Database connected", "timestamp": timestamp}


@router.get("/redis-health", summary="Fast Cache Health", description="Check the Redis fast cache.")
async def redis_health(request: Request):
    try:
        await request.app.state.redis.ping()
    except Exception as exc:  # noqa: BLE001 - reported to the caller
        logger.warning("redis_health_failed: %s", exc)
        return JSONResponse(
            status_code=500,
            content={"status": "Redis connection failed", "error": str(exc) or "Unknown error"},
        )
    return {"status": "Redis connected"}
