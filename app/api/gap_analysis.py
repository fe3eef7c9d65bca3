import logging

from fastapi import APIRouter, Query, Request

from app.core.errors import ServiceError
from app.core.rate_limit import RateLimiter, client_key
from app.schemas.gap_analysis import AnalysisRequest, AnalysisResponse, HistoryItem
from app.services.gap_analysis_service import GapAnalysisService

router = APIRouter()
logger = logging.getLogger(__name__)


async def _enforce_rate_limit(request: Request) -> None:
    limiter: RateLimiter = request.app.state.rate_limiter
    client = client_key(request, request.app.state.settings.trust_x_forwarded_for)
    decision = await limiter.admit(client)
    if not decision.allowed:
        raise ServiceError.rate_limited(decision.retry_after)


@router.post("/gap-analysis", response_model=AnalysisResponse)
async def gap_analysis(request: Request, payload: AnalysisRequest):
    logger.info("request method=POST endpoint=/api/gap-analysis")
    await _enforce_rate_limit(request)
    service: GapAnalysisService = request.app.state.gap_analysis_service
    try:
        return await service.analyze(payload)
    except ServiceError:
        raise
    except Exception as exc:  # noqa: BLE001 - rendered as an unknown error
        logger.exception("gap_analysis_unexpected_error")
        raise ServiceError.unknown(str(exc)) from exc


@router.get("/history", response_model=list[HistoryItem])
async def history(request: Request, limit: int = Query(default=20, ge=1, le=100)):
    logger.info("request method=GET endpoint=/api/history limit=%s", limit)
    try:
        return await request.app.state.durable_store.arecent(limit)
    except Exception as exc:  # noqa: BLE001 - rendered as an unknown error
        logger.exception("history_unexpected_error")
        raise ServiceError.unknown(str(exc)) from exc
