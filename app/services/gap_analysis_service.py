from __future__ import annotations

import logging
import time
from datetime import datetime, timezone

from app.ai.gateway import AIGateway
from app.analysis.fingerprint import fingerprint, short_fingerprint
from app.cache.two_tier import TwoTierCache
from app.core.errors import ServiceError
from app.schemas.gap_analysis import (
    AnalysisMetadata,
    AnalysisRequest,
    AnalysisResponse,
    AnalysisResult,
    CacheSource,
)

logger = logging.getLogger("app.gap_analysis")


class GapAnalysisService:
    """Per-request pipeline: cache lookup, AI gateway, cache persistence.

    Input validation happens before this service is called.
    """

    def __init__(self, cache: TwoTierCache, gateway: AIGateway | None, *, version: str = "1.0.0"):
        self._cache = cache
        self._gateway = gateway
        self._version = version

    async def analyze(self, request: AnalysisRequest) -> AnalysisResponse:
        started = time.perf_counter()
        if self._gateway is None:
            raise ServiceError.ai_service(
                "AI service is not configured. Please set OPENROUTER_API_KEY.",
                code="AI_NOT_CONFIGURED",
                retryable=False,
            )

        content_hash = fingerprint(request.resume, request.job_description)

        lookup = await self._cache.get(content_hash)
        if lookup is not None:
            return self._respond(lookup.result, started, cached=True, source=lookup.source, model=None)

        logger.info(
            "ai_analysis_start fingerprint=%s resume_len=%s jd_len=%s",
            short_fingerprint(content_hash),
            len(request.resume),
            len(request.job_description),
        )
        outcome = await self._gateway.analyze(request.resume, request.job_description)

        await self._cache.put(
            content_hash,
            resume=request.resume,
            job_description=request.job_description,
            result=outcome.result,
        )
        return self._respond(outcome.result, started, cached=False, source="ai", model=outcome.model)

    def _respond(
        self,
        result: AnalysisResult,
        started: float,
        *,
        cached: bool,
        source: CacheSource,
        model: str | None,
    ) -> AnalysisResponse:
        processing_ms = int((time.perf_counter() - started) * 1000)
        logger.info("gap_analysis_done cached=%s source=%s latency_ms=%s", cached, source, processing_ms)
        return AnalysisResponse(
            missing_skills=list(result.missing_skills),
            steps=result.steps,
            interview_questions=result.interview_questions,
            cached=cached,
            metadata=AnalysisMetadata(
                processing_time=processing_ms,
                cache_source=source,
                model=model,
                timestamp=datetime.now(timezone.utc).isoformat(),
                version=self._version,
            ),
        )
