from __future__ import annotations

import asyncio
import logging
import random
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Sequence

from app.ai.config import RetryConfig
from app.ai.model_health import ModelHealthTable
from app.ai.types import AIClient
from app.analysis.prompt import build_gap_analysis_messages
from app.analysis.result_parser import parse_analysis_result
from app.core.errors import ErrorKind, ServiceError
from app.schemas.gap_analysis import AnalysisResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GatewayResult:
    result: AnalysisResult
    model: str


def calculate_backoff_ms(
    attempt: int,
    base_delay_ms: int,
    max_jitter_ms: int,
    jitter: Callable[[float, float], float] = random.uniform,
) -> float:
    # 1s, 3s, 9s with the default base delay
    exponential = (3**attempt) * base_delay_ms
    return exponential + (jitter(0, max_jitter_ms) if max_jitter_ms > 0 else 0.0)


def is_permanent_failure(exc: ServiceError) -> bool:
    return exc.kind is ErrorKind.AI_SERVICE and not exc.retryable


class AIGateway:
    """Runs the gap-analysis completion across candidate models.

    Each model gets ``retry.max_attempts`` calls inside a rolling
    ``retry.timeout_ms`` budget. Permanent upstream failures (4xx) skip to the
    next model right away and mark the model failing in ``health``.
    """

    def __init__(
        self,
        client: AIClient,
        *,
        candidate_models: Sequence[str],
        preferred_model: str | None = None,
        retry: RetryConfig | None = None,
        health: ModelHealthTable | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
        jitter: Callable[[float, float], float] = random.uniform,
    ):
        if not candidate_models and not preferred_model:
            raise ValueError("AIGateway needs at least one candidate model")
        self._client = client
        self._candidate_models = tuple(candidate_models)
        self._preferred_model = preferred_model or self._candidate_models[0]
        self._retry = retry or RetryConfig()
        self.health = health or ModelHealthTable()
        self._sleep = sleep
        self._clock = clock
        self._jitter = jitter

    def models_to_try(self) -> list[str]:
        models = [self._preferred_model]
        for model in self._candidate_models:
            if model not in models:
                models.append(model)
        return self.health.order(models)

    async def analyze(self, resume: str, job_description: str) -> GatewayResult:
        last_error: ServiceError | None = None
        all_timeouts = True

        for model in self.models_to_try():
            logger.info("ai_model_try model=%s", model)
            try:
                result = await self._analyze_with_model(model, resume, job_description)
            except ServiceError as exc:
                last_error = exc
                if exc.kind is not ErrorKind.TIMEOUT:
                    all_timeouts = False
                if is_permanent_failure(exc):
                    self.health.mark(model, False)
                    logger.warning(
                        "ai_model_unavailable model=%s status=%s code=%s", model, exc.status_code, exc.code
                    )
                else:
                    logger.warning("ai_model_failed model=%s kind=%s: %s", model, exc.kind.value, exc.message)
                continue

            self.health.mark(model, True)
            logger.info("ai_model_success model=%s", model)
            return GatewayResult(result=result, model=model)

        message = f"All available models failed. Last error: {last_error.message if last_error else 'Unknown'}"
        if last_error is not None and all_timeouts:
            raise ServiceError.timeout(message, self._retry.timeout_ms)
        raise ServiceError.ai_service(message, code="ALL_MODELS_FAILED", retryable=False)

    async def _analyze_with_model(self, model: str, resume: str, job_description: str) -> AnalysisResult:
        retry = self._retry
        budget_s = retry.timeout_ms / 1000
        started = self._clock()
        messages = build_gap_analysis_messages(resume, job_description)

        for attempt in range(retry.max_attempts):
            elapsed = self._clock() - started
            remaining = budget_s - elapsed
            if remaining <= 0:
                raise ServiceError.timeout(
                    f"Operation timed out after {int(elapsed * 1000)}ms (max: {retry.timeout_ms}ms)",
                    retry.timeout_ms,
                )

            logger.info(
                "ai_attempt model=%s attempt=%s/%s resume_len=%s jd_len=%s",
                model,
                attempt + 1,
                retry.max_attempts,
                len(resume),
                len(job_description),
            )
            try:
                try:
                    content = await asyncio.wait_for(
                        self._client.complete(model=model, messages=messages),
                        timeout=remaining,
                    )
                except asyncio.TimeoutError as exc:
                    raise ServiceError.timeout(
                        f"Request timed out after {retry.timeout_ms}ms",
                        retry.timeout_ms,
                        retryable=True,
                    ) from exc
                except ServiceError:
                    raise
                except Exception as exc:  # noqa: BLE001 - unknown client failures are retried like network errors
                    raise ServiceError.ai_service(f"Unexpected AI client error: {exc}") from exc
                if not content:
                    raise ServiceError.ai_service("AI service returned empty response", code="EMPTY_RESPONSE")
                return parse_analysis_result(content)
            except ServiceError as exc:
                logger.warning(
                    "ai_attempt_failed model=%s attempt=%s kind=%s code=%s: %s",
                    model,
                    attempt + 1,
                    exc.kind.value,
                    exc.code,
                    exc.message,
                )
                if is_permanent_failure(exc) or attempt == retry.max_attempts - 1:
                    raise
                delay_ms = calculate_backoff_ms(attempt, retry.base_delay_ms, retry.max_jitter_ms, self._jitter)
                logger.info("ai_retry model=%s delay_ms=%s", model, round(delay_ms))
                await self._sleep(delay_ms / 1000)

        raise ServiceError.ai_service("All retry attempts failed", code="MAX_RETRIES_EXCEEDED", retryable=False)
