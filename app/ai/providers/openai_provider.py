from __future__ import annotations

from typing import Optional, Sequence

import openai
from openai import AsyncOpenAI

from app.ai.types import ChatMessage
from app.core.errors import ServiceError


class OpenAIProvider:
    """Chat-completion client for any OpenAI-compatible endpoint (OpenRouter by default).

    SDK retries are disabled; retry and fallback policy belongs to the gateway.
    """

    def __init__(
        self,
        api_key: str,
        base_url: Optional[str] = None,
        timeout_s: float = 30.0,
        temperature: float = 0.2,
    ):
        key = (api_key or "").strip()
        if not key:
            raise RuntimeError("OPENROUTER_API_KEY is missing")
        self._temperature = temperature
        self._client = AsyncOpenAI(
            api_key=key,
            base_url=base_url or None,
            timeout=timeout_s,
            max_retries=0,
        )

    async def complete(self, *, model: str, messages: Sequence[ChatMessage]) -> str:
        payload = [{"role": m.role, "content": m.content} for m in messages]
        try:
            response = await self._client.chat.completions.create(
                model=model,
                messages=payload,
                temperature=self._temperature,
            )
        except openai.APIStatusError as exc:
            status = exc.status_code
            raise ServiceError.ai_service(
                f"AI service returned {status}: {exc.message}",
                code="MODEL_NOT_FOUND" if status == 404 else "AI_SERVICE_ERROR",
                status_code=status,
                retryable=status >= 500,
            ) from exc
        except openai.APITimeoutError as exc:
            raise ServiceError.ai_service(
                f"AI service request timed out: {exc}",
                code="NETWORK_ERROR",
                retryable=True,
            ) from exc
        except openai.APIConnectionError as exc:
            raise ServiceError.ai_service(
                f"AI service connection failed: {exc}",
                code="NETWORK_ERROR",
                retryable=True,
            ) from exc

        choices = getattr(response, "choices", None) or []
        if not choices:
            return ""
        return choices[0].message.content or ""

    async def close(self) -> None:
        await self._client.close()
