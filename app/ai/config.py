from dataclasses import dataclass

from app.core.config import _get_env, _get_env_float, _get_env_int, _get_env_list


FREE_MODELS = (
    "arcee-ai/trinity-large-preview:free",
    "stepfun/step-3.5-flash:free",
    "upstage/solar-pro-3:free",
    "liquid/lfm-2.5-1.2b-thinking:free",
)


@dataclass(frozen=True)
class RetryConfig:
    max_attempts: int = 3
    base_delay_ms: int = 1000
    max_jitter_ms: int = 500
    timeout_ms: int = 30000


@dataclass(frozen=True)
class AIConfig:
    api_key: str | None
    base_url: str
    preferred_model: str
    candidate_models: tuple[str, ...]
    temperature: float
    retry: RetryConfig


def load_ai_config() -> AIConfig:
    models = _get_env_list("AI_CANDIDATE_MODELS", list(FREE_MODELS))
    preferred = (_get_env("AI_PREFERRED_MODEL") or "").strip() or models[0]
    api_key = (_get_env("OPENROUTER_API_KEY") or "").strip() or None
    return AIConfig(
        api_key=api_key,
        base_url=(_get_env("OPENROUTER_BASE_URL", "https://openrouter.ai/api/v1") or "").strip(),
        preferred_model=preferred,
        candidate_models=models,
        temperature=_get_env_float("AI_TEMPERATURE", 0.2),
        retry=RetryConfig(
            max_attempts=max(1, _get_env_int("AI_MAX_ATTEMPTS", 3)),
            base_delay_ms=max(0, _get_env_int("AI_BASE_DELAY_MS", 1000)),
            max_jitter_ms=max(0, _get_env_int("AI_MAX_JITTER_MS", 500)),
            timeout_ms=max(1, _get_env_int("AI_TIMEOUT_MS", 30000)),
        ),
    )
