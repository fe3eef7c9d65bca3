from app.ai.config import AIConfig, load_ai_config
from app.ai.gateway import AIGateway
from app.ai.model_health import ModelHealthTable
from app.ai.providers.openai_provider import OpenAIProvider
from app.ai.types import AIClient


def get_ai_client(cfg: AIConfig | None = None) -> AIClient | None:
    cfg = cfg or load_ai_config()
    if not cfg.api_key:
        return None
    return OpenAIProvider(
        api_key=cfg.api_key,
        base_url=cfg.base_url,
        timeout_s=cfg.retry.timeout_ms / 1000,
        temperature=cfg.temperature,
    )


def get_ai_gateway(client: AIClient, cfg: AIConfig | None = None) -> AIGateway:
    cfg = cfg or load_ai_config()
    return AIGateway(
        client,
        candidate_models=cfg.candidate_models,
        preferred_model=cfg.preferred_model,
        retry=cfg.retry,
        health=ModelHealthTable(),
    )
