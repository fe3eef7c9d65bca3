from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()

def _get_env(name: str, default: str | None = None) -> str | None:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value


def _get_env_bool(name: str, default: bool) -> bool:
    raw = _get_env(name, None)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _get_env_int(name: str, default: int) -> int:
    raw = _get_env(name, None)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _get_env_float(name: str, default: float) -> float:
    raw = _get_env(name, None)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _get_env_list(name: str, default: list[str]) -> tuple[str, ...]:
    raw = _get_env(name, None)
    if raw is None:
        return tuple(default)
    values = [item.strip() for item in raw.split(",")]
    clean = [item for item in values if item]
    return tuple(clean) if clean else tuple(default)


@dataclass(frozen=True)
class Settings:
    app_version: str
    log_level: str
    sentry_dsn: str | None
    cors_allowed_origins: tuple[str, ...]
    cors_allow_origin_regex: str | None
    cors_allow_credentials: bool
    trust_x_forwarded_for: bool
    rate_limit_enabled: bool
    rate_limit_requests: int
    rate_limit_window_seconds: int
    redis_url: str
    redis_timeout_s: float
    fast_cache_ttl_seconds: int
    durable_cache_db_path: str
    durable_cache_ttl_hours: int
    cache_purge_interval_seconds: int
    resume_min_chars: int
    resume_max_chars: int
    job_description_min_chars: int
    job_description_max_chars: int


settings = Settings(
    app_version=_get_env("APP_VERSION", "1.0.0") or "1.0.0",
    log_level=_get_env("LOG_LEVEL", "INFO") or "INFO",
    sentry_dsn=_get_env("SENTRY_DSN"),
    cors_allowed_origins=_get_env_list(
        "CORS_ALLOWED_ORIGINS",
        [
            "http://localhost:3000",
            "http://127.0.0.1:3000",
            "http://[::1]:3000",
        ],
    ),
    cors_allow_origin_regex=_get_env("CORS_ALLOW_ORIGIN_REGEX", r"^https:\/\/[a-z0-9-]+-.*\.vercel\.app$"),
    cors_allow_credentials=_get_env_bool("CORS_ALLOW_CREDENTIALS", False),
    trust_x_forwarded_for=_get_env_bool("TRUST_X_FORWARDED_FOR", False),
    rate_limit_enabled=_get_env_bool("RATE_LIMIT_ENABLED", True),
    rate_limit_requests=_get_env_int("RATE_LIMIT_REQUESTS", 60),
    rate_limit_window_seconds=_get_env_int("RATE_LIMIT_WINDOW_SECONDS", 60),
    redis_url=_get_env("REDIS_URL", "redis://localhost:6379/0") or "redis://localhost:6379/0",
    redis_timeout_s=_get_env_float("REDIS_TIMEOUT_S", 2.0),
    fast_cache_ttl_seconds=_get_env_int("FAST_CACHE_TTL_SECONDS", 3600),
    durable_cache_db_path=_get_env("DURABLE_CACHE_DB_PATH", "data/gap_analyses.db") or "data/gap_analyses.db",
    durable_cache_ttl_hours=_get_env_int("DURABLE_CACHE_TTL_HOURS", 24),
    cache_purge_interval_seconds=_get_env_int("CACHE_PURGE_INTERVAL_SECONDS", 3600),
    resume_min_chars=10,
    resume_max_chars=50000,
    job_description_min_chars=10,
    job_description_max_chars=20000,
)

if settings.rate_limit_requests < 1:
    raise RuntimeError("RATE_LIMIT_REQUESTS must be a positive integer.")

if settings.rate_limit_window_seconds < 1:
    raise RuntimeError("RATE_LIMIT_WINDOW_SECONDS must be a positive integer.")
