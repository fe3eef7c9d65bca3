from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    RATE_LIMITED = "rate_limited"
    AI_SERVICE = "ai_service"
    PARSE = "parse"
    TIMEOUT = "timeout"
    UNKNOWN = "unknown"


_DEFAULT_CODES = {
    ErrorKind.VALIDATION: "VALIDATION_ERROR",
    ErrorKind.RATE_LIMITED: "RATE_LIMIT_EXCEEDED",
    ErrorKind.AI_SERVICE: "AI_SERVICE_ERROR",
    ErrorKind.PARSE: "PARSE_ERROR",
    ErrorKind.TIMEOUT: "TIMEOUT_ERROR",
    ErrorKind.UNKNOWN: "INTERNAL_ERROR",
}


class ServiceError(RuntimeError):
    """Single error type for the analysis pipeline.

    ``kind`` is the discriminator the HTTP boundary matches on; the remaining
    attributes are the payload for that kind:

    - ``details``: per-field messages (validation) or a raw-output excerpt (parse).
    - ``status_code``: upstream HTTP status for AI service failures, if any.
    - ``retryable``: whether the same upstream call may succeed on retry.
    - ``retry_after``: whole seconds to wait (rate limiting).
    - ``timeout_ms``: the budget that was exceeded (timeouts).
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        *,
        code: str | None = None,
        details: list[str] | None = None,
        status_code: int | None = None,
        retryable: bool = False,
        retry_after: int | None = None,
        timeout_ms: int | None = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.code = code or _DEFAULT_CODES[kind]
        self.details = list(details or [])
        self.status_code = status_code
        self.retryable = retryable
        self.retry_after = retry_after
        self.timeout_ms = timeout_ms

    @classmethod
    def validation(cls, message: str, details: list[str] | None = None) -> ServiceError:
        return cls(ErrorKind.VALIDATION, message, details=details)

    @classmethod
    def rate_limited(cls, retry_after: int) -> ServiceError:
        return cls(
            ErrorKind.RATE_LIMITED,
            "Too many requests. Please try again later.",
            retry_after=max(1, int(retry_after)),
            retryable=True,
        )

    @classmethod
    def ai_service(
        cls,
        message: str,
        *,
        code: str = "AI_SERVICE_ERROR",
        status_code: int | None = None,
        retryable: bool = True,
    ) -> ServiceError:
        return cls(ErrorKind.AI_SERVICE, message, code=code, status_code=status_code, retryable=retryable)

    @classmethod
    def parse(cls, message: str, excerpt: str | None = None) -> ServiceError:
        return cls(ErrorKind.PARSE, message, details=[excerpt] if excerpt else None)

    @classmethod
    def timeout(cls, message: str, timeout_ms: int, *, retryable: bool = False) -> ServiceError:
        return cls(ErrorKind.TIMEOUT, message, timeout_ms=timeout_ms, retryable=retryable)

    @classmethod
    def unknown(cls, message: str) -> ServiceError:
        return cls(ErrorKind.UNKNOWN, message or "Unknown error")

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.message, "code": self.code}
        if self.kind is ErrorKind.VALIDATION and self.details:
            payload["validationErrors"] = self.details
        elif self.details:
            payload["details"] = "; ".join(self.details)
        if self.retry_after is not None:
            payload["retryAfter"] = self.retry_after
        return payload
