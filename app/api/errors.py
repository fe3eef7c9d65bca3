import logging

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.core.errors import ErrorKind, ServiceError

logger = logging.getLogger(__name__)

STATUS_BY_KIND = {
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.RATE_LIMITED: status.HTTP_429_TOO_MANY_REQUESTS,
    ErrorKind.AI_SERVICE: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorKind.PARSE: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorKind.TIMEOUT: status.HTTP_504_GATEWAY_TIMEOUT,
    ErrorKind.UNKNOWN: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    status_code = STATUS_BY_KIND[exc.kind]
    headers = None
    if exc.kind is ErrorKind.RATE_LIMITED:
        headers = {"Retry-After": str(exc.retry_after)}
    if status_code >= 500:
        logger.error("request_failed path=%s kind=%s code=%s: %s", request.url.path, exc.kind.value, exc.code, exc.message)
    return JSONResponse(status_code=status_code, content=exc.to_payload(), headers=headers)


def _format_request_errors(exc: RequestValidationError) -> list[str]:
    messages = []
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part != "body"]
        message = error.get("msg", "invalid value")
        messages.append(f"{'.'.join(location)}: {message}" if location else message)
    return messages


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    error = ServiceError.validation("Validation failed", _format_request_errors(exc))
    return await service_error_handler(request, error)
