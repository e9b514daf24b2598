import logging
from datetime import datetime

from fastapi import Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from slowapi.errors import RateLimitExceeded

logger = logging.getLogger(__name__)

# Все ошибки API отдаются одним JSON: {detail, code, path, timestamp}.
# Для 401 добавляем WWW-Authenticate: Bearer.
def _error_response(
    *,
    status_code: int,
    detail: str,
    code: str,
    request: Request,
    headers: dict | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "detail": detail,
            "code": code,
            "path": request.url.path,
            "timestamp": datetime.utcnow().isoformat() + "Z",
        },
        headers={"WWW-Authenticate": "Bearer", **(headers or {})} if status_code == 401 else headers,
    )


# Базовый класс: сервисы бросают наследников, обработчик ниже превращает их в ответ
class AppError(Exception):
    status_code = 400
    code = "app_error"
    detail = "Application error"

    def __init__(self, detail: str | None = None, code: str | None = None):
        if detail is not None:
            self.detail = detail
        if code is not None:
            self.code = code
        super().__init__(self.detail)


# ================
# Кастомные ошибки
# ================

class InvalidInput(AppError):
    status_code = 400
    code = "invalid_input"
    detail = "Missing or invalid fields"


class InvalidRelationship(AppError):
    status_code = 400
    code = "invalid_relationship"
    detail = "Referenced entities do not belong together"


class Unauthorized(AppError):
    status_code = 401
    code = "unauthorized"
    detail = "Not authorized"


class NotFound(AppError):
    status_code = 404
    code = "not_found"
    detail = "Resource not found"


class Conflict(AppError):
    status_code = 409
    code = "conflict"
    detail = "Resource already exists"


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    return _error_response(
        status_code=exc.status_code,
        detail=exc.detail,
        code=exc.code,
        request=request,
    )


async def http_exception_handler(
    request: Request,
    exc: StarletteHTTPException,
) -> JSONResponse:
    detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return _error_response(
        status_code=exc.status_code,
        detail=detail,
        code="http_error",
        request=request,
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    # Первое сообщение pydantic: "body.email: Field required"
    errors = exc.errors()
    detail = "Validation error"
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()))
        detail = f"{location}: {first.get('msg')}"
    return _error_response(
        status_code=400,
        detail=detail,
        code="invalid_input",
        request=request,
    )


async def rate_limit_exceeded_handler(
    request: Request,
    exc: RateLimitExceeded,
) -> JSONResponse:
    return _error_response(
        status_code=429,
        detail=f"Rate limit exceeded: {exc.detail}",
        code="rate_limited",
        request=request,
    )


async def unhandled_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    logger.error("Unhandled error on %s: %s", request.url.path, exc, exc_info=exc)
    return _error_response(
        status_code=500,
        detail=f"Internal server error: {exc}",
        code="internal_server_error",
        request=request,
    )
