import logging
from decimal import Decimal

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from app.joyeria.core.error_catalog import AppError, ErrorCatalog, ErrorDefinition
from app.joyeria.core.logging import log_json
from app.joyeria.core.metrics import metrics

logger = logging.getLogger("joyeria.errors")

_HTTP_STATUS_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
}

_LOCK_TIMEOUT_TOKENS = (
    "lock timeout",
    "deadlock detected",
    "database is locked",
    "could not obtain lock",
)


def _trace_id(request: Request) -> str:
    return getattr(request.state, "trace_id", "")


def _set_error_context(request: Request, code: str, exc: Exception | None = None) -> None:
    request.state.error_code = code
    if exc is not None:
        request.state.error_class = exc.__class__.__name__


def _record_idempotency_failure(request: Request, status_code: int, response_body: dict) -> None:
    context = getattr(request.state, "idempotency", None)
    if context is None:
        return
    context.record_failure(status_code=status_code, response_body=response_body)


def is_lock_timeout(exc: Exception) -> bool:
    if not isinstance(exc, OperationalError):
        return False
    message = str(exc).lower()
    return any(token in message for token in _LOCK_TIMEOUT_TOKENS)


def _json_safe(value):
    if isinstance(value, Decimal):
        return format(value, "f")
    if isinstance(value, dict):
        return {key: _json_safe(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(item) for item in value]
    if isinstance(value, Exception):
        return str(value)
    return value


def _validation_error_details(exc: RequestValidationError) -> dict:
    errors = []
    for error in exc.errors():
        loc = list(error.get("loc", []))
        field = ".".join(str(item) for item in loc if item not in {"body", "query", "path", "header"}) or None
        errors.append(
            {
                "field": field,
                "message": error.get("msg", "Invalid value"),
                "type": error.get("type", "validation_error"),
                "loc": loc,
                "input": _json_safe(error.get("input")),
                "ctx": _json_safe(error.get("ctx")),
            }
        )
    return {"errors": errors}


def _catalog_response(request: Request, error: ErrorDefinition, details: object, exc: Exception) -> JSONResponse:
    _set_error_context(request, error.code, exc)
    if error.status_code < 500:
        metrics.increment_rejection(error.code)
    payload = {
        "code": error.code,
        "message": error.message,
        "details": _json_safe(details),
        "trace_id": _trace_id(request),
    }
    _record_idempotency_failure(request, error.status_code, payload)
    return JSONResponse(status_code=error.status_code, content=payload)


def classify_storage_error(exc: SQLAlchemyError) -> ErrorDefinition:
    if isinstance(exc, StaleDataError):
        return ErrorCatalog.CONCURRENT_UPDATE
    if is_lock_timeout(exc):
        return ErrorCatalog.LOCK_TIMEOUT
    return ErrorCatalog.STORAGE_FAILURE


def setup_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        return _catalog_response(request, exc.error, exc.details, exc)

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        code = _HTTP_STATUS_CODES.get(exc.status_code, "HTTP_ERROR")
        detail = exc.detail
        details = None
        message = str(detail) if detail is not None else "HTTP error"
        if isinstance(detail, dict):
            message = str(detail.get("message", message))
            details = {key: value for key, value in detail.items() if key != "message"} or None
        elif isinstance(detail, list):
            details = {"errors": detail}
        _set_error_context(request, code, exc)
        payload = {"code": code, "message": message, "details": details, "trace_id": _trace_id(request)}
        _record_idempotency_failure(request, exc.status_code, payload)
        return JSONResponse(status_code=exc.status_code, content=payload, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return _catalog_response(request, ErrorCatalog.VALIDATION_ERROR, _validation_error_details(exc), exc)

    @app.exception_handler(SQLAlchemyError)
    async def storage_exception_handler(request: Request, exc: SQLAlchemyError):
        error = classify_storage_error(exc)
        if error is ErrorCatalog.LOCK_TIMEOUT:
            metrics.increment_lock_wait_timeout()
        log_json(
            logger,
            {
                "event": "storage_error",
                "trace_id": _trace_id(request),
                "code": error.code,
                "error_class": exc.__class__.__name__,
            },
        )
        return _catalog_response(request, error, {"type": exc.__class__.__name__}, exc)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("unhandled error trace_id=%s", _trace_id(request))
        return _catalog_response(request, ErrorCatalog.INTERNAL_ERROR, {"type": exc.__class__.__name__}, exc)
