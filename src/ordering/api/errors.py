"""Maps exceptions raised while handling a request onto the JSON error envelope."""

import structlog
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from protean.exceptions import ExpectedVersionError, ObjectNotFoundError, ValidationError

from ordering.exceptions import StorefrontError

logger = structlog.get_logger(__name__)


def _error(status_code: int, message: str, error: dict | None = None) -> JSONResponse:
    body = {"success": False, "message": message}
    if error:
        body["error"] = jsonable_encoder(error)
    return JSONResponse(status_code=status_code, content=body)


def _flatten(messages: dict) -> str:
    return "; ".join(str(msg) for msgs in messages.values() for msg in msgs)


async def storefront_error_handler(request: Request, exc: StorefrontError) -> JSONResponse:
    log = logger.error if exc.status_code >= 500 else logger.info
    log("request_failed", error_type=type(exc).__name__, message=exc.message, status_code=exc.status_code)
    return _error(exc.status_code, exc.message, exc.details or None)


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return _error(400, _flatten(exc.messages) or "Validation failed", exc.messages)


async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return _error(400, "Validation failed", {"fields": exc.errors()})


async def object_not_found_handler(request: Request, exc: ObjectNotFoundError) -> JSONResponse:
    return _error(404, "Resource not found")


async def version_conflict_handler(request: Request, exc: ExpectedVersionError) -> JSONResponse:
    logger.warning("concurrent_modification", path=request.url.path, error=str(exc))
    return _error(409, "The resource was modified concurrently, please retry")


async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_error", path=request.url.path, error_type=type(exc).__name__)
    return _error(500, "Internal server error")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StorefrontError, storefront_error_handler)
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(ObjectNotFoundError, object_not_found_handler)
    app.add_exception_handler(ExpectedVersionError, version_conflict_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)
