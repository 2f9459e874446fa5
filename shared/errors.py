"""
Error taxonomy shared by every service.

Client/input problems surface as 400/404, a provider or carrier rejecting a call
surfaces as 400 with the upstream body attached, and anything else is a 500.
Every error body is {"error", "details"?, "traceId"} so a caller-reported failure
can be matched to the server logs.
"""
from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from shared.observability.request_context import get_trace_id
from shared.responses import error_response

logger = structlog.get_logger(__name__)


class ServiceError(Exception):
    """Base error; carries the HTTP status it should be rendered with."""
    status_code = 500

    def __init__(self, message: str, details: Any = None):
        super().__init__(message)
        self.message = message
        self.details = details


class BadRequestError(ServiceError):
    status_code = 400


class NotFoundError(ServiceError):
    status_code = 404


class UpstreamServiceError(ServiceError):
    """A third-party API (payment gateway, carrier, invoicing, email) refused or failed the call."""
    status_code = 400

    def __init__(self, message: str, details: Any = None, provider: str = "unknown"):
        super().__init__(message, details)
        self.provider = provider


class InsufficientStockError(ServiceError):
    def __init__(self, variant_id: str, quantity: int):
        super().__init__(f"Insufficient stock for variant {variant_id} (requested {quantity})")
        self.variant_id = variant_id
        self.quantity = quantity


async def service_error_handler(request: Request, exc: ServiceError):
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(exc.message, status_code=exc.status_code, details=exc.details)
    return error_response(exc.message, exc.status_code, get_trace_id(request), exc.details)


async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = jsonable_encoder(exc.errors())
    logger.warning("Invalid request body", errors=errors)
    return error_response("Invalid request", 400, get_trace_id(request), errors)


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    logger.warning("Request rejected", detail=exc.detail, status_code=exc.status_code, path=request.url.path)
    response = error_response(str(exc.detail), exc.status_code, get_trace_id(request))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    logger.warning("Rate limit exceeded", limit=str(exc.detail), path=request.url.path)
    return error_response("Too many requests", 429, get_trace_id(request))


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error("Request failed", error=str(exc), exc_info=exc)
    return error_response(str(exc), 500, get_trace_id(request))


def install_error_handlers(app: FastAPI):
    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
