"""Translate domain errors into FastAPI responses.

Controllers that sit on top of the stores call ``register_exception_handlers``
once on their application. The core itself never builds responses.
"""

import logging

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse

from restaurant_core.core.exceptions import (
    ConflictError,
    InvalidOperationError,
    NotFoundError,
    RestaurantCoreError,
    StoreError,
    ValidationError,
)

logger = logging.getLogger(__name__)


STATUS_BY_ERROR = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ConflictError: status.HTTP_409_CONFLICT,
    ValidationError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    InvalidOperationError: status.HTTP_400_BAD_REQUEST,
    StoreError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def status_for(exc: RestaurantCoreError) -> int:
    """Return the HTTP status code for a domain error."""
    for error_cls in type(exc).__mro__:
        if error_cls in STATUS_BY_ERROR:
            return STATUS_BY_ERROR[error_cls]
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def to_http_exception(exc: RestaurantCoreError) -> HTTPException:
    """Wrap a domain error as an ``HTTPException`` for routes that raise directly."""
    return HTTPException(status_code=status_for(exc), detail=exc.message)


async def domain_error_handler(request: Request, exc: RestaurantCoreError) -> JSONResponse:
    status_code = status_for(exc)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    body = {"detail": exc.message, "error": exc.kind}
    if exc.details:
        body["errors"] = exc.details
    return JSONResponse(status_code=status_code, content=body)


def register_exception_handlers(app: FastAPI) -> None:
    """Install the domain error handler on a FastAPI application."""
    app.add_exception_handler(RestaurantCoreError, domain_error_handler)
