"""Maps orgquery exceptions onto HTTP responses."""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from orgquery.exceptions import (
    ConfigurationError,
    InvalidIdentifierError,
    OrgQueryError,
    UnsupportedProviderError,
)

logger = logging.getLogger(__name__)


def status_for(exc: OrgQueryError) -> int:
    if isinstance(exc, InvalidIdentifierError):
        return 400
    if isinstance(exc, UnsupportedProviderError):
        return 422
    if isinstance(exc, ConfigurationError):
        return 409
    return 502


async def orgquery_error_handler(request: Request, exc: OrgQueryError) -> JSONResponse:
    status_code = status_for(exc)
    logger.warning("[api] %s %s → %d: %s", request.method, request.url.path, status_code, exc)
    return JSONResponse(
        {"detail": str(exc), "error": type(exc).__name__},
        status_code=status_code,
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(OrgQueryError, orgquery_error_handler)
