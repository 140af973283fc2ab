"""Maps the service error taxonomy onto HTTP responses."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from learnhub.core.errors import LearnHubError

logger = logging.getLogger(__name__)


async def learnhub_error_handler(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, LearnHubError)
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.info(
            "%s %s rejected: %s %s",
            request.method,
            request.url.path,
            type(exc).__name__,
            exc.message,
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message},
        headers=headers,
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(LearnHubError, learnhub_error_handler)
