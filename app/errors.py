"""Exception handlers shared by every API router."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.services.performance.errors import (
    InvalidConfigError,
    PerformanceError,
    ReportTimeoutError,
    ScopeCollectionError,
)

logger = logging.getLogger(__name__)


def _error_body(exc: PerformanceError) -> dict:
    body: dict = {"detail": exc.detail, "code": exc.code}
    if isinstance(exc, InvalidConfigError):
        body["total"] = exc.total
        if exc.out_of_range:
            body["out_of_range"] = exc.out_of_range
    if isinstance(exc, ScopeCollectionError):
        body["failed_members"] = exc.failed_ids
    return body


async def performance_error_handler(request: Request, exc: PerformanceError) -> JSONResponse:
    if isinstance(exc, ScopeCollectionError | ReportTimeoutError):
        logger.warning("performance_request_failed path=%s code=%s detail=%s", request.url.path, exc.code, exc.detail)
    return JSONResponse(status_code=exc.status_code, content=_error_body(exc))


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(PerformanceError, performance_error_handler)
