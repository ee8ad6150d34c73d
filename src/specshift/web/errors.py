"""Translate specshift exceptions into JSON error responses."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from specshift.exceptions import SpecshiftError

logger = logging.getLogger(__name__)


async def specshift_error_handler(request: Request, exc: SpecshiftError) -> JSONResponse:
    """Render ``{"error": message}`` plus ``details`` when the error has any."""
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.info("%s %s rejected: %s", request.method, request.url.path, exc.message)

    body: dict = {"error": exc.message}
    if exc.details is not None:
        body["details"] = exc.details
    return JSONResponse(status_code=exc.status_code, content=body)


def register_exception_handlers(app: FastAPI) -> None:
    """Install the handler for every :class:`~specshift.exceptions.SpecshiftError`."""
    app.add_exception_handler(SpecshiftError, specshift_error_handler)
