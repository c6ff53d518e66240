"""Map the error taxonomy onto HTTP responses.

The core never picks status codes; this module is the only place that does.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from fairmap.errors import (
    ParameterError,
    ParameterErrorKind,
    RepoError,
    RepoErrorKind,
)

logger = logging.getLogger(__name__)

_PARAMETER_STATUS = {
    ParameterErrorKind.CREDENTIALS: 401,
    ParameterErrorKind.EMAIL_NOT_CONFIRMED: 403,
    ParameterErrorKind.FORBIDDEN: 403,
}

_REPO_STATUS = {
    RepoErrorKind.NOT_FOUND: 404,
    RepoErrorKind.INVALID_VERSION: 409,
    RepoErrorKind.ALREADY_EXISTS: 409,
}


def parameter_status(exc: ParameterError) -> int:
    return _PARAMETER_STATUS.get(exc.kind, 400)


def repo_status(exc: RepoError) -> int:
    return _REPO_STATUS.get(exc.kind, 500)


async def _parameter_error_handler(request: Request, exc: ParameterError) -> JSONResponse:
    return JSONResponse(
        status_code=parameter_status(exc),
        content={"error": exc.kind.value, "detail": str(exc)},
    )


async def _repo_error_handler(request: Request, exc: RepoError) -> JSONResponse:
    status = repo_status(exc)
    if status >= 500:
        logger.error("Repository failure on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status,
        content={"error": exc.kind.value, "detail": str(exc)},
    )


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ParameterError, _parameter_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RepoError, _repo_error_handler)  # type: ignore[arg-type]
