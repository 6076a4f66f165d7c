"""Failure-kind to HTTP status mapping and the error envelope.

Every failure response has the body ``{"error": "<message>"}``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from wisp.exceptions import FailureKind, WispError
from wisp.logging import get_logger

if TYPE_CHECKING:
    from fastapi import FastAPI, Request

logger = get_logger("server.errors")

INTERNAL_ERROR_MESSAGE = "Internal server error"


def failure_kind(exc: BaseException) -> FailureKind:
    """Kind of *exc*; anything outside the Wisp hierarchy is UNKNOWN."""
    if isinstance(exc, WispError):
        return exc.kind
    return FailureKind.UNKNOWN


def status_for(kind: FailureKind) -> int:
    match kind:
        case FailureKind.INVALID_FILE_TYPE:
            return 415
        case FailureKind.INVALID_LANGUAGE:
            return 400
        case FailureKind.INVALID_MODEL:
            return 422
        case FailureKind.NO_FILE:
            return 404
        case FailureKind.FILE_PROCESSING:
            return 422
        case FailureKind.UNKNOWN:
            return 500


def error_response(
    status_code: int,
    message: str,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Create an error response in the ``{"error": ...}`` envelope."""
    return JSONResponse(status_code=status_code, content={"error": message}, headers=headers)


def response_for(exc: BaseException) -> JSONResponse:
    """Map a pipeline failure to its HTTP response.

    Classified failures expose their message; unclassified ones do not.
    """
    kind = failure_kind(exc)
    message = str(exc) if kind is not FailureKind.UNKNOWN else INTERNAL_ERROR_MESSAGE
    return error_response(status_for(kind), message)


async def _handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    detail = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()) if p != 'body')}: {err.get('msg', '')}"
        for err in errors
    )
    logger.warning("request_validation_failed", detail=detail, path=request.url.path)

    limiter = getattr(request.app.state, "limiter", None)
    if limiter is not None:
        limiter.credit()

    return error_response(400, f"Invalid request: {detail}" if detail else "Invalid request")


def register_error_handlers(app: FastAPI) -> None:
    """Register exception handlers that run inside the routing layer.

    Pipeline failures are mapped by ``AdmissionMiddleware``; only FastAPI's
    own form validation errors are caught here, since FastAPI handles them
    before they could reach the middleware.
    """
    app.add_exception_handler(RequestValidationError, _handle_request_validation)  # type: ignore[arg-type]
