"""Admission control and failure boundary for every HTTP request."""

from __future__ import annotations

import math
import uuid
from typing import TYPE_CHECKING

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from wisp.exceptions import FailureKind, RateLimitExceededError
from wisp.logging import get_logger, request_context
from wisp.server.error_handlers import error_response, failure_kind, response_for

if TYPE_CHECKING:
    from collections.abc import Iterable

    from fastapi import Request, Response
    from starlette.types import ASGIApp

    from wisp.server.admission import TokenBucketLimiter

logger = get_logger("server.middleware")

# Only the transcription endpoint draws from the token bucket.
DEFAULT_ADMITTED_PATHS = frozenset({"/transcribe"})


class AdmissionMiddleware(BaseHTTPMiddleware):
    """Take a limiter token per transcription request and map its failures to JSON errors.

    A failed request gets its token back.
    """

    def __init__(
        self,
        app: ASGIApp,
        limiter: TokenBucketLimiter,
        admitted_paths: Iterable[str] = DEFAULT_ADMITTED_PATHS,
    ) -> None:
        super().__init__(app)
        self._limiter = limiter
        self._admitted_paths = frozenset(admitted_paths)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id

        if request.url.path not in self._admitted_paths:
            return await call_next(request)

        with request_context(request_id=request_id, path=request.url.path):
            try:
                await self._limiter.acquire()
            except RateLimitExceededError as exc:
                return error_response(
                    429,
                    str(exc),
                    headers={"Retry-After": str(math.ceil(exc.retry_after_seconds))},
                )

            try:
                return await call_next(request)
            except Exception as exc:
                self._limiter.credit()
                self._log_failure(exc)
                return response_for(exc)

    @staticmethod
    def _log_failure(exc: Exception) -> None:
        kind = failure_kind(exc)
        if kind is FailureKind.UNKNOWN:
            logger.error(
                "request_failed",
                error=str(exc),
                error_type=type(exc).__name__,
                exc_info=True,
            )
        else:
            logger.warning("request_failed", kind=kind.value, error=str(exc))
