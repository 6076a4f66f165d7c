"""FastAPI application factory for Wisp."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI

import wisp
from wisp.server.admission import TokenBucketLimiter, TokenBucketOptions
from wisp.server.error_handlers import register_error_handlers
from wisp.server.middleware import AdmissionMiddleware
from wisp.server.routes import health, transcriptions

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from wisp.config.settings import RateLimitSettings, WispSettings
    from wisp.pipeline.service import TranscriptionService


def limiter_from_settings(settings: RateLimitSettings) -> TokenBucketLimiter:
    """Build the admission limiter from the ``WISP_RATE_LIMIT_*`` settings."""
    return TokenBucketLimiter(
        TokenBucketOptions(
            token_limit=settings.token_limit,
            tokens_per_period=settings.tokens_per_period,
            replenishment_period_s=settings.replenishment_period_s,
            queue_limit=settings.queue_limit,
            auto_replenishment=settings.auto_replenishment,
        )
    )


def create_app(
    transcription_service: TranscriptionService | None = None,
    limiter: TokenBucketLimiter | None = None,
    settings: WispSettings | None = None,
) -> FastAPI:
    """Create the FastAPI application.

    Args:
        transcription_service: Pipeline behind ``POST /transcribe``. Built
            from ``settings.whisper`` when omitted.
        limiter: Admission limiter. Built from ``settings.rate_limit`` when omitted.
        settings: Settings to build missing collaborators from (defaults to
            ``get_settings()``).

    Returns:
        Configured FastAPI application.
    """
    if settings is None:
        from wisp.config.settings import get_settings

        settings = get_settings()

    if transcription_service is None:
        from wisp.pipeline.service import TranscriptionService

        transcription_service = TranscriptionService.from_settings(settings.whisper)

    if limiter is None:
        limiter = limiter_from_settings(settings.rate_limit)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        app.state.limiter.start()
        yield
        await app.state.limiter.stop()

    app = FastAPI(
        title="Wisp",
        version=wisp.__version__,
        description="Whisper transcription API backed by whisper.cpp",
        lifespan=lifespan,
    )

    app.state.transcription_service = transcription_service
    app.state.limiter = limiter

    app.add_middleware(AdmissionMiddleware, limiter=limiter)

    if settings.server.force_https:
        from starlette.middleware.httpsredirect import HTTPSRedirectMiddleware

        app.add_middleware(HTTPSRedirectMiddleware)

    register_error_handlers(app)

    app.include_router(health.router)
    app.include_router(transcriptions.router)

    return app
