"""FastAPI dependencies for injection of the transcription pipeline."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import Request  # noqa: TC002

if TYPE_CHECKING:
    from wisp.pipeline.service import TranscriptionService


def get_transcription_service(request: Request) -> TranscriptionService:
    """Return the TranscriptionService from app state."""
    return request.app.state.transcription_service  # type: ignore[no-any-return]
