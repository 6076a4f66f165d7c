"""API response models (Pydantic) for JSON serialization."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel

if TYPE_CHECKING:
    from wisp._types import TranscriptionResult


class SegmentResponse(BaseModel):
    """Timestamped segment; offsets formatted as HH:MM:SS.mmm."""

    start: str
    end: str
    text: str


class TranscriptionResponse(BaseModel):
    """Success body: plain text or ordered segments."""

    success: bool = True
    result: str | list[SegmentResponse]


def response_from_result(result: TranscriptionResult) -> TranscriptionResponse:
    payload = result.payload
    if isinstance(payload, str):
        return TranscriptionResponse(result=payload)
    segments = [SegmentResponse(**segment.to_dict()) for segment in payload or ()]
    return TranscriptionResponse(result=segments)
