"""POST /transcribe — file transcription."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, File, Form, UploadFile

from wisp._types import TranscriptionRequest
from wisp.exceptions import InvalidFileTypeError, NoFileError
from wisp.pipeline.service import TranscriptionService  # noqa: TC001
from wisp.server.dependencies import get_transcription_service
from wisp.server.models import TranscriptionResponse, response_from_result

router = APIRouter(tags=["Transcription"])

ALLOWED_CONTENT_TYPE_PREFIXES = ("audio/", "video/")
GENERIC_CONTENT_TYPES = frozenset({"application/octet-stream"})


def validate_upload(file: UploadFile | None) -> UploadFile:
    """Reject missing uploads and content types ffmpeg will not read as audio.

    Raises:
        NoFileError: If no file (or an empty file name) was sent.
        InvalidFileTypeError: If the content type is not audio, video, or generic binary.
    """
    if file is None or not file.filename:
        raise NoFileError()
    content_type = (file.content_type or "").split(";")[0].strip().lower()
    if content_type and not (
        content_type.startswith(ALLOWED_CONTENT_TYPE_PREFIXES)
        or content_type in GENERIC_CONTENT_TYPES
    ):
        raise InvalidFileTypeError(file.content_type)
    return file


@router.post("/transcribe", response_model=TranscriptionResponse)
async def transcribe(
    file: UploadFile | None = File(default=None),  # noqa: B008
    lang: str = Form(default="auto"),
    model: str = Form(default="base"),
    translate: bool = Form(default=False),
    time_stamps: bool = Form(default=False, alias="timeStamps"),
    service: TranscriptionService = Depends(get_transcription_service),  # noqa: B008
) -> Any:
    """Transcribe an uploaded audio file.

    Returns ``{"success": true, "result": ...}`` where ``result`` is the text,
    or the list of ``{start, end, text}`` segments when ``timeStamps`` is set.
    """
    upload = validate_upload(file)
    request = TranscriptionRequest(
        raw_language=lang,
        model_name=model,
        translate=translate,
        want_timestamps=time_stamps,
        upload=upload,
        filename=upload.filename,
        content_type=upload.content_type,
    )
    result = await service.transcribe(request)
    result.raise_for_failure()
    return response_from_result(result)
