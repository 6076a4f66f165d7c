"""Transcription request pipeline.

validate language + model -> allocate workspace -> persist upload ->
provision weights -> convert to WAV -> run engine -> read output ->
delete temp files -> assemble result
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from wisp._types import ResolvedJob, TranscriptionResult
from wisp.exceptions import InvalidLanguageError, InvalidModelError
from wisp.logging import get_logger
from wisp.pipeline.language import normalize_language
from wisp.pipeline.models import output_format_for, resolve_model
from wisp.pipeline.output import read_output
from wisp.pipeline.tempfiles import DEFAULT_CHUNK_SIZE, job_workspace, persist_upload

if TYPE_CHECKING:
    from pathlib import Path

    from wisp._types import TranscriptionRequest
    from wisp.config.settings import WhisperSettings
    from wisp.pipeline.engine import TranscriptionInvoker

logger = get_logger("pipeline.service")


class TranscriptionService:
    """Run one transcription request end to end.

    Validation failures come back as failed results before any file is
    written. Failures after that propagate as exceptions; the workspace
    removes the temporary files either way.
    """

    def __init__(
        self,
        invoker: TranscriptionInvoker,
        audio_files_dir: Path,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        self._invoker = invoker
        self._audio_files_dir = audio_files_dir
        self._chunk_size = chunk_size

    @classmethod
    def from_settings(cls, settings: WhisperSettings) -> TranscriptionService:
        """Wire the default ffmpeg / HuggingFace Hub / whisper.cpp collaborators."""
        from wisp.pipeline.converter import AudioConverter
        from wisp.pipeline.engine import TranscriptionInvoker, WhisperEngine
        from wisp.pipeline.provisioner import ModelProvisioner

        invoker = TranscriptionInvoker(
            provisioner=ModelProvisioner(
                settings.models_path,
                repo_id=settings.models_repo,
                timeout_s=settings.provision_timeout_s,
            ),
            converter=AudioConverter(
                ffmpeg_binary=settings.ffmpeg_binary,
                sample_rate=settings.sample_rate,
                timeout_s=settings.conversion_timeout_s,
            ),
            engine=WhisperEngine(
                binary=settings.engine_binary,
                timeout_s=settings.engine_timeout_s,
            ),
        )
        return cls(
            invoker,
            settings.audio_files_path,
            chunk_size=settings.upload_chunk_size_bytes,
        )

    async def transcribe(self, request: TranscriptionRequest) -> TranscriptionResult:
        """Process *request* and return its result.

        Raises:
            FileProcessingError: If provisioning, conversion or the engine fail.
        """
        try:
            language = normalize_language(request.raw_language)
            model = resolve_model(request.model_name)
        except (InvalidLanguageError, InvalidModelError) as exc:
            return TranscriptionResult.failure(exc.kind.value, str(exc))

        output_format = output_format_for(request.want_timestamps)

        async with job_workspace(self._audio_files_dir, request.filename, output_format) as paths:
            job = ResolvedJob(
                file_id=paths.file_id,
                source_path=paths.source,
                wav_path=paths.wav,
                output_path=paths.output,
                language=language,
                model=model,
                output_format=output_format,
                translate=request.translate,
                want_timestamps=request.want_timestamps,
            )
            size = await persist_upload(request.upload, job.source_path, self._chunk_size)
            logger.info(
                "transcription_job",
                file_id=job.file_id,
                filename=request.filename,
                size_bytes=size,
                language=job.language,
                model=job.model.value,
                timestamps=job.want_timestamps,
            )

            output = await self._invoker.invoke(job)
            payload = await read_output(output, job.want_timestamps)

        logger.info("transcription_complete", file_id=job.file_id)
        return TranscriptionResult.ok(payload)
