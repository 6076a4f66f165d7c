"""Tests for the transcription request pipeline."""

from __future__ import annotations

from datetime import timedelta
from pathlib import Path

import pytest

from tests.helpers import FakeUpload, make_service
from wisp._types import OutputFormat, TranscriptionRequest, WhisperModel
from wisp.config.settings import WhisperSettings
from wisp.exceptions import FileProcessingError
from wisp.pipeline.service import TranscriptionService

CSV_OUTPUT = 'start,end,text\n0,1500," Hello"\n1500,3000," world"\n'


def _request(
    data: bytes = b"fake-audio",
    *,
    lang: str = "en",
    model: str = "base",
    translate: bool = False,
    timestamps: bool = False,
    filename: str | None = "clip.mp3",
) -> TranscriptionRequest:
    return TranscriptionRequest(
        raw_language=lang,
        model_name=model,
        translate=translate,
        want_timestamps=timestamps,
        upload=FakeUpload(data),
        filename=filename,
        content_type="audio/mpeg",
    )


class TestTranscribeSuccess:
    async def test_plain_text(self, audio_dir: Path) -> None:
        service, _ = make_service(audio_dir, output="  Hello world\n")

        result = await service.transcribe(_request())

        assert result.success is True
        assert result.payload == "Hello world"

    async def test_engine_leading_space_is_trimmed(self, audio_dir: Path) -> None:
        service, _ = make_service(audio_dir, output=" And so my fellow Americans\n")

        result = await service.transcribe(_request())

        assert result.payload == "And so my fellow Americans"

    async def test_timestamps(self, audio_dir: Path) -> None:
        service, invoker = make_service(audio_dir, output=CSV_OUTPUT)

        result = await service.transcribe(_request(timestamps=True))

        assert result.success is True
        assert isinstance(result.payload, tuple)
        assert [s.text for s in result.payload] == ["Hello", "world"]
        assert result.payload[1].end == timedelta(milliseconds=3000)
        assert invoker.jobs[0].output_format is OutputFormat.CSV

    async def test_job_carries_resolved_parameters(self, audio_dir: Path) -> None:
        service, invoker = make_service(audio_dir)

        await service.transcribe(_request(lang="German", model="LargeV3", translate=True))

        job = invoker.jobs[0]
        assert job.language == "de"
        assert job.model is WhisperModel.LARGE_V3
        assert job.translate is True
        assert job.output_format is OutputFormat.TEXT

    async def test_upload_is_on_disk_before_engine_runs(self, audio_dir: Path) -> None:
        service, invoker = make_service(audio_dir)

        await service.transcribe(_request(b"abc"))

        job = invoker.jobs[0]
        assert invoker.seen_files[0] == [job.source_path]
        assert job.source_path.name.endswith("-upload.mp3")

    async def test_temp_files_removed_after_success(self, audio_dir: Path) -> None:
        service, _ = make_service(audio_dir)

        await service.transcribe(_request())

        assert list(audio_dir.iterdir()) == []

    async def test_each_request_gets_its_own_files(self, audio_dir: Path) -> None:
        service, invoker = make_service(audio_dir)

        await service.transcribe(_request())
        await service.transcribe(_request())

        assert invoker.jobs[0].file_id != invoker.jobs[1].file_id


class TestTranscribeValidation:
    async def test_invalid_language_is_a_failed_result(self, audio_dir: Path) -> None:
        service, invoker = make_service(audio_dir)

        result = await service.transcribe(_request(lang="klingon"))

        assert result.success is False
        assert result.error_code == "invalid_language"
        assert result.error_message == "Invalid language 'klingon'"
        assert invoker.jobs == []

    async def test_invalid_model_is_a_failed_result(self, audio_dir: Path) -> None:
        service, invoker = make_service(audio_dir)

        result = await service.transcribe(_request(model="huge"))

        assert result.success is False
        assert result.error_code == "invalid_model"
        assert invoker.jobs == []

    async def test_validation_failure_writes_nothing(self, audio_dir: Path) -> None:
        service, _ = make_service(audio_dir)

        await service.transcribe(_request(lang="xx"))

        assert not audio_dir.exists()


class TestTranscribeFailure:
    async def test_processing_error_propagates(self, audio_dir: Path) -> None:
        error = FileProcessingError("Audio conversion", "exit code 1: bad input")
        service, _ = make_service(audio_dir, error=error)

        with pytest.raises(FileProcessingError, match="Audio conversion failed"):
            await service.transcribe(_request())

    async def test_temp_files_removed_after_failure(self, audio_dir: Path) -> None:
        service, _ = make_service(audio_dir, error=RuntimeError("boom"))

        with pytest.raises(RuntimeError):
            await service.transcribe(_request())

        assert list(audio_dir.iterdir()) == []

    async def test_unparseable_output_cleans_up(self, audio_dir: Path) -> None:
        service, _ = make_service(audio_dir, output="not,csv\n")

        with pytest.raises(FileProcessingError, match="Output parsing"):
            await service.transcribe(_request(timestamps=True))

        assert list(audio_dir.iterdir()) == []


class TestFromSettings:
    def test_wires_settings(self, tmp_path: Path) -> None:
        settings = WhisperSettings(
            audio_files_dir=str(tmp_path / "audio"),
            models_dir=str(tmp_path / "models"),
        )

        service = TranscriptionService.from_settings(settings)

        assert isinstance(service, TranscriptionService)
