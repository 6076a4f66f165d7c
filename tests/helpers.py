"""Shared test helpers.

Usage:
    from tests.helpers import FakeInvoker, FakeUpload, make_service
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from wisp.pipeline.service import TranscriptionService

if TYPE_CHECKING:
    from pathlib import Path

    from wisp._types import ResolvedJob


class FakeUpload:
    """In-memory stand-in for FastAPI's UploadFile."""

    def __init__(self, data: bytes) -> None:
        self._data = data
        self._offset = 0
        self.read_sizes: list[int] = []

    async def read(self, size: int = -1) -> bytes:
        self.read_sizes.append(size)
        if size < 0:
            size = len(self._data) - self._offset
        chunk = self._data[self._offset : self._offset + size]
        self._offset += len(chunk)
        return chunk


class FakeInvoker:
    """Writes canned engine output instead of running ffmpeg and whisper.cpp."""

    def __init__(self, output: str = "Hello world\n", error: Exception | None = None) -> None:
        self.output = output
        self.error = error
        self.jobs: list[ResolvedJob] = []
        self.seen_files: list[list[Path]] = []

    async def invoke(self, job: ResolvedJob) -> Path:
        self.jobs.append(job)
        self.seen_files.append(sorted(job.source_path.parent.iterdir()))
        if self.error is not None:
            raise self.error
        job.wav_path.write_bytes(b"RIFF")
        job.output_path.write_text(self.output, encoding="utf-8")
        return job.output_path


def make_service(
    audio_dir: Path,
    output: str = "Hello world\n",
    error: Exception | None = None,
) -> tuple[TranscriptionService, FakeInvoker]:
    invoker = FakeInvoker(output=output, error=error)
    return TranscriptionService(invoker, audio_dir), invoker  # type: ignore[arg-type]
