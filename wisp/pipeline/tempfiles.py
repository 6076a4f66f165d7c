"""Per-request temporary files.

``job_workspace`` allocates the three paths one transcription needs (the
upload, its WAV conversion, and the engine output) and deletes all of them
when the block exits, whichever way it exits.
"""

from __future__ import annotations

import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

import aiofiles

from wisp.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from wisp._types import OutputFormat, UploadStream

logger = get_logger("pipeline.tempfiles")

DEFAULT_CHUNK_SIZE = 1024 * 1024


@dataclass(frozen=True, slots=True)
class JobPaths:
    """Paths owned by one request."""

    file_id: str
    source: Path
    wav: Path
    output: Path

    def all(self) -> tuple[Path, Path, Path]:
        return (self.source, self.wav, self.output)


def allocate_paths(directory: Path, filename: str | None, output_format: OutputFormat) -> JobPaths:
    """Build fresh paths under *directory* from a new uuid4.

    The upload keeps its original suffix so the converter can sniff it.
    The output path is the WAV path plus the engine's extension, which is
    where whisper.cpp writes it.
    """
    file_id = str(uuid.uuid4())
    suffix = Path(filename).suffix if filename else ""
    wav = directory / f"{file_id}.wav"
    return JobPaths(
        file_id=file_id,
        source=directory / f"{file_id}-upload{suffix}",
        wav=wav,
        output=output_format.output_path(wav),
    )


@asynccontextmanager
async def job_workspace(
    directory: Path,
    filename: str | None,
    output_format: OutputFormat,
) -> AsyncIterator[JobPaths]:
    """Yield fresh ``JobPaths`` and delete every one of them on exit.

    Creates *directory* (with parents) if it does not exist yet.
    """
    directory.mkdir(parents=True, exist_ok=True)
    paths = allocate_paths(directory, filename, output_format)
    logger.debug("workspace_allocated", file_id=paths.file_id, directory=str(directory))
    try:
        yield paths
    finally:
        removed = remove_files(paths.all())
        logger.debug("workspace_cleaned", file_id=paths.file_id, removed=removed)


def remove_files(paths: tuple[Path, ...]) -> int:
    """Unlink each path that exists. Returns how many were removed."""
    removed = 0
    for path in paths:
        try:
            path.unlink()
        except FileNotFoundError:
            continue
        except OSError as exc:
            logger.error("temp_file_delete_failed", path=str(path), error=str(exc))
            continue
        removed += 1
    return removed


async def persist_upload(
    upload: UploadStream,
    destination: Path,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> int:
    """Stream *upload* to *destination* in chunks. Returns bytes written."""
    written = 0
    async with aiofiles.open(destination, "wb") as out:
        while chunk := await upload.read(chunk_size):
            await out.write(chunk)
            written += len(chunk)
    logger.debug("upload_persisted", path=str(destination), size_bytes=written)
    return written
