"""Core types for Wisp.

This module defines the enums and dataclasses shared by the pipeline and the
HTTP layer. Changes here affect the entire system.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from pathlib import Path
from typing import Protocol

from wisp.exceptions import FailureKind, TranscriptionFailedError

# whisper.cpp only accepts 16 kHz 16-bit PCM WAV input.
ENGINE_SAMPLE_RATE: int = 16000

AUTO_LANGUAGE = "auto"


class WhisperModel(Enum):
    """Supported whisper.cpp model tiers.

    The value is the tier name used in the ggml weights file name.
    """

    TINY = "tiny"
    TINY_EN = "tiny.en"
    BASE = "base"
    BASE_EN = "base.en"
    SMALL = "small"
    SMALL_EN = "small.en"
    MEDIUM = "medium"
    MEDIUM_EN = "medium.en"
    LARGE_V1 = "large-v1"
    LARGE_V2 = "large-v2"
    LARGE_V3 = "large-v3"

    @property
    def weights_filename(self) -> str:
        """File name of the ggml weights for this tier."""
        return f"ggml-{self.value}.bin"


class OutputFormat(Enum):
    """Engine output mode, stored as the engine's command-line flag."""

    TEXT = "-otxt"
    CSV = "-ocsv"

    @property
    def flag(self) -> str:
        return self.value

    @property
    def extension(self) -> str:
        """Extension the engine appends to the input path (flag minus ``-o``)."""
        return self.value[2:]

    def output_path(self, wav_path: Path) -> Path:
        """Where the engine writes its result for *wav_path*."""
        return wav_path.with_name(f"{wav_path.name}.{self.extension}")

    @classmethod
    def for_timestamps(cls, want_timestamps: bool) -> OutputFormat:
        return cls.CSV if want_timestamps else cls.TEXT


class UploadStream(Protocol):
    """Anything with an awaitable chunked ``read`` (FastAPI's UploadFile fits)."""

    async def read(self, size: int = -1) -> bytes: ...


@dataclass(frozen=True, slots=True)
class TranscriptionRequest:
    """Parameters of one transcription call, as received."""

    raw_language: str
    model_name: str
    translate: bool
    want_timestamps: bool
    upload: UploadStream
    filename: str | None = None
    content_type: str | None = None


@dataclass(frozen=True, slots=True)
class ResolvedJob:
    """Validated, path-assigned form of a TranscriptionRequest."""

    file_id: str
    source_path: Path
    wav_path: Path
    output_path: Path
    language: str
    model: WhisperModel
    output_format: OutputFormat
    translate: bool
    want_timestamps: bool


@dataclass(frozen=True, slots=True)
class TimestampSegment:
    """One speech segment with offsets from the start of the audio."""

    start: timedelta
    end: timedelta
    text: str

    def to_dict(self) -> dict[str, str]:
        return {
            "start": format_offset(self.start),
            "end": format_offset(self.end),
            "text": self.text,
        }


TranscriptionPayload = str | tuple[TimestampSegment, ...]


@dataclass(frozen=True, slots=True)
class TranscriptionResult:
    """Terminal outcome of one pipeline run.

    Build with ``ok()`` or ``failure()``; payload and error fields are
    mutually exclusive.
    """

    success: bool
    payload: TranscriptionPayload | None = None
    error_code: str | None = None
    error_message: str | None = None

    @classmethod
    def ok(cls, payload: TranscriptionPayload) -> TranscriptionResult:
        return cls(success=True, payload=payload)

    @classmethod
    def failure(cls, error_code: str, error_message: str) -> TranscriptionResult:
        return cls(success=False, error_code=error_code, error_message=error_message)

    def raise_for_failure(self) -> None:
        """Raise the typed error recorded in a failed result. No-op on success."""
        if self.success:
            return
        try:
            kind = FailureKind(self.error_code)
        except ValueError:
            kind = FailureKind.UNKNOWN
        raise TranscriptionFailedError(kind, self.error_message or "Transcription failed")


def format_offset(offset: timedelta) -> str:
    """Format an offset as HH:MM:SS.mmm."""
    total_ms = max(0, round(offset.total_seconds() * 1000))
    hours, remainder = divmod(total_ms, 3_600_000)
    minutes, remainder = divmod(remainder, 60_000)
    secs, millis = divmod(remainder, 1000)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}.{millis:03d}"
