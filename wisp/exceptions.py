"""Typed exceptions for Wisp.

Hierarchy:
    WispError (base, FailureKind.UNKNOWN)
    +-- InvalidFileTypeError
    +-- InvalidLanguageError
    +-- InvalidModelError
    +-- NoFileError
    +-- FileProcessingError
    |   +-- ProcessTimeoutError
    +-- RateLimitExceededError
    +-- TranscriptionFailedError

Every error carries a ``kind`` drawn from the closed ``FailureKind`` enum.
The HTTP boundary maps kinds to status codes; nothing else inspects the
concrete class.
"""

from __future__ import annotations

from enum import Enum


class FailureKind(Enum):
    """Closed set of pipeline failure kinds."""

    INVALID_FILE_TYPE = "invalid_file_type"
    INVALID_LANGUAGE = "invalid_language"
    INVALID_MODEL = "invalid_model"
    NO_FILE = "no_file"
    FILE_PROCESSING = "file_processing"
    UNKNOWN = "unknown"


class WispError(Exception):
    """Base for all Wisp exceptions."""

    kind: FailureKind = FailureKind.UNKNOWN


# --- Request validation ---


class InvalidFileTypeError(WispError):
    """Uploaded file has a content type the converter does not accept."""

    kind = FailureKind.INVALID_FILE_TYPE

    def __init__(self, content_type: str | None) -> None:
        self.content_type = content_type
        super().__init__(f"Unsupported file type '{content_type}'. Upload an audio or video file")


class InvalidLanguageError(WispError):
    """Language token matches no known language."""

    kind = FailureKind.INVALID_LANGUAGE

    def __init__(self, language: str) -> None:
        self.language = language
        super().__init__(f"Invalid language '{language}'")


class InvalidModelError(WispError):
    """Model name matches no supported model tier."""

    kind = FailureKind.INVALID_MODEL

    def __init__(self, model_name: str) -> None:
        self.model_name = model_name
        super().__init__(f"Invalid model '{model_name}'")


class NoFileError(WispError):
    """Request carried no file to transcribe."""

    kind = FailureKind.NO_FILE

    def __init__(self) -> None:
        super().__init__("No file was uploaded")


# --- Processing ---


class FileProcessingError(WispError):
    """Conversion, provisioning or engine execution failed."""

    kind = FailureKind.FILE_PROCESSING

    def __init__(self, stage: str, reason: str) -> None:
        self.stage = stage
        self.reason = reason
        super().__init__(f"{stage} failed: {reason}")


class ProcessTimeoutError(FileProcessingError):
    """External call did not finish within its timeout."""

    def __init__(self, stage: str, timeout_seconds: float) -> None:
        self.timeout_seconds = timeout_seconds
        super().__init__(stage, f"no result within {timeout_seconds:.0f}s")


# --- Admission ---


class RateLimitExceededError(WispError):
    """Token bucket is empty and the wait queue is full."""

    def __init__(self, retry_after_seconds: float) -> None:
        self.retry_after_seconds = retry_after_seconds
        super().__init__("Too many requests. Try again later")


# --- Results ---


class TranscriptionFailedError(WispError):
    """A failed ``TranscriptionResult`` raised at the HTTP boundary.

    Carries the failure kind recorded in the result instead of a fixed one.
    """

    def __init__(self, kind: FailureKind, message: str) -> None:
        self.kind = kind
        super().__init__(message)
