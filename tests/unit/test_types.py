"""Tests for wisp._types."""

from __future__ import annotations

from datetime import timedelta
from pathlib import Path

import pytest

from wisp._types import OutputFormat, TimestampSegment, TranscriptionResult, format_offset
from wisp.exceptions import FailureKind, TranscriptionFailedError


class TestFormatOffset:
    def test_zero(self) -> None:
        assert format_offset(timedelta(0)) == "00:00:00.000"

    def test_milliseconds(self) -> None:
        assert format_offset(timedelta(milliseconds=2500)) == "00:00:02.500"

    def test_hours_minutes_seconds(self) -> None:
        offset = timedelta(hours=1, minutes=2, seconds=3, milliseconds=45)
        assert format_offset(offset) == "01:02:03.045"

    def test_negative_clamps_to_zero(self) -> None:
        assert format_offset(timedelta(milliseconds=-5)) == "00:00:00.000"


class TestOutputFormat:
    def test_flags(self) -> None:
        assert OutputFormat.TEXT.flag == "-otxt"
        assert OutputFormat.CSV.flag == "-ocsv"

    def test_extension_drops_flag_prefix(self) -> None:
        assert OutputFormat.TEXT.extension == "txt"
        assert OutputFormat.CSV.extension == "csv"

    def test_output_path_appends_extension(self) -> None:
        wav = Path("/tmp/audio/abc.wav")
        assert OutputFormat.TEXT.output_path(wav) == Path("/tmp/audio/abc.wav.txt")
        assert OutputFormat.CSV.output_path(wav) == Path("/tmp/audio/abc.wav.csv")


class TestTimestampSegment:
    def test_to_dict_formats_offsets(self) -> None:
        segment = TimestampSegment(
            start=timedelta(milliseconds=0),
            end=timedelta(milliseconds=1500),
            text="Hello",
        )
        assert segment.to_dict() == {
            "start": "00:00:00.000",
            "end": "00:00:01.500",
            "text": "Hello",
        }


class TestTranscriptionResult:
    def test_ok(self) -> None:
        result = TranscriptionResult.ok("hi")
        assert result.success is True
        assert result.payload == "hi"
        assert result.error_code is None

    def test_ok_does_not_raise(self) -> None:
        TranscriptionResult.ok("hi").raise_for_failure()

    def test_failure_raises_with_recorded_kind(self) -> None:
        result = TranscriptionResult.failure("invalid_model", "Invalid model 'huge'")
        with pytest.raises(TranscriptionFailedError, match="Invalid model 'huge'") as exc_info:
            result.raise_for_failure()
        assert exc_info.value.kind is FailureKind.INVALID_MODEL

    def test_unrecognized_code_raises_unknown(self) -> None:
        result = TranscriptionResult.failure("boom", "something")
        with pytest.raises(TranscriptionFailedError) as exc_info:
            result.raise_for_failure()
        assert exc_info.value.kind is FailureKind.UNKNOWN
