"""Shared fixtures for all tests."""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure repo root is on sys.path so tests can import the `wisp` package
# when running pytest from the repository root without an editable install.
ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

import pytest  # noqa: E402

from wisp._types import OutputFormat, ResolvedJob, WhisperModel  # noqa: E402
from wisp.config.settings import get_settings  # noqa: E402


@pytest.fixture(autouse=True)
def _clear_settings_cache() -> None:
    get_settings.cache_clear()


@pytest.fixture
def audio_dir(tmp_path: Path) -> Path:
    """Temporary audio files directory (not created yet)."""
    return tmp_path / "audio"


@pytest.fixture
def resolved_job(tmp_path: Path) -> ResolvedJob:
    wav = tmp_path / "job.wav"
    return ResolvedJob(
        file_id="job",
        source_path=tmp_path / "job-upload.mp3",
        wav_path=wav,
        output_path=OutputFormat.TEXT.output_path(wav),
        language="en",
        model=WhisperModel.BASE,
        output_format=OutputFormat.TEXT,
        translate=False,
        want_timestamps=False,
    )
