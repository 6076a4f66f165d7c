"""Tests for whisper.cpp invocation and the transcription invoker."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, call, patch

import pytest

from wisp._types import OutputFormat, ResolvedJob
from wisp.exceptions import FileProcessingError
from wisp.pipeline.engine import TranscriptionInvoker, WhisperEngine


class TestBuildCommand:
    def test_plain_text_command(self) -> None:
        engine = WhisperEngine(binary="whisper-cli")
        command = engine.build_command(
            Path("/a/x.wav"), "en", False, Path("/m/ggml-base.bin"), OutputFormat.TEXT
        )

        assert command == [
            "whisper-cli",
            "-m", "/m/ggml-base.bin",
            "-f", "/a/x.wav",
            "-l", "en",
            "-otxt",
            "-np",
        ]  # fmt: skip

    def test_translate_adds_flag(self) -> None:
        command = WhisperEngine().build_command(
            Path("x.wav"), "de", True, Path("w.bin"), OutputFormat.TEXT
        )
        assert command[-1] == "-tr"

    def test_csv_output(self) -> None:
        command = WhisperEngine().build_command(
            Path("x.wav"), "auto", False, Path("w.bin"), OutputFormat.CSV
        )
        assert "-ocsv" in command
        assert "-otxt" not in command
        assert command[command.index("-l") + 1] == "auto"


class TestRun:
    async def test_returns_output_path(self, tmp_path: Path) -> None:
        wav = tmp_path / "x.wav"
        (tmp_path / "x.wav.txt").write_text("hi")
        engine = WhisperEngine(timeout_s=12.0)

        with patch("wisp.pipeline.engine.run_process", new_callable=AsyncMock) as run:
            output = await engine.run(wav, "en", False, tmp_path / "w.bin", OutputFormat.TEXT)

        assert output == tmp_path / "x.wav.txt"
        stage, _command, timeout = run.call_args.args
        assert stage == "Transcription"
        assert timeout == 12.0

    async def test_missing_output_raises(self, tmp_path: Path) -> None:
        engine = WhisperEngine()

        with (
            patch("wisp.pipeline.engine.run_process", new_callable=AsyncMock),
            pytest.raises(FileProcessingError, match="no output file"),
        ):
            await engine.run(tmp_path / "x.wav", "en", False, tmp_path / "w.bin", OutputFormat.CSV)

    async def test_process_failure_propagates(self, tmp_path: Path) -> None:
        engine = WhisperEngine()
        failure = FileProcessingError("Transcription", "exit code 1: bad model")

        with (
            patch("wisp.pipeline.engine.run_process", AsyncMock(side_effect=failure)),
            pytest.raises(FileProcessingError, match="bad model"),
        ):
            await engine.run(tmp_path / "x.wav", "en", False, tmp_path / "w.bin", OutputFormat.TEXT)


class TestTranscriptionInvoker:
    def _make_invoker(self, weights: Path, output: Path) -> tuple[TranscriptionInvoker, MagicMock]:
        manager = MagicMock()
        manager.provisioner.ensure = AsyncMock(return_value=weights)
        manager.converter.convert = AsyncMock()
        manager.engine.run = AsyncMock(return_value=output)
        invoker = TranscriptionInvoker(
            provisioner=manager.provisioner,
            converter=manager.converter,
            engine=manager.engine,
        )
        return invoker, manager

    async def test_provision_then_convert_then_run(
        self, resolved_job: ResolvedJob, tmp_path: Path
    ) -> None:
        weights = tmp_path / "ggml-base.bin"
        invoker, manager = self._make_invoker(weights, resolved_job.output_path)

        output = await invoker.invoke(resolved_job)

        assert output == resolved_job.output_path
        assert manager.mock_calls == [
            call.provisioner.ensure(resolved_job.model),
            call.converter.convert(resolved_job.source_path, resolved_job.wav_path),
            call.engine.run(
                resolved_job.wav_path,
                resolved_job.language,
                resolved_job.translate,
                weights,
                resolved_job.output_format,
            ),
        ]

    async def test_conversion_failure_skips_engine(
        self, resolved_job: ResolvedJob, tmp_path: Path
    ) -> None:
        invoker, manager = self._make_invoker(tmp_path / "w.bin", resolved_job.output_path)
        manager.converter.convert.side_effect = FileProcessingError("Audio conversion", "bad input")

        with pytest.raises(FileProcessingError, match="Audio conversion failed"):
            await invoker.invoke(resolved_job)

        manager.engine.run.assert_not_awaited()
