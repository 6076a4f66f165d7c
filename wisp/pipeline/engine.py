"""whisper.cpp invocation.

The engine reads a 16 kHz WAV file and writes its result next to it, at the
WAV path with the output format's extension appended (``a.wav`` ->
``a.wav.txt``).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from wisp.exceptions import FileProcessingError
from wisp.logging import get_logger
from wisp.pipeline._process import run_process

if TYPE_CHECKING:
    from pathlib import Path

    from wisp._types import OutputFormat, ResolvedJob
    from wisp.pipeline.converter import AudioConverter
    from wisp.pipeline.provisioner import ModelProvisioner

logger = get_logger("pipeline.engine")


class WhisperEngine:
    """Command-line contract of the whisper.cpp ``whisper-cli`` binary."""

    def __init__(self, binary: str = "whisper-cli", timeout_s: float = 3600.0) -> None:
        self._binary = binary
        self._timeout_s = timeout_s

    def build_command(
        self,
        wav_path: Path,
        language: str,
        translate: bool,
        weights: Path,
        output_format: OutputFormat,
    ) -> list[str]:
        command = [
            self._binary,
            "-m", str(weights),
            "-f", str(wav_path),
            "-l", language,
            output_format.flag,
            "-np",
        ]  # fmt: skip
        if translate:
            command.append("-tr")
        return command

    async def run(
        self,
        wav_path: Path,
        language: str,
        translate: bool,
        weights: Path,
        output_format: OutputFormat,
    ) -> Path:
        """Run the engine and return the path of the file it wrote.

        Raises:
            FileProcessingError: On non-zero exit, timeout, or missing output file.
        """
        command = self.build_command(wav_path, language, translate, weights, output_format)
        await run_process("Transcription", command, self._timeout_s)

        output = output_format.output_path(wav_path)
        if not output.is_file():
            logger.error("engine_output_missing", expected=str(output))
            raise FileProcessingError("Transcription", "engine produced no output file")
        return output


class TranscriptionInvoker:
    """Provision the model, convert the audio, then run the engine."""

    def __init__(
        self,
        provisioner: ModelProvisioner,
        converter: AudioConverter,
        engine: WhisperEngine,
    ) -> None:
        self._provisioner = provisioner
        self._converter = converter
        self._engine = engine

    async def invoke(self, job: ResolvedJob) -> Path:
        """Produce the engine output file for *job* and return its path."""
        weights = await self._provisioner.ensure(job.model)
        await self._converter.convert(job.source_path, job.wav_path)

        logger.info(
            "transcription_starting",
            file_id=job.file_id,
            model=job.model.value,
            language=job.language,
            translate=job.translate,
            output_format=job.output_format.extension,
        )
        return await self._engine.run(
            job.wav_path,
            job.language,
            job.translate,
            weights,
            job.output_format,
        )
