"""Audio conversion to the engine's input format via ffmpeg."""

from __future__ import annotations

from typing import TYPE_CHECKING

from wisp._types import ENGINE_SAMPLE_RATE
from wisp.logging import get_logger
from wisp.pipeline._process import run_process

if TYPE_CHECKING:
    from pathlib import Path

logger = get_logger("pipeline.converter")


class AudioConverter:
    """Convert any ffmpeg-readable input to mono 16-bit PCM WAV."""

    def __init__(
        self,
        ffmpeg_binary: str = "ffmpeg",
        sample_rate: int = ENGINE_SAMPLE_RATE,
        timeout_s: float = 600.0,
    ) -> None:
        self._ffmpeg_binary = ffmpeg_binary
        self._sample_rate = sample_rate
        self._timeout_s = timeout_s

    def build_command(self, source: Path, destination: Path) -> list[str]:
        # -vn: drop any video stream, -y: overwrite output
        return [
            self._ffmpeg_binary,
            "-nostdin",
            "-y",
            "-i", str(source),
            "-vn",
            "-ac", "1",
            "-ar", str(self._sample_rate),
            "-c:a", "pcm_s16le",
            str(destination),
        ]  # fmt: skip

    async def convert(self, source: Path, destination: Path) -> Path:
        """Write *source* as WAV to *destination*.

        Raises:
            FileProcessingError: If ffmpeg fails or times out.
        """
        logger.info("conversion_starting", source=str(source), destination=str(destination))
        command = self.build_command(source, destination)
        await run_process("Audio conversion", command, self._timeout_s)
        return destination
