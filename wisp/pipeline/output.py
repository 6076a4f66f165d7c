"""Read the engine's output file into a result payload.

Plain mode returns the text file trimmed. Timestamp mode parses the
whisper.cpp CSV output::

    start,end,text
    0,2000," And so my fellow Americans"
    2000,4500," ask not what your country can do for you"

``start`` and ``end`` are milliseconds from the beginning of the audio.
"""

from __future__ import annotations

import csv
import io
from datetime import timedelta
from typing import TYPE_CHECKING

import aiofiles

from wisp._types import TimestampSegment
from wisp.exceptions import FileProcessingError
from wisp.logging import get_logger

if TYPE_CHECKING:
    from pathlib import Path

    from wisp._types import TranscriptionPayload

logger = get_logger("pipeline.output")

_CSV_HEADER = ["start", "end", "text"]


async def read_output(path: Path, want_timestamps: bool) -> TranscriptionPayload:
    """Load the engine output at *path* in the shape the caller asked for."""
    async with aiofiles.open(path, encoding="utf-8") as fh:
        content = await fh.read()
    if want_timestamps:
        return parse_csv_segments(content)
    return content.strip()


def parse_csv_segments(content: str) -> tuple[TimestampSegment, ...]:
    """Parse whisper.cpp CSV output into segments, keeping file order.

    Raises:
        FileProcessingError: If a row is not ``start,end,text`` with integer offsets.
    """
    reader = csv.reader(io.StringIO(content), escapechar="\\")
    segments: list[TimestampSegment] = []
    for line_no, row in enumerate(reader, start=1):
        if not row:
            continue
        if line_no == 1 and [cell.strip().lower() for cell in row] == _CSV_HEADER:
            continue
        if len(row) < 3:
            raise FileProcessingError("Output parsing", f"line {line_no}: expected 3 columns")
        try:
            start_ms = int(row[0])
            end_ms = int(row[1])
        except ValueError:
            raise FileProcessingError(
                "Output parsing", f"line {line_no}: non-integer offsets"
            ) from None
        # Unquoted text containing commas splits into extra cells.
        text = ",".join(row[2:]).strip()
        segments.append(
            TimestampSegment(
                start=timedelta(milliseconds=start_ms),
                end=timedelta(milliseconds=end_ms),
                text=text,
            )
        )

    logger.debug("segments_parsed", count=len(segments))
    return tuple(segments)
