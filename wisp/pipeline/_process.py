"""Run external commands as awaitable subprocesses with a timeout."""

from __future__ import annotations

import asyncio
import contextlib
from dataclasses import dataclass

from wisp.exceptions import FileProcessingError, ProcessTimeoutError
from wisp.logging import get_logger

logger = get_logger("pipeline.process")

# Tail of stderr kept in error messages.
_STDERR_TAIL_CHARS = 500


@dataclass(frozen=True, slots=True)
class ProcessOutcome:
    returncode: int
    stderr: str


async def run_process(stage: str, command: list[str], timeout: float) -> ProcessOutcome:
    """Run *command* and wait for it to exit.

    The child is killed if the timeout expires or the awaiting task is
    cancelled.

    Raises:
        FileProcessingError: If the executable cannot be started or exits non-zero.
        ProcessTimeoutError: If it runs longer than *timeout* seconds.
    """
    logger.debug("process_starting", stage=stage, command=command)
    try:
        process = await asyncio.create_subprocess_exec(
            *command,
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as exc:
        logger.error("process_spawn_failed", stage=stage, executable=command[0], error=str(exc))
        raise FileProcessingError(stage, f"cannot run '{command[0]}': {exc}") from exc

    try:
        _, stderr_bytes = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        await _kill(process)
        logger.error("process_timeout", stage=stage, timeout_s=timeout)
        raise ProcessTimeoutError(stage, timeout) from None
    except asyncio.CancelledError:
        await _kill(process)
        raise

    stderr = (stderr_bytes or b"").decode("utf-8", errors="replace")
    returncode = process.returncode if process.returncode is not None else -1
    if returncode != 0:
        tail = stderr.strip()[-_STDERR_TAIL_CHARS:]
        logger.error("process_failed", stage=stage, returncode=returncode, stderr=tail)
        raise FileProcessingError(stage, f"exit code {returncode}: {tail or 'no output'}")

    return ProcessOutcome(returncode=returncode, stderr=stderr)


async def _kill(process: asyncio.subprocess.Process) -> None:
    with contextlib.suppress(ProcessLookupError):
        process.kill()
    await process.wait()
