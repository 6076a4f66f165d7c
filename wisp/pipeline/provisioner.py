"""Download whisper.cpp weights from the HuggingFace Hub.

Weights live flat in the models directory as ``ggml-<tier>.bin``, the layout
of the ``ggerganov/whisper.cpp`` repository. A tier is fetched the first
time a request needs it.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import TYPE_CHECKING

from huggingface_hub import hf_hub_download

from wisp.exceptions import FileProcessingError, ProcessTimeoutError
from wisp.logging import get_logger
from wisp.pipeline.models import weights_path

if TYPE_CHECKING:
    from wisp._types import WhisperModel

logger = get_logger("pipeline.provisioner")

DEFAULT_REPO = "ggerganov/whisper.cpp"


class ModelProvisioner:
    """Make sure a model tier's weights file is present locally.

    Flow:
    1. Return the weights path if the file already exists
    2. Otherwise download it from the Hub into the models directory
    3. Concurrent requests for the same tier share one download
    """

    def __init__(
        self,
        models_dir: str | Path,
        repo_id: str = DEFAULT_REPO,
        timeout_s: float = 3600.0,
    ) -> None:
        self._models_dir = Path(models_dir).expanduser()
        self._repo_id = repo_id
        self._timeout_s = timeout_s
        self._locks: dict[WhisperModel, asyncio.Lock] = {}

    @property
    def models_dir(self) -> Path:
        """Base models directory."""
        return self._models_dir

    def weights_path(self, model: WhisperModel) -> Path:
        return weights_path(model, self._models_dir)

    def is_installed(self, model: WhisperModel) -> bool:
        """Check if the weights file for *model* is already on disk."""
        return self.weights_path(model).is_file()

    async def ensure(self, model: WhisperModel) -> Path:
        """Return the local weights path for *model*, downloading it if absent.

        Raises:
            FileProcessingError: If the download fails.
            ProcessTimeoutError: If the download exceeds the timeout.
        """
        if self.is_installed(model):
            return self.weights_path(model)

        lock = self._locks.setdefault(model, asyncio.Lock())
        async with lock:
            if self.is_installed(model):
                return self.weights_path(model)
            try:
                await asyncio.wait_for(asyncio.to_thread(self.download, model), self._timeout_s)
            except asyncio.TimeoutError:
                logger.error("download_timeout", model=model.value, timeout_s=self._timeout_s)
                raise ProcessTimeoutError("Model download", self._timeout_s) from None
        return self.weights_path(model)

    def download(self, model: WhisperModel, *, force: bool = False) -> Path:
        """Blocking download of *model*'s weights file.

        Args:
            model: Tier to fetch.
            force: Download again even if the file exists.

        Returns:
            Path to the weights file.

        Raises:
            FileProcessingError: If the Hub download fails.
        """
        target = self.weights_path(model)
        if target.is_file() and not force:
            return target

        self._models_dir.mkdir(parents=True, exist_ok=True)

        logger.info(
            "download_starting",
            model=model.value,
            repo=self._repo_id,
            target=str(target),
        )

        try:
            downloaded = hf_hub_download(
                repo_id=self._repo_id,
                filename=model.weights_filename,
                local_dir=str(self._models_dir),
                force_download=force,
            )
        except Exception as exc:
            logger.error("download_failed", model=model.value, error=str(exc))
            raise FileProcessingError("Model download", str(exc)) from exc

        logger.info("download_complete", model=model.value, path=downloaded)
        return Path(downloaded)
