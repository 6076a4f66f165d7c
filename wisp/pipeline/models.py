"""Model tier resolution."""

from __future__ import annotations

import re
from pathlib import Path

from wisp._types import OutputFormat, WhisperModel
from wisp.exceptions import InvalidModelError
from wisp.logging import get_logger

logger = get_logger("pipeline.models")

_SEPARATORS = re.compile(r"[\s._-]")


def _compact(name: str) -> str:
    return _SEPARATORS.sub("", name.lower())


_MODELS_BY_KEY: dict[str, WhisperModel] = {}
for _model in WhisperModel:
    _MODELS_BY_KEY[_model.value] = _model
    _MODELS_BY_KEY[_model.name.lower()] = _model
    _MODELS_BY_KEY[_compact(_model.value)] = _model


def resolve_model(raw: str) -> WhisperModel:
    """Match *raw* against the supported tiers, ignoring case.

    Accepts the tier value (``"large-v3"``), the member name (``"LARGE_V3"``)
    and the separator-free spelling (``"LargeV3"``, ``"TinyEn"``).

    Raises:
        InvalidModelError: If no tier matches.
    """
    token = raw.strip().lower()
    model = _MODELS_BY_KEY.get(token) or _MODELS_BY_KEY.get(_compact(token))
    if model is None:
        logger.warning("invalid_model", model=raw)
        raise InvalidModelError(raw.strip())
    return model


def weights_path(model: WhisperModel, models_dir: Path) -> Path:
    """Local path of the weights file for *model*."""
    return models_dir / model.weights_filename


def output_format_for(want_timestamps: bool) -> OutputFormat:
    """Engine output mode for the timestamp flag."""
    return OutputFormat.for_timestamps(want_timestamps)
