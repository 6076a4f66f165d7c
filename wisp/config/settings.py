"""Centralized configuration via pydantic-settings.

The ``WISP_*`` environment variables are read, validated, and exposed here.
Logging env vars (``WISP_LOG_FORMAT``, ``WISP_LOG_LEVEL``) are read by
``wisp.logging`` itself.

Usage::

    from wisp.config.settings import get_settings

    settings = get_settings()
    print(settings.rate_limit.token_limit)  # int, validated
    print(settings.whisper.models_path)     # Path, expanded

``.env`` files in the working directory are loaded automatically.
"""

from __future__ import annotations

import shutil
from functools import lru_cache
from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from wisp._types import ENGINE_SAMPLE_RATE


class ServerSettings(BaseSettings):
    """HTTP server settings."""

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    host: str = Field(default="127.0.0.1", validation_alias="WISP_HOST")
    port: int = Field(default=8000, ge=1, le=65535, validation_alias="WISP_PORT")
    force_https: bool = Field(default=False, validation_alias="WISP_FORCE_HTTPS")


class RateLimitSettings(BaseSettings):
    """Token bucket admission policy."""

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    token_limit: int = Field(default=10, ge=1, validation_alias="WISP_RATE_LIMIT_TOKEN_LIMIT")
    tokens_per_period: int = Field(
        default=5, ge=1, validation_alias="WISP_RATE_LIMIT_TOKENS_PER_PERIOD"
    )
    replenishment_period_s: float = Field(
        default=10.0, gt=0, validation_alias="WISP_RATE_LIMIT_REPLENISHMENT_PERIOD_S"
    )
    queue_limit: int = Field(default=5, ge=0, validation_alias="WISP_RATE_LIMIT_QUEUE_LIMIT")
    auto_replenishment: bool = Field(
        default=True, validation_alias="WISP_RATE_LIMIT_AUTO_REPLENISHMENT"
    )

    @model_validator(mode="after")
    def _per_period_le_limit(self) -> RateLimitSettings:
        if self.tokens_per_period > self.token_limit:
            msg = "tokens_per_period must be <= token_limit"
            raise ValueError(msg)
        return self


class WhisperSettings(BaseSettings):
    """Engine, converter and model storage settings."""

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    engine_binary: str = Field(default="whisper-cli", validation_alias="WISP_ENGINE_BINARY")
    ffmpeg_binary: str = Field(
        default=shutil.which("ffmpeg") or "ffmpeg", validation_alias="WISP_FFMPEG_BINARY"
    )
    models_dir: str = Field(default="~/.wisp/models", validation_alias="WISP_MODELS_DIR")
    audio_files_dir: str = Field(default="~/.wisp/audio", validation_alias="WISP_AUDIO_FILES_DIR")
    models_repo: str = Field(default="ggerganov/whisper.cpp", validation_alias="WISP_MODELS_REPO")
    sample_rate: int = Field(
        default=ENGINE_SAMPLE_RATE, ge=8000, le=48000, validation_alias="WISP_SAMPLE_RATE"
    )
    upload_chunk_size_bytes: int = Field(
        default=1_048_576, ge=4096, validation_alias="WISP_UPLOAD_CHUNK_SIZE_BYTES"
    )
    provision_timeout_s: float = Field(
        default=3600.0, gt=0, validation_alias="WISP_PROVISION_TIMEOUT_S"
    )
    conversion_timeout_s: float = Field(
        default=600.0, gt=0, validation_alias="WISP_CONVERSION_TIMEOUT_S"
    )
    engine_timeout_s: float = Field(default=3600.0, gt=0, validation_alias="WISP_ENGINE_TIMEOUT_S")

    @property
    def models_path(self) -> Path:
        """Expanded models directory as a Path object."""
        return Path(self.models_dir).expanduser()

    @property
    def audio_files_path(self) -> Path:
        """Expanded temporary audio directory as a Path object."""
        return Path(self.audio_files_dir).expanduser()


class WispSettings(BaseSettings):
    """Root settings — aggregates all subsystem settings.

    Loads ``.env`` from the current directory when present.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    server: ServerSettings = Field(default_factory=ServerSettings)
    rate_limit: RateLimitSettings = Field(default_factory=RateLimitSettings)
    whisper: WhisperSettings = Field(default_factory=WhisperSettings)


@lru_cache(maxsize=1)
def get_settings() -> WispSettings:
    """Return the singleton ``WispSettings`` instance.

    The result is cached — subsequent calls return the same object.
    Call ``get_settings.cache_clear()`` in tests to reset.
    """
    return WispSettings()
