"""Application configuration builder."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Sequence

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ALLOWED_EXTENSIONS: tuple[str, ...] = (".mp4", ".mov", ".mkv", ".webm")


@dataclass(slots=True)
class IngestLimits:
    allowed_extensions: Sequence[str]
    max_upload_bytes: int
    chunk_size_bytes: int
    multipart_allowance_bytes: int


@dataclass(slots=True)
class StoragePaths:
    root: Path


@dataclass(slots=True)
class TranscodeSettings:
    """Fixed engine invocation parameters for the single HLS rendition."""

    ffmpeg_binary: str = "ffmpeg"
    video_codec: str = "libx264"
    audio_codec: str = "aac"
    audio_bitrate: str = "128k"
    audio_channels: int = 2
    segment_seconds: int = 4
    preset: str = "veryfast"
    quality_factor: int = 23


@dataclass(slots=True)
class BasicAuthCredentials:
    username: str
    password: str


@dataclass(slots=True)
class AppConfig:
    storage_paths: StoragePaths
    ingest_limits: IngestLimits
    transcode: TranscodeSettings
    credentials: BasicAuthCredentials
    transcode_timeout_seconds: float = 600.0
    kill_grace_seconds: float = 5.0
    max_concurrent_jobs: int = field(default_factory=lambda: os.cpu_count() or 1)
    manifest_cache_seconds: int = 5
    reaper_grace_seconds: int = 3600
    reaper_interval_seconds: float = 900.0
    host: str = "0.0.0.0"
    port: int = 8080
    log_level: str = "INFO"


class EnvSettings(BaseSettings):
    """Environment variables recognised by :func:`load_config`."""

    model_config = SettingsConfigDict(env_prefix="HLS_")

    storage_root: Path = Field(default=Path("./storage"))
    max_upload_bytes: int = Field(default=1 << 30, ge=1)
    upload_chunk_bytes: int = Field(default=1024 * 1024, ge=1)
    multipart_allowance_bytes: int = Field(default=64 * 1024, ge=0)
    transcode_timeout_seconds: float = Field(default=600.0, gt=0)
    kill_grace_seconds: float = Field(default=5.0, gt=0)
    max_concurrent_jobs: int | None = Field(default=None, ge=1)

    ffmpeg_binary: str = "ffmpeg"
    video_codec: str = "libx264"
    audio_codec: str = "aac"
    audio_bitrate: str = "128k"
    audio_channels: int = Field(default=2, ge=1)
    segment_seconds: int = Field(default=4, ge=1)
    preset: str = "veryfast"
    quality_factor: int = Field(default=23, ge=0, le=51)

    manifest_cache_seconds: int = Field(default=5, ge=0)
    basic_auth_user: str = "admin"
    basic_auth_password: str = "secret"
    host: str = "0.0.0.0"
    port: int = Field(default=8080, ge=1, le=65535)

    reaper_grace_seconds: int = Field(default=3600, ge=1)
    reaper_interval_seconds: float = Field(default=900.0, ge=0)
    log_level: str = "INFO"

    @model_validator(mode="after")
    def _reaper_outlives_jobs(self) -> "EnvSettings":
        # Admission wait and engine run are each bounded by the deadline.
        longest_job = 2 * self.transcode_timeout_seconds + self.kill_grace_seconds
        if self.reaper_grace_seconds <= longest_job:
            raise ValueError(
                "reaper_grace_seconds must exceed twice transcode_timeout_seconds "
                f"plus kill_grace_seconds ({longest_job:g}s)"
            )
        return self


def ensure_storage(paths: StoragePaths) -> None:
    paths.root.mkdir(parents=True, exist_ok=True)


def load_config() -> AppConfig:
    """Load configuration from ``HLS_*`` environment variables."""
    env = EnvSettings()

    return AppConfig(
        storage_paths=StoragePaths(root=env.storage_root),
        ingest_limits=IngestLimits(
            allowed_extensions=ALLOWED_EXTENSIONS,
            max_upload_bytes=env.max_upload_bytes,
            chunk_size_bytes=env.upload_chunk_bytes,
            multipart_allowance_bytes=env.multipart_allowance_bytes,
        ),
        transcode=TranscodeSettings(
            ffmpeg_binary=env.ffmpeg_binary,
            video_codec=env.video_codec,
            audio_codec=env.audio_codec,
            audio_bitrate=env.audio_bitrate,
            audio_channels=env.audio_channels,
            segment_seconds=env.segment_seconds,
            preset=env.preset,
            quality_factor=env.quality_factor,
        ),
        credentials=BasicAuthCredentials(
            username=env.basic_auth_user,
            password=env.basic_auth_password,
        ),
        transcode_timeout_seconds=env.transcode_timeout_seconds,
        kill_grace_seconds=env.kill_grace_seconds,
        max_concurrent_jobs=env.max_concurrent_jobs or os.cpu_count() or 1,
        manifest_cache_seconds=env.manifest_cache_seconds,
        reaper_grace_seconds=env.reaper_grace_seconds,
        reaper_interval_seconds=env.reaper_interval_seconds,
        host=env.host,
        port=env.port,
        log_level=env.log_level,
    )
