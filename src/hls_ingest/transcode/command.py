"""ffmpeg argument vector for single-rendition HLS VOD output."""

from __future__ import annotations

from pathlib import Path

from ..config import TranscodeSettings
from ..media.namespace_store import MANIFEST_NAME, SEGMENT_PATTERN


def build_hls_command(
    settings: TranscodeSettings, input_path: Path, output_dir: Path
) -> list[str]:
    """Return the full ffmpeg invocation, binary first."""
    return [
        settings.ffmpeg_binary,
        "-y",
        "-i", str(input_path),
        "-c:v", settings.video_codec,
        "-preset", settings.preset,
        "-crf", str(settings.quality_factor),
        "-c:a", settings.audio_codec,
        "-b:a", settings.audio_bitrate,
        "-ac", str(settings.audio_channels),
        "-f", "hls",
        "-hls_time", str(settings.segment_seconds),
        "-hls_playlist_type", "vod",
        "-hls_segment_filename", str(output_dir / SEGMENT_PATTERN),
        str(output_dir / MANIFEST_NAME),
    ]
