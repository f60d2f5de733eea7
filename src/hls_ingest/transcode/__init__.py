"""ffmpeg orchestration for single-rendition HLS output."""
