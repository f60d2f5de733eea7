"""HLS ingest service: upload a video, get back a segmented VOD stream."""

__version__ = "0.1.0"
