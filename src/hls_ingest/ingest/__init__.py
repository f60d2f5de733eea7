"""Multipart upload intake and the synchronous ingest pipeline."""
