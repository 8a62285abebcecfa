"""Chunked media upload, queued transcoding and signed playback URLs."""

__version__ = "0.1.0"
