"""Application layer - use cases and orchestration.

This layer contains:
- Services: upload assembly, job orchestration, progress, thumbnails, playback
- DTOs: request/response models and the queue message
"""
